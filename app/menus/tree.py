from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

logger = structlog.get_logger(__name__)

ParentLookup = Callable[[int], int | None]


@dataclass
class ParentChain:
    ancestors: list[int] = field(default_factory=list)
    repeated_id: int | None = None

    @property
    def cyclic(self) -> bool:
        return self.repeated_id is not None

    def returns_to(self, item_id: int) -> bool:
        """True when the chain loops back to ``item_id`` itself."""
        return self.repeated_id == item_id


def walk_parent_chain(
    item_id: int,
    start_parent: int,
    parent_of: ParentLookup,
    max_depth: int,
) -> ParentChain:
    """Collect the ancestors of ``item_id``, nearest first.

    ``parent_of`` returns a menu item's parent id, or None for an unknown id.
    The walk is iterative and stops at a root (0), an unknown id, a repeated
    id (flagged as a cycle), or after ``max_depth`` ancestors.
    """
    chain = ParentChain()
    seen = {item_id}
    current = start_parent
    while current and len(chain.ancestors) < max_depth:
        if current in seen:
            chain.repeated_id = current
            logger.warning("menu_item_parent_cycle", item_id=item_id, repeated_id=current)
            break
        seen.add(current)
        chain.ancestors.append(current)
        parent = parent_of(current)
        if parent is None:
            break
        current = parent
    return chain
