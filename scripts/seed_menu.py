from __future__ import annotations

import json
import sys
from pathlib import Path

import structlog

from app.core.config import settings
from app.core.logging import configure_logging
from app.posts.models import PostRecord, TermRecord
from app.posts.pg_store import PostgresPostStore

DEFAULT_SEED_PATH = Path("data/menu.json")

logger = structlog.get_logger(__name__)


def _load_seed(path: Path) -> tuple[list[PostRecord], list[TermRecord]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    posts = [PostRecord.model_validate(item) for item in data.get("posts", [])]
    terms = [TermRecord.model_validate(item) for item in data.get("terms", [])]
    return posts, terms


def seed_menu(seed_path: Path = DEFAULT_SEED_PATH, dsn: str | None = None) -> None:
    posts, terms = _load_seed(seed_path)
    store = PostgresPostStore(dsn or settings.postgres_dsn)
    try:
        for term in terms:
            store.upsert_term(term)
        for post in posts:
            store.upsert_post(post)
    finally:
        store.close()
    logger.info("menu_seeded", path=str(seed_path), posts=len(posts), terms=len(terms))


if __name__ == "__main__":
    configure_logging(settings.log_level)
    seed_menu(Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_SEED_PATH)
