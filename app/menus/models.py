from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

NAV_MENU_ITEM = "nav_menu_item"


class MenuItemType(str, Enum):
    post_type = "post_type"
    taxonomy = "taxonomy"
    post_type_archive = "post_type_archive"
    custom = "custom"


class MenuItem(BaseModel):
    """A content record resolved into navigation-link semantics."""

    id: int = Field(..., ge=0)
    db_id: int = 0
    menu_item_parent: int = 0
    object_id: int | None = None
    object: str = ""
    type: MenuItemType = MenuItemType.custom
    type_label: str = ""
    title: str = ""
    url: str = ""
    target: str = ""
    attr_title: str = ""
    description: str = ""
    classes: list[str] = Field(default_factory=list)
    xfn: str = ""
    menu_order: int = 0
    invalid: bool = False
