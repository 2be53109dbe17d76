from sqlmodel import Field

from app.models.item_base import ItemBase


class FoundItem(ItemBase, table=True):
    __tablename__ = "found_items"

    type: str = Field(default="found")
