from sqlmodel import Field

from app.models.item_base import ItemBase


class LostItem(ItemBase, table=True):
    __tablename__ = "lost_items"

    type: str = Field(default="lost")

    # Set once the owner confirms the handoff, survives archive/restore
    was_returned: bool = Field(default=False)
