"""
Item Directory: one lookup surface over the lost and found item tables.

Claims and notifications carry an ``ItemRef`` (kind + id), so the rest of the
core never needs to know which table backs an item.
"""
import uuid
from datetime import datetime, timezone
from typing import Iterable, NamedTuple, Optional, Union

from sqlalchemy import update
from sqlmodel import Session, select

from app.errors import InvalidTransition, NotFound, StaleItem, ValidationError
from app.models.enums import ItemKind
from app.models.found_item import FoundItem
from app.models.lost_item import LostItem
from app.utils.form_validator import parse_uuid

Item = Union[LostItem, FoundItem]

ITEM_MODELS = {
    ItemKind.LOST: LostItem,
    ItemKind.FOUND: FoundItem,
}


class ItemRef(NamedTuple):
    kind: ItemKind
    id: uuid.UUID

    @classmethod
    def of(cls, kind: Union[str, ItemKind], item_id: Union[str, uuid.UUID]) -> "ItemRef":
        try:
            kind = ItemKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown item kind '{kind}'")

        return cls(kind, parse_uuid(item_id, "item ID"))

    @classmethod
    def for_item(cls, item: Item) -> "ItemRef":
        return cls(ItemKind(item.type), item.id)

    def __str__(self):
        return f"{self.kind.value}:{self.id}"


class Transition(NamedTuple):
    """A status change approved by the Status Coordinator for one item state."""

    ref: ItemRef
    from_status: str
    to_status: str
    expected_version: int
    was_returned: Optional[bool] = None


class ItemDirectory:
    def __init__(self, session: Session):
        self.session = session

    def find_item(self, ref: ItemRef) -> Item:
        item = self.session.get(ITEM_MODELS[ref.kind], ref.id)
        if not item:
            raise NotFound(f"{ref.kind.value.capitalize()} item not found")
        return item

    def find_items(self, refs: Iterable[ItemRef]) -> dict[ItemRef, Item]:
        """Batched lookup, one query per item kind."""
        ids_by_kind: dict[ItemKind, set[uuid.UUID]] = {}
        for ref in refs:
            ids_by_kind.setdefault(ref.kind, set()).add(ref.id)

        found: dict[ItemRef, Item] = {}
        for kind, ids in ids_by_kind.items():
            model = ITEM_MODELS[kind]
            for item in self.session.exec(select(model).where(model.id.in_(ids))).all():
                found[ItemRef(kind, item.id)] = item

        return found

    def resolve_ref(self, item_id: Union[str, uuid.UUID], kind: Optional[str] = None) -> ItemRef:
        """Turn an untyped id into an ItemRef, honouring the kind hint when given."""
        if kind:
            ref = ItemRef.of(kind, item_id)
            self.find_item(ref)
            return ref

        for candidate in ItemKind:
            ref = ItemRef.of(candidate, item_id)
            if self.session.get(ITEM_MODELS[candidate], ref.id):
                return ref

        raise NotFound("Item not found")

    def lock_item(self, ref: ItemRef) -> Item:
        """Load the item row FOR UPDATE so status read-modify-write is serialized per item."""
        model = ITEM_MODELS[ref.kind]
        item = self.session.exec(
            select(model)
            .where(model.id == ref.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).first()

        if not item:
            raise NotFound(f"{ref.kind.value.capitalize()} item not found")
        return item

    def set_item_status(self, ref: ItemRef, transition: Transition) -> Item:
        """
        Persist a planned status change as one conditional UPDATE on (id, version).

        The directory does not know the state machine; it only refuses writes
        that were not planned for this item and state.
        """
        if not isinstance(transition, Transition) or transition.ref != ref:
            raise InvalidTransition("Status change was not planned for this item")

        model = ITEM_MODELS[ref.kind]
        values = {
            "status": transition.to_status,
            "version": model.version + 1,
            "updated_at": datetime.now(timezone.utc),
        }
        if transition.was_returned is not None:
            if model is not LostItem:
                raise InvalidTransition("Only lost items can be marked returned")
            values["was_returned"] = transition.was_returned

        result = self.session.connection().execute(
            update(model)
            .where(model.id == ref.id)
            .where(model.version == transition.expected_version)
            .where(model.status == transition.from_status)
            .values(**values)
        )

        if result.rowcount != 1:
            if self.session.get(model, ref.id) is None:
                raise NotFound(f"{ref.kind.value.capitalize()} item not found")
            raise StaleItem()

        item = self.session.get(model, ref.id)
        self.session.refresh(item)
        return item
