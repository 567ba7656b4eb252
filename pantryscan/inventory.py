"""In-memory inventory model: items, their lots, and derived status."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any, Callable, Iterable

from .models import (
    SOON_DAYS,
    Item,
    Location,
    Lot,
    Urgency,
    classify_expiration,
    display_name,
    is_low_stock,
    soonest_expiration,
)

if TYPE_CHECKING:
    from .db import InventoryStore

logger = logging.getLogger(__name__)

_ITEM_FIELDS = frozenset(
    {"name", "brand", "size", "barcode", "location", "quantity", "par_level"}
)
_LOT_FIELDS = frozenset({"expiration_date", "opened_at", "notes"})


@dataclass(frozen=True)
class ItemSummary:
    """Plain read-only view of an item for presentation layers."""

    id: str
    name: str
    brand: str | None
    size: str | None
    barcode: str | None
    location: Location
    quantity: int
    par_level: int
    lot_count: int
    soonest_expiration: date | None
    urgency: Urgency | None
    low_stock: bool
    updated_at: datetime


@dataclass
class FailedWrite:
    key: tuple[str, str]  # ("item" | "lot", id); one queued write per row
    description: str
    operation: Callable[[], bool]


Observer = Callable[[list[ItemSummary]], None]


class InventoryModel:
    """Owns the item → lot graph and keeps it consistent.

    Every mutation is applied in memory first, then written through to the
    store (if any). A store write that reports failure does not roll the
    in-memory change back; it is logged and queued for
    :meth:`retry_failed_writes`.
    """

    def __init__(
        self,
        store: InventoryStore | None = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
        soon_days: int = SOON_DAYS,
    ) -> None:
        self._store = store
        self._clock = clock
        self._soon_days = soon_days
        self._items: dict[str, Item] = {}
        self._observers: list[Observer] = []
        self._failed: dict[tuple[str, str], FailedWrite] = {}

    # ── loading and queries ──

    def load(self) -> int:
        """Replace in-memory state with the store's contents.

        Returns:
            Number of items loaded.
        """
        if self._store is None:
            return 0
        items = self._store.load_items()
        self._items = {item.id: item for item in items}
        logger.debug("Loaded %d items", len(items))
        self._notify()
        return len(items)

    def get_item(self, item_id: str) -> Item | None:
        return self._items.get(item_id)

    def find_lot(self, lot_id: str) -> Lot | None:
        for item in self._items.values():
            lot = item.find_lot(lot_id)
            if lot is not None:
                return lot
        return None

    def items(self) -> list[Item]:
        """All items, most recently updated first."""
        return sorted(self._items.values(), key=lambda i: i.updated_at, reverse=True)

    def __len__(self) -> int:
        return len(self._items)

    def search(self, query: str, items: Iterable[Item] | None = None) -> list[Item]:
        """Case-insensitive substring match on name, brand or barcode.

        An empty query returns the items unfiltered. Input order is kept.
        """
        pool = self.items() if items is None else list(items)
        q = (query or "").strip().lower()
        if not q:
            return pool
        return [
            i
            for i in pool
            if q in i.name.lower()
            or (i.brand is not None and q in i.brand.lower())
            or (i.barcode is not None and q in i.barcode.lower())
        ]

    def urgency(self, item: Item, today: date | None = None) -> Urgency | None:
        soonest = soonest_expiration(item)
        if soonest is None:
            return None
        return classify_expiration(
            soonest, today or self._today(), soon_days=self._soon_days
        )

    def expiring_within(self, days: int, today: date | None = None) -> list[Item]:
        """Items whose soonest lot expires within `days` (expired included)."""
        cutoff = (today or self._today()) + timedelta(days=days)
        hits = [
            (soonest, item)
            for item in self._items.values()
            if (soonest := soonest_expiration(item)) is not None and soonest <= cutoff
        ]
        hits.sort(key=lambda pair: pair[0])
        return [item for _, item in hits]

    def low_stock_items(self) -> list[Item]:
        return [i for i in self.items() if is_low_stock(i)]

    def summarize(self, item: Item, today: date | None = None) -> ItemSummary:
        return ItemSummary(
            id=item.id,
            name=display_name(item),
            brand=item.brand,
            size=item.size,
            barcode=item.barcode,
            location=item.location,
            quantity=item.quantity,
            par_level=item.par_level,
            lot_count=len(item.lots),
            soonest_expiration=soonest_expiration(item),
            urgency=self.urgency(item, today),
            low_stock=is_low_stock(item),
            updated_at=item.updated_at,
        )

    def snapshot(self, today: date | None = None) -> list[ItemSummary]:
        today = today or self._today()
        return [self.summarize(i, today) for i in self.items()]

    # ── observers ──

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Call `observer` with a fresh snapshot after every mutation.

        Returns:
            A function that removes the observer again.
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # ── item mutations ──

    def create_item(
        self,
        name: str = "",
        brand: str | None = None,
        size: str | None = None,
        barcode: str | None = None,
        location: Location | str = Location.PANTRY,
        quantity: int = 1,
        par_level: int = 0,
    ) -> Item:
        now = self._clock()
        item = Item(
            name=name or "",
            brand=brand or None,
            size=size or None,
            barcode=barcode or None,
            location=Location.parse(location),
            quantity=_non_negative("quantity", quantity),
            par_level=_non_negative("par_level", par_level),
            created_at=now,
            updated_at=now,
        )
        self._items[item.id] = item
        logger.info("Created item %s (%s)", item.id, display_name(item))
        self._persist(("item", item.id), "save", lambda: self._store.save_item(item))
        self._notify()
        return item

    def update_item(self, item: Item, **fields: Any) -> Item:
        """Apply form edits to an item.

        Raises:
            TypeError: If a field name is not editable.
            KeyError: If the item is not in this model.
        """
        self._require_item(item)
        unknown = set(fields) - _ITEM_FIELDS
        if unknown:
            raise TypeError(f"Not editable item fields: {sorted(unknown)}")

        changes = dict(fields)
        if "location" in changes:
            changes["location"] = Location.parse(changes["location"])
        for key in ("quantity", "par_level"):
            if key in changes:
                changes[key] = _non_negative(key, changes[key])
        if "name" in changes:
            changes["name"] = changes["name"] or ""
        for key in ("brand", "size", "barcode"):
            if key in changes:
                changes[key] = changes[key] or None

        for key, value in changes.items():
            setattr(item, key, value)
        self._touch(item)
        self._persist(("item", item.id), "save", lambda: self._store.save_item(item))
        self._notify()
        return item

    def delete_item(self, item: Item) -> None:
        """Remove an item together with all of its lots."""
        self._require_item(item)
        del self._items[item.id]
        for lot in item.lots:
            lot.item_id = None
            # the store cascade removes the row; a queued lot write would revive it
            self._failed.pop(("lot", lot.id), None)
        lot_count = len(item.lots)
        item.lots.clear()
        logger.info("Deleted item %s and %d lots", item.id, lot_count)
        self._persist(
            ("item", item.id), "delete", lambda: self._store.delete_item(item.id)
        )
        self._notify()

    # ── lot mutations ──

    def add_lot(
        self,
        item: Item,
        expiration_date: date | None = None,
        notes: str | None = None,
        opened_at: date | None = None,
    ) -> Lot:
        self._require_item(item)
        lot = Lot(
            expiration_date=_as_date(expiration_date),
            opened_at=_as_date(opened_at),
            notes=notes or None,
            item_id=item.id,
        )
        item.lots.append(lot)
        self._touch(item)
        logger.debug("Added lot %s to item %s", lot.id, item.id)
        self._persist(("lot", lot.id), "save", lambda: self._store.save_lot(lot))
        self._persist(("item", item.id), "save", lambda: self._store.save_item(item))
        self._notify()
        return lot

    def update_lot(self, lot: Lot, **fields: Any) -> Lot:
        owner = self._owner_of(lot)
        unknown = set(fields) - _LOT_FIELDS
        if unknown:
            raise TypeError(f"Not editable lot fields: {sorted(unknown)}")
        for key, value in fields.items():
            if key == "notes":
                value = value or None
            else:
                value = _as_date(value)
            setattr(lot, key, value)
        self._touch(owner)
        self._persist(("lot", lot.id), "save", lambda: self._store.save_lot(lot))
        self._persist(
            ("item", owner.id), "save", lambda: self._store.save_item(owner)
        )
        self._notify()
        return lot

    def delete_lot(self, lot: Lot) -> None:
        """Remove a lot from its owning item; sibling lots are untouched."""
        owner = self._owner_of(lot)
        owner.lots[:] = [other for other in owner.lots if other.id != lot.id]
        lot.item_id = None
        self._touch(owner)
        logger.debug("Deleted lot %s from item %s", lot.id, owner.id)
        self._persist(
            ("lot", lot.id), "delete", lambda: self._store.delete_lot(lot.id)
        )
        self._persist(
            ("item", owner.id), "save", lambda: self._store.save_item(owner)
        )
        self._notify()

    # ── persistence failures ──

    @property
    def failed_writes(self) -> list[FailedWrite]:
        return list(self._failed.values())

    def retry_failed_writes(self) -> int:
        """Replay queued store writes, item rows before lot rows.

        Returns:
            Number of writes still failing.
        """
        pending = sorted(self._failed.values(), key=lambda w: w.key[0] != "item")
        self._failed = {}
        for write in pending:
            if write.operation():
                logger.info("Retried write succeeded: %s", write.description)
            else:
                self._failed[write.key] = write
        if self._failed:
            logger.warning("%d store writes still failing", len(self._failed))
        return len(self._failed)

    # ── internals ──

    def _today(self) -> date:
        return self._clock().date()

    def _touch(self, item: Item) -> None:
        now = self._clock()
        if now > item.updated_at:
            item.updated_at = now

    def _require_item(self, item: Item) -> None:
        if self._items.get(item.id) is not item:
            raise KeyError(f"Item {item.id} is not in the inventory")

    def _owner_of(self, lot: Lot) -> Item:
        owner = self._items.get(lot.item_id) if lot.item_id else None
        if owner is None or owner.find_lot(lot.id) is None:
            raise KeyError(f"Lot {lot.id} does not belong to any item")
        return owner

    def _persist(
        self, key: tuple[str, str], verb: str, operation: Callable[[], bool]
    ) -> None:
        """Run a store write, queueing it on failure.

        Only the newest write per row is queued; a success clears the row.
        """
        if self._store is None:
            return
        description = f"{verb} {key[0]} {key[1]}"
        self._failed.pop(key, None)
        if not operation():
            logger.warning("Store write failed, queued for retry: %s", description)
            self._failed[key] = FailedWrite(key, description, operation)

    def _notify(self) -> None:
        if not self._observers:
            return
        snapshot = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("Inventory observer %r failed", observer)


def _non_negative(name: str, value: int) -> int:
    value = int(value)
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return value


def _as_date(value: date | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value
