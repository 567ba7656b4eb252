"""Pantry item and lot data models, plus facts derived from them."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

UNNAMED_ITEM = "(Unnamed Item)"
SOON_DAYS = 7


class Location(str, Enum):
    PANTRY = "Pantry"
    FRIDGE = "Fridge"
    FREEZER = "Freezer"

    @classmethod
    def parse(cls, value: Location | str) -> Location:
        """Accept a Location or its name/value in any case."""
        if isinstance(value, Location):
            return value
        for loc in cls:
            if str(value).strip().lower() in (loc.value.lower(), loc.name.lower()):
                return loc
        raise ValueError(
            f"Unknown location: {value!r} (choose Pantry / Fridge / Freezer)"
        )


class Urgency(str, Enum):
    EXPIRED = "expired"
    SOON = "soon"
    NORMAL = "normal"


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Lot:
    """A batch of an item with its own expiration date."""

    id: str = field(default_factory=new_id)
    expiration_date: date | None = None
    opened_at: date | None = None
    notes: str | None = None
    item_id: str | None = None  # None while the lot is still a draft


@dataclass
class Item:
    """A pantry product entry owning zero or more lots."""

    id: str = field(default_factory=new_id)
    name: str = ""
    brand: str | None = None
    size: str | None = None
    barcode: str | None = None
    location: Location = Location.PANTRY
    quantity: int = 1
    par_level: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    lots: list[Lot] = field(default_factory=list)

    def find_lot(self, lot_id: str) -> Lot | None:
        for lot in self.lots:
            if lot.id == lot_id:
                return lot
        return None


def soonest_expiration(item: Item) -> date | None:
    """Earliest expiration among the item's lots that have one set."""
    dates = [lot.expiration_date for lot in item.lots if lot.expiration_date]
    return min(dates) if dates else None


def days_until(target: date, today: date | None = None) -> int:
    """Whole calendar days from today to target (negative when past)."""
    if isinstance(target, datetime):
        target = target.date()
    today = today or date.today()
    return (target - today).days


def classify_expiration(
    target: date, today: date | None = None, soon_days: int = SOON_DAYS
) -> Urgency:
    """Classify a date as expired, soon (within soon_days) or normal."""
    days = days_until(target, today)
    if days < 0:
        return Urgency.EXPIRED
    if days <= soon_days:
        return Urgency.SOON
    return Urgency.NORMAL


def is_low_stock(item: Item) -> bool:
    """True when par tracking is on and stock has dropped below par."""
    return item.par_level > 0 and item.quantity < item.par_level


def display_name(item: Item) -> str:
    return item.name if item.name.strip() else UNNAMED_ITEM
