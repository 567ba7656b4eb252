"""Scan event routing into an add-item draft."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable

from .dates import parse_first_date
from .inventory import InventoryModel
from .lookup import ProductLookupCache
from .models import Item, Location

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BarcodeScanned:
    payload: str


@dataclass(frozen=True)
class TextRecognized:
    transcript: str


ScanEvent = BarcodeScanned | TextRecognized


def scan_event_from_dict(raw: Mapping[str, Any]) -> ScanEvent:
    """Decode a capture event mapping.

    Accepts ``{"kind": "barcode", "payload": ...}`` and
    ``{"kind": "text", "transcript": ...}``.

    Raises:
        ValueError: If the mapping is not a recognised scan event.
    """
    if not isinstance(raw, Mapping):
        raise ValueError(f"Scan event must be an object, got {type(raw).__name__}")
    kind = raw.get("kind")
    match kind:
        case "barcode":
            payload = raw.get("payload")
            if not isinstance(payload, str):
                raise ValueError("Barcode event is missing a string payload")
            return BarcodeScanned(payload=payload)
        case "text":
            transcript = raw.get("transcript")
            if not isinstance(transcript, str):
                raise ValueError("Text event is missing a string transcript")
            return TextRecognized(transcript=transcript)
        case _:
            raise ValueError(f"Unknown scan event kind: {kind!r}")


@dataclass
class Draft:
    """Unsaved fields of one add-item session."""

    name: str = ""
    brand: str = ""
    size: str = ""
    barcode: str = ""
    location: Location = Location.PANTRY
    quantity: int = 1
    par_level: int = 0
    expiration_date: date | None = None


_DRAFT_FIELDS = frozenset(Draft.__dataclass_fields__)


class ScanIngestPipeline:
    """Accumulates scan results into a draft and commits it on save.

    Barcode hits only fill product fields that are still empty, so manual
    edits and earlier fills are never overwritten. A recognized date always
    replaces the pending expiration, so re-scanning corrects a wrong pick.
    """

    def __init__(
        self,
        model: InventoryModel,
        lookup: ProductLookupCache,
        *,
        date_parser: Callable[[str], date | None] = parse_first_date,
        default_location: Location | str = Location.PANTRY,
    ) -> None:
        self._model = model
        self._lookup = lookup
        self._parse_date = date_parser
        self._default_location = Location.parse(default_location)
        self._draft = self._new_draft()

    @property
    def draft(self) -> Draft:
        return self._draft

    def _new_draft(self) -> Draft:
        return Draft(location=self._default_location)

    async def handle(self, event: ScanEvent) -> bool:
        """Apply one scan event to the draft.

        Returns:
            True if the draft changed.
        """
        match event:
            case BarcodeScanned(payload=payload):
                return await self.handle_barcode(payload)
            case TextRecognized(transcript=transcript):
                return self.handle_text(transcript)
            case _:
                logger.warning("Ignoring unknown scan event: %r", event)
                return False

    async def handle_barcode(self, payload: str) -> bool:
        code = (payload or "").strip()
        if not code:
            logger.debug("Rejected empty barcode payload")
            return False

        draft = self._draft
        draft.barcode = code
        product = await self._lookup.lookup(code)
        if product is None:
            return True

        # The user may have edited the form while the lookup was pending.
        if not draft.name:
            draft.name = product.name
        if not draft.brand:
            draft.brand = product.brand or ""
        if not draft.size:
            draft.size = product.size or ""
        return True

    def handle_text(self, transcript: str) -> bool:
        found = self._parse_date(transcript)
        if found is None:
            return False
        logger.debug("Recognized expiration %s", found.isoformat())
        self._draft.expiration_date = found
        return True

    async def run(self, events: Iterable[Any] | AsyncIterable[Any]) -> int:
        """Consume a stream of events (or raw event mappings) in order.

        Malformed events are logged and skipped.

        Returns:
            Number of events that changed the draft.
        """
        changed = 0
        if isinstance(events, AsyncIterable):
            async for raw in events:
                changed += await self._handle_raw(raw)
        else:
            for raw in events:
                changed += await self._handle_raw(raw)
        return changed

    async def _handle_raw(self, raw: Any) -> bool:
        if isinstance(raw, Mapping):
            try:
                raw = scan_event_from_dict(raw)
            except ValueError as e:
                logger.warning("Skipping malformed scan event: %s", e)
                return False
        return await self.handle(raw)

    def edit(self, **fields: Any) -> Draft:
        """Record manual form edits on the draft.

        Raises:
            TypeError: If a field name is not a draft field.
            ValueError: If a location is unknown or a count is negative.
        """
        unknown = set(fields) - _DRAFT_FIELDS
        if unknown:
            raise TypeError(f"Unknown draft fields: {sorted(unknown)}")
        if "location" in fields:
            fields["location"] = Location.parse(fields["location"])
        for key in ("name", "brand", "size", "barcode"):
            if key in fields:
                fields[key] = fields[key] or ""
        for key in ("quantity", "par_level"):
            if key in fields:
                fields[key] = int(fields[key])
                if fields[key] < 0:
                    raise ValueError(f"{key} must be >= 0, got {fields[key]}")
        for key, value in fields.items():
            setattr(self._draft, key, value)
        return self._draft

    def save(self) -> Item:
        """Commit the draft to the inventory and start a fresh draft."""
        draft = self._draft
        item = self._model.create_item(
            name=draft.name.strip(),
            brand=draft.brand.strip() or None,
            size=draft.size.strip() or None,
            barcode=draft.barcode.strip() or None,
            location=draft.location,
            quantity=draft.quantity,
            par_level=draft.par_level,
        )
        if draft.expiration_date is not None:
            self._model.add_lot(item, expiration_date=draft.expiration_date)
        self._draft = self._new_draft()
        return item

    def cancel(self) -> None:
        self._draft = self._new_draft()
