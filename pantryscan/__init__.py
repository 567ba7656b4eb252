"""Pantry inventory with barcode lookup and expiration date scanning."""

from .config import (
    DatabaseConfig,
    InventoryConfig,
    LookupConfig,
    PantryConfig,
    SchedulerConfig,
    load_config,
)
from .dates import parse_first_date
from .ingest import (
    BarcodeScanned,
    Draft,
    ScanEvent,
    ScanIngestPipeline,
    TextRecognized,
    scan_event_from_dict,
)
from .inventory import InventoryModel, ItemSummary
from .lookup import (
    CatalogBackend,
    CatalogError,
    Product,
    ProductLookupCache,
    create_catalog,
)
from .models import (
    Item,
    Location,
    Lot,
    Urgency,
    classify_expiration,
    days_until,
    display_name,
    is_low_stock,
    soonest_expiration,
)

__all__ = [
    "Item",
    "Lot",
    "Location",
    "Urgency",
    "soonest_expiration",
    "days_until",
    "classify_expiration",
    "is_low_stock",
    "display_name",
    "parse_first_date",
    "Product",
    "CatalogBackend",
    "CatalogError",
    "ProductLookupCache",
    "create_catalog",
    "InventoryModel",
    "ItemSummary",
    "ScanIngestPipeline",
    "ScanEvent",
    "BarcodeScanned",
    "TextRecognized",
    "Draft",
    "scan_event_from_dict",
    "PantryConfig",
    "DatabaseConfig",
    "LookupConfig",
    "InventoryConfig",
    "SchedulerConfig",
    "load_config",
]
