"""TOML configuration loader for the pantry scanner."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

DEFAULT_DB_PATH = "~/.config/pantryscan/pantry.db"


@dataclass
class DatabaseConfig:
    path: str = DEFAULT_DB_PATH


@dataclass
class LookupConfig:
    backend: str = "fixture"
    catalog_path: str = ""


@dataclass
class InventoryConfig:
    soon_days: int = 7
    default_location: str = "Pantry"


@dataclass
class SchedulerConfig:
    enabled: bool = False
    expiry_schedule: str = "0 8 * * *"


@dataclass
class PantryConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    lookup: LookupConfig = field(default_factory=LookupConfig)
    inventory: InventoryConfig = field(default_factory=InventoryConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)


def load_config(path: str | Path | None = None) -> PantryConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The database path can be overridden via the PANTRY_DB_PATH environment
    variable.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    dbs = raw.get("database", {})
    lku = raw.get("lookup", {})
    inv = raw.get("inventory", {})
    sch = raw.get("scheduler", {})

    # Resolve DB path: environment variable → config file → default
    db_path = os.environ.get("PANTRY_DB_PATH", "") or dbs.get(
        "path", DEFAULT_DB_PATH
    )

    return PantryConfig(
        database=DatabaseConfig(path=db_path),
        lookup=LookupConfig(
            backend=lku.get("backend", "fixture"),
            catalog_path=lku.get("catalog_path", ""),
        ),
        inventory=InventoryConfig(
            soon_days=inv.get("soon_days", 7),
            default_location=inv.get("default_location", "Pantry"),
        ),
        scheduler=SchedulerConfig(
            enabled=sch.get("enabled", False),
            expiry_schedule=sch.get("expiry_schedule", "0 8 * * *"),
        ),
    )
