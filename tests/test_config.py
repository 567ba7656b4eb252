"""Tests for config loading."""

import os
import tempfile
from unittest.mock import patch

from pantryscan.config import (
    DEFAULT_DB_PATH,
    DatabaseConfig,
    LookupConfig,
    PantryConfig,
    SchedulerConfig,
    load_config,
)


def test_load_config_defaults():
    """Loading with no path returns all defaults."""
    with patch.dict(os.environ, {}, clear=True):
        config = load_config()
    assert isinstance(config, PantryConfig)
    assert config.database.path == DEFAULT_DB_PATH
    assert config.lookup.backend == "fixture"
    assert config.lookup.catalog_path == ""
    assert config.inventory.soon_days == 7
    assert config.inventory.default_location == "Pantry"
    assert config.scheduler.enabled is False
    assert config.scheduler.expiry_schedule == "0 8 * * *"


def test_load_config_nonexistent_file():
    """Loading a nonexistent file returns defaults."""
    config = load_config("/nonexistent/path.toml")
    assert config.lookup.backend == "fixture"


def test_load_config_from_toml():
    """Loading a valid TOML file populates config."""
    toml_content = b"""\
[database]
path = "/var/lib/pantry/pantry.db"

[lookup]
backend = "json"
catalog_path = "/etc/pantry/catalog.json"

[inventory]
soon_days = 3
default_location = "Fridge"

[scheduler]
enabled = true
expiry_schedule = "30 7 * * *"
"""
    with tempfile.NamedTemporaryFile(suffix=".toml", delete=False) as f:
        f.write(toml_content)
        f.flush()
        with patch.dict(os.environ, {}, clear=True):
            config = load_config(f.name)

    os.unlink(f.name)

    assert config.database.path == "/var/lib/pantry/pantry.db"
    assert config.lookup.backend == "json"
    assert config.lookup.catalog_path == "/etc/pantry/catalog.json"
    assert config.inventory.soon_days == 3
    assert config.inventory.default_location == "Fridge"
    assert config.scheduler.enabled is True
    assert config.scheduler.expiry_schedule == "30 7 * * *"


def test_load_config_partial_toml(tmp_path):
    """Sections missing from the file keep their defaults."""
    path = tmp_path / "config.toml"
    path.write_text('[lookup]\nbackend = "json"\n', encoding="utf-8")

    config = load_config(path)
    assert config.lookup.backend == "json"
    assert config.inventory.soon_days == 7
    assert config.scheduler.enabled is False


def test_env_overrides_db_path(tmp_path):
    """PANTRY_DB_PATH takes precedence over the config file."""
    path = tmp_path / "config.toml"
    path.write_text('[database]\npath = "/from/file.db"\n', encoding="utf-8")

    with patch.dict(os.environ, {"PANTRY_DB_PATH": "/from/env.db"}):
        config = load_config(path)
    assert config.database.path == "/from/env.db"


def test_dataclass_defaults():
    assert DatabaseConfig().path == DEFAULT_DB_PATH
    assert LookupConfig().backend == "fixture"
    assert SchedulerConfig().enabled is False
