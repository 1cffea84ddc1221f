"""Configuration handling for cargo-bom."""
from __future__ import annotations

from cargo_bom.config.defaults import DEFAULT_CONFIG_NAMES, get_default_config
from cargo_bom.config.loader import (
    find_config_file,
    load_config,
    load_config_file,
)
from cargo_bom.models.config import BomConfig, LicenseOverride

__all__ = [
    "BomConfig",
    "DEFAULT_CONFIG_NAMES",
    "LicenseOverride",
    "find_config_file",
    "get_default_config",
    "load_config",
    "load_config_file",
]
