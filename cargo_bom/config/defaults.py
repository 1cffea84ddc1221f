"""Default configuration values for cargo-bom."""

from __future__ import annotations

from cargo_bom.models.config import BomConfig

# Default configuration file names to search for
DEFAULT_CONFIG_NAMES = [".cargo-bom.yaml", ".cargo-bom.yml"]


def get_default_config() -> BomConfig:
    """Get the default configuration.

    Returns:
        BomConfig with every field at its default.
    """
    return BomConfig()
