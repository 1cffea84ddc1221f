"""Configuration file discovery and loading for cargo-bom.

The configuration belongs to the Cargo project being reported on, so it is
looked up next to the project's manifest and then in each parent directory,
the way Cargo itself finds ``.cargo/config.toml``. A member of a workspace
therefore picks up a file placed at the workspace root.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from cargo_bom.config.defaults import DEFAULT_CONFIG_NAMES, get_default_config
from cargo_bom.exceptions import ConfigurationError, LicenseExpressionError
from cargo_bom.models.config import BomConfig
from cargo_bom.resolvers.license import parse_license_expression

logger = logging.getLogger(__name__)


def config_search_dirs(manifest_path: Path | None = None) -> list[Path]:
    """Directories searched for a configuration file, nearest first.

    Args:
        manifest_path: The project's Cargo.toml. Defaults to the one in the
            current working directory.

    Returns:
        The manifest's directory followed by its ancestors.
    """
    if manifest_path is None:
        start = Path.cwd().resolve()
    else:
        start = manifest_path.resolve().parent
    return [start, *start.parents]


def find_config_file(manifest_path: Path | None = None) -> Path | None:
    """Find the configuration file governing a Cargo project.

    In each directory `.cargo-bom.yaml` wins over `.cargo-bom.yml`; the
    nearest directory holding either wins overall.

    Args:
        manifest_path: The project's Cargo.toml (``--manifest-path``).

    Returns:
        Path to the configuration file if found, None otherwise.
    """
    for directory in config_search_dirs(manifest_path):
        for name in DEFAULT_CONFIG_NAMES:
            candidate = directory / name
            if candidate.is_file():
                logger.debug("Using configuration file %s", candidate)
                return candidate
    return None


def _read_mapping(path: Path) -> dict[str, Any] | None:
    """Read a YAML document that must be a mapping (or empty)."""
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file '{path}': {e}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" at line {mark.line + 1}, column {mark.column + 1}" if mark else ""
        raise ConfigurationError(f"Invalid YAML syntax in '{path}'{where}: {e}") from e

    if data is None:
        return None
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid configuration in '{path}': "
            f"expected a mapping at root level, got {type(data).__name__}"
        )
    return data


def _format_validation_errors(error: ValidationError) -> str:
    """Render pydantic errors as "loc: msg" pairs joined by semicolons."""
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'root'}: {err['msg']}"
        for err in error.errors()
    )


def _check_overrides(config: BomConfig, path: Path) -> None:
    """Reject override expressions that could never be applied."""
    for package, override in (config.overrides or {}).items():
        try:
            parse_license_expression(override.license)
        except LicenseExpressionError as e:
            raise ConfigurationError(
                f"Invalid configuration in '{path}': overrides.{package}.license: {e}"
            ) from e


def load_config_file(path: Path) -> BomConfig:
    """Load and validate configuration from a YAML file.

    Empty and comment-only files give the defaults.

    Args:
        path: Path to the configuration file.

    Returns:
        Validated BomConfig instance.

    Raises:
        ConfigurationError: If the file cannot be read, is not a YAML
            mapping, fails validation or holds a malformed override.
    """
    data = _read_mapping(path)
    if data is None:
        return get_default_config()

    try:
        config = BomConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in '{path}': {_format_validation_errors(e)}"
        ) from e

    _check_overrides(config, path)
    return config


def load_config(
    config_path: str | None = None,
    manifest_path: Path | None = None,
) -> BomConfig:
    """Load the configuration for a Cargo project.

    Args:
        config_path: Explicit configuration file (``--config``).
        manifest_path: The project's Cargo.toml, where the search for a
            configuration file starts when none is given explicitly.

    Returns:
        BomConfig with loaded or default values.

    Raises:
        ConfigurationError: If the selected configuration file is invalid.
    """
    if config_path is not None:
        return load_config_file(Path(config_path))

    discovered = find_config_file(manifest_path)
    if discovered is None:
        return get_default_config()
    return load_config_file(discovered)
