"""Configuration Pydantic models for cargo-bom."""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from cargo_bom.constants import DEFAULT_MAX_WORKERS
from cargo_bom.models.report import Scope


class LicenseOverride(BaseModel):
    """Manual license override for a package.

    Used when the declared license is missing or wrong.
    """

    model_config = {"extra": "forbid"}

    license: str = Field(description="License expression to use instead")
    reason: str = Field(description="Reason for the override")


class BomConfig(BaseModel):
    """Configuration for cargo-bom.

    Every field has a default so a partial (or empty) file is valid.
    """

    model_config = {"extra": "forbid"}

    scope: Scope = Field(
        default=Scope.FULL_GRAPH,
        description="Report every transitive dependency or only direct ones.",
    )
    include_nested_license_files: bool = Field(
        default=False,
        description="Search the whole package source tree for license files.",
    )
    include_dev_dependencies: bool = Field(
        default=True,
        description="Follow dev-dependency edges when walking the graph.",
    )
    max_workers: int = Field(
        default=DEFAULT_MAX_WORKERS,
        ge=1,
        description="Maximum number of packages resolved concurrently.",
    )
    ignored_packages: Optional[List[str]] = Field(
        default=None,
        description="Package names to leave out of the report.",
    )
    overrides: Optional[Dict[str, LicenseOverride]] = Field(
        default=None,
        description="Manual license overrides by package name.",
    )
