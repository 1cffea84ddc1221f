"""Pydantic data models for cargo-bom."""

from cargo_bom.models.config import BomConfig, LicenseOverride
from cargo_bom.models.graph import DependencyGraph, PackageId, PackageNode
from cargo_bom.models.report import (
    LicenseBlock,
    LicenseFile,
    LicenseSet,
    PackageLicenses,
    ReportModel,
    ReportOptions,
    ReportRow,
    Scope,
    Verbosity,
)

__all__ = [
    "BomConfig",
    "DependencyGraph",
    "LicenseBlock",
    "LicenseFile",
    "LicenseOverride",
    "LicenseSet",
    "PackageId",
    "PackageLicenses",
    "PackageNode",
    "ReportModel",
    "ReportOptions",
    "ReportRow",
    "Scope",
    "Verbosity",
]
