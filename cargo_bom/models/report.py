"""Report models for cargo-bom."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

from cargo_bom.constants import LICENSE_BLOCK_BEGIN, LICENSE_BLOCK_END
from cargo_bom.models.graph import PackageId


class Scope(Enum):
    """Which packages of the graph a report covers."""

    TOP_LEVEL_ONLY = "top-level-only"
    FULL_GRAPH = "full-graph"


class Verbosity(Enum):
    """Output verbosity levels."""

    QUIET = "quiet"
    NORMAL = "normal"
    VERBOSE = "verbose"


class ReportOptions(BaseModel):
    """Options for rendering a report."""

    model_config = {"extra": "forbid"}

    format: Literal["text", "terminal", "json"] = Field(
        default="text",
        description="Output format for the report",
    )
    verbosity: Verbosity = Field(
        default=Verbosity.NORMAL,
        description="Output verbosity level (quiet, normal, verbose)",
    )


class LicenseSet(BaseModel):
    """Deduplicated, alphabetically sorted license identifiers.

    Identifiers compare case-sensitively, so "MIT" and "mit" are distinct.
    An empty set means no license was declared.
    """

    identifiers: tuple[str, ...] = Field(
        default=(),
        description="Sorted, unique license identifiers",
    )

    model_config = {"extra": "forbid", "frozen": True}

    @field_validator("identifiers")
    @classmethod
    def _normalize(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(sorted({item.strip() for item in value if item.strip()}))

    @classmethod
    def of(cls, *identifiers: str) -> LicenseSet:
        """Build a set from identifiers given as arguments."""
        return cls(identifiers=identifiers)

    def __len__(self) -> int:
        return len(self.identifiers)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self.identifiers

    def __str__(self) -> str:
        return ", ".join(self.identifiers)


class LicenseFile(BaseModel):
    """A license text file read from a package's source directory."""

    package: PackageId = Field(description="Package owning the file")
    filename: str = Field(description="Path relative to the package source directory")
    path: Path = Field(description="Absolute path the file was read from")
    content: bytes = Field(description="Raw file content")

    model_config = {"extra": "forbid", "frozen": True}


class PackageLicenses(BaseModel):
    """License information resolved for a single package."""

    package: PackageId = Field(description="Package the result belongs to")
    finding: LicenseSet = Field(
        default_factory=LicenseSet,
        description="Declared (or overridden) license identifiers",
    )
    files: tuple[LicenseFile, ...] = Field(
        default=(),
        description="License files in filename order",
    )
    original_finding: Optional[LicenseSet] = Field(
        default=None,
        description="Declared identifiers before a manual override",
    )
    override_reason: Optional[str] = Field(
        default=None,
        description="Reason for a manual license override",
    )

    model_config = {"extra": "forbid", "frozen": True}

    @property
    def is_overridden(self) -> bool:
        """True if a manual override replaced the declared licenses."""
        return self.override_reason is not None


class ReportRow(BaseModel):
    """One line of the Bill of Materials table."""

    name: str = Field(description="Package name")
    version: str = Field(description="Package version")
    licenses: LicenseSet = Field(
        default_factory=LicenseSet,
        description="License identifiers of the package",
    )
    overridden: bool = Field(
        default=False,
        description="True if the licenses come from a manual override",
    )
    original_licenses: Optional[LicenseSet] = Field(
        default=None,
        description="Declared license identifiers replaced by an override",
    )
    override_reason: Optional[str] = Field(
        default=None,
        description="Reason given for the override",
    )

    model_config = {"extra": "forbid", "frozen": True}

    @property
    def licenses_display(self) -> str:
        """Comma-joined license identifiers (empty if none declared)."""
        return str(self.licenses)


class LicenseBlock(BaseModel):
    """The license texts of one package, in locator order."""

    name: str = Field(description="Package name")
    version: str = Field(description="Package version")
    files: tuple[LicenseFile, ...] = Field(description="License files of the package")

    model_config = {"extra": "forbid", "frozen": True}

    @property
    def begin_marker(self) -> str:
        return LICENSE_BLOCK_BEGIN.format(name=self.name, version=self.version)

    @property
    def end_marker(self) -> str:
        return LICENSE_BLOCK_END.format(name=self.name, version=self.version)

    @property
    def content(self) -> bytes:
        """Literal concatenation of the license file contents."""
        return b"".join(license_file.content for license_file in self.files)


class ReportModel(BaseModel):
    """Bill of Materials ready for rendering.

    Rows are sorted by package name and version; license blocks follow the
    same order and exist only for packages with at least one license file.
    """

    rows: tuple[ReportRow, ...] = Field(default=(), description="Table rows")
    license_blocks: tuple[LicenseBlock, ...] = Field(
        default=(),
        description="License texts per package",
    )
    scope: Scope = Field(default=Scope.FULL_GRAPH, description="Selected scope")
    ignored_names: tuple[str, ...] = Field(
        default=(),
        description="Names of packages left out by configuration",
    )

    model_config = {"extra": "forbid", "frozen": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_packages(self) -> int:
        """Number of rows in the report."""
        return len(self.rows)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def missing_license_count(self) -> int:
        """Rows with neither declared licenses nor license texts."""
        with_texts = {(block.name, block.version) for block in self.license_blocks}
        return sum(
            1
            for row in self.rows
            if not row.licenses and (row.name, row.version) not in with_texts
        )
