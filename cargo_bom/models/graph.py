"""Dependency graph models for cargo-bom.

The graph is built once from Cargo's resolve output and is immutable
afterwards, so it can be shared by every per-package resolution task.
"""

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, PrivateAttr, computed_field, model_validator
from semantic_version import Version


def parse_version(version: str) -> Version:
    """Parse a version string for ordering purposes.

    Strict semantic versions are parsed as-is; anything else is coerced.
    Strings that cannot be coerced sort as 0.0.0.

    Args:
        version: Version string as reported by Cargo.

    Returns:
        Parsed semantic version.
    """
    try:
        return Version(version)
    except ValueError:
        pass
    try:
        return Version.coerce(version)
    except ValueError:
        return Version("0.0.0")


class PackageId(BaseModel):
    """Identity of a resolved package: its name and version."""

    name: str = Field(description="Package name")
    version: str = Field(description="Package version")

    model_config = {"extra": "forbid", "frozen": True}

    def sort_key(self) -> tuple[str, tuple[Any, ...], str]:
        """Key ordering packages by name, then semantic version precedence.

        Precedence ignores build metadata, so versions differing only there
        (`1.0.0+a`, `1.0.0+b`) are ordered by the raw version string.
        """
        return (self.name, parse_version(self.version).precedence_key, self.version)

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


class PackageNode(BaseModel):
    """A resolved package in the dependency graph."""

    id: PackageId = Field(description="Package identity")
    license: Optional[str] = Field(
        default=None,
        description="Declared license expression, raw as found in the manifest",
    )
    license_file: Optional[str] = Field(
        default=None,
        description="Declared license-file path, raw as found in the manifest",
    )
    source_dir: Optional[Path] = Field(
        default=None,
        description="Directory containing the package's extracted sources",
    )
    is_top_level: bool = Field(
        default=False,
        description="True if the root project depends on this package directly",
    )
    dependencies: tuple[PackageId, ...] = Field(
        default=(),
        description="Identities of the packages this package depends on",
    )

    model_config = {"extra": "forbid", "frozen": True}

    @property
    def name(self) -> str:
        return self.id.name

    @property
    def version(self) -> str:
        return self.id.version


class DependencyGraph(BaseModel):
    """Resolved dependency graph of a Cargo project.

    ``nodes`` holds every package reachable from ``root`` (the root itself
    excluded). Node identities are unique and every edge references a node
    in ``nodes``; both are checked on construction.
    """

    root: PackageNode = Field(description="The project being reported on")
    nodes: tuple[PackageNode, ...] = Field(
        default=(),
        description="Every package reachable from the root",
    )

    model_config = {"extra": "forbid", "frozen": True}

    _index: dict[PackageId, PackageNode] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _check_integrity(self) -> "DependencyGraph":
        seen: set[PackageId] = set()
        for node in self.nodes:
            if node.id in seen:
                raise ValueError(f"duplicate package {node.id}")
            seen.add(node.id)
        for node in (self.root, *self.nodes):
            for dep in node.dependencies:
                if dep not in seen:
                    raise ValueError(f"{node.id} depends on unknown package {dep}")
        return self

    def model_post_init(self, __context: object) -> None:
        self._index = {node.id: node for node in self.nodes}

    def get(self, package_id: PackageId) -> Optional[PackageNode]:
        """Look up a node by identity.

        Args:
            package_id: Identity to look up.

        Returns:
            The node, or None if the package is not in the graph.
        """
        return self._index.get(package_id)

    def __contains__(self, package_id: object) -> bool:
        return package_id in self._index

    def top_level_nodes(self) -> list[PackageNode]:
        """Get the direct dependencies of the root project."""
        return [node for node in self.nodes if node.is_top_level]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_count(self) -> int:
        """Number of packages in the graph (root excluded)."""
        return len(self.nodes)
