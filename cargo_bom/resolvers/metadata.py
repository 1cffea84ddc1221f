"""Dependency graph loading from Cargo's resolve output.

Cargo resolves the project and reports the result through
``cargo metadata --format-version 1``. This module runs that command (or
reads a saved copy of its output) and turns the ``packages`` and
``resolve`` sections into a frozen DependencyGraph.
"""
import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from cargo_bom.constants import CARGO_METADATA_FORMAT_VERSION
from cargo_bom.exceptions import GraphLoadError
from cargo_bom.models.graph import DependencyGraph, PackageId, PackageNode

logger = logging.getLogger(__name__)


class MetadataOptions(BaseModel):
    """Flags passed through to ``cargo metadata``."""

    model_config = {"extra": "forbid"}

    manifest_path: Optional[Path] = Field(
        default=None, description="Path to the project's Cargo.toml"
    )
    features: list[str] = Field(
        default_factory=list, description="Features to activate"
    )
    all_features: bool = Field(default=False, description="Activate all features")
    no_default_features: bool = Field(
        default=False, description="Do not activate the default feature"
    )
    filter_platform: Optional[str] = Field(
        default=None, description="Only include dependencies for this target triple"
    )
    frozen: bool = Field(default=False, description="Require Cargo.lock and cache are up to date")
    locked: bool = Field(default=False, description="Require Cargo.lock is up to date")
    offline: bool = Field(default=False, description="Run without accessing the network")
    color: Optional[Literal["auto", "always", "never"]] = Field(
        default=None, description="Coloring of Cargo's own diagnostics"
    )


def build_metadata_command(options: MetadataOptions) -> list[str]:
    """Build the ``cargo metadata`` command line.

    Cargo exports its own path in ``CARGO`` when running a subcommand;
    that binary is preferred over whichever ``cargo`` is on PATH.

    Args:
        options: Flags to pass through.

    Returns:
        Command as an argument list.
    """
    command = [
        os.environ.get("CARGO", "cargo"),
        "metadata",
        "--format-version",
        str(CARGO_METADATA_FORMAT_VERSION),
    ]
    if options.manifest_path is not None:
        command += ["--manifest-path", str(options.manifest_path)]
    if options.features:
        command += ["--features", ",".join(options.features)]
    if options.all_features:
        command.append("--all-features")
    if options.no_default_features:
        command.append("--no-default-features")
    if options.filter_platform:
        command += ["--filter-platform", options.filter_platform]
    if options.frozen:
        command.append("--frozen")
    if options.locked:
        command.append("--locked")
    if options.offline:
        command.append("--offline")
    if options.color:
        command += ["--color", options.color]
    return command


def run_cargo_metadata(options: MetadataOptions) -> dict[str, Any]:
    """Run ``cargo metadata`` and return its parsed output.

    Args:
        options: Flags to pass through.

    Returns:
        The metadata document.

    Raises:
        GraphLoadError: If Cargo cannot be run, fails, or prints invalid JSON.
    """
    command = build_metadata_command(options)
    logger.debug("Running %s", " ".join(command))
    try:
        completed = subprocess.run(
            command, capture_output=True, text=True, check=False
        )
    except OSError as e:
        raise GraphLoadError(f"Cannot run '{command[0]}': {e}") from e

    if completed.returncode != 0:
        detail = completed.stderr.strip() or "no error output"
        raise GraphLoadError(
            f"cargo metadata failed with exit code {completed.returncode}: {detail}"
        )
    return _parse_metadata(completed.stdout, "cargo metadata output")


def load_metadata_file(path: Path) -> dict[str, Any]:
    """Read a saved ``cargo metadata`` document.

    Args:
        path: File holding the JSON output of ``cargo metadata``.

    Returns:
        The metadata document.

    Raises:
        GraphLoadError: If the file cannot be read or is not valid JSON.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise GraphLoadError(f"Cannot read metadata file '{path}': {e}") from e
    return _parse_metadata(content, f"'{path}'")


def _parse_metadata(content: str, source: str) -> dict[str, Any]:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise GraphLoadError(f"Invalid JSON in {source}: {e}") from e
    if not isinstance(data, dict):
        raise GraphLoadError(
            f"Invalid metadata in {source}: expected an object, "
            f"got {type(data).__name__}"
        )
    return data


class GraphLoader:
    """Builds a DependencyGraph from ``cargo metadata`` output.

    The walk starts at the resolve root and visits every reachable package
    exactly once per identity (name, version). Two Cargo package ids can
    share an identity, e.g. the same release pulled from a registry and from
    git; the first one reached supplies the node.
    """

    def __init__(self, include_dev_dependencies: bool = True) -> None:
        """Initialize the loader.

        Args:
            include_dev_dependencies: Follow edges that exist only as
                dev-dependencies.
        """
        self._include_dev = include_dev_dependencies

    def build_graph(self, metadata: dict[str, Any]) -> DependencyGraph:
        """Materialize the resolved graph.

        Args:
            metadata: Parsed ``cargo metadata`` document.

        Returns:
            Frozen DependencyGraph rooted at the resolve root.

        Raises:
            GraphLoadError: If there is no resolvable root package or the
                document is inconsistent.
        """
        packages = self._index_packages(metadata.get("packages"))
        resolve = metadata.get("resolve")
        if not isinstance(resolve, dict):
            raise GraphLoadError(
                "No resolvable root package: metadata has no resolve section"
            )

        root_id = resolve.get("root")
        if not root_id:
            raise GraphLoadError(
                "No resolvable root package: the manifest is a virtual "
                "workspace; point --manifest-path at a member package"
            )
        if root_id not in packages:
            raise GraphLoadError(
                f"No resolvable root package: '{root_id}' is not in the package list"
            )

        identities = {
            cargo_id: self._identity(cargo_id, package)
            for cargo_id, package in packages.items()
        }
        edges = self._index_edges(resolve.get("nodes"), identities)
        root_identity = identities[root_id]

        # Identity -> cargo id that supplies the node
        chosen: dict[PackageId, str] = {}
        node_edges: dict[PackageId, tuple[PackageId, ...]] = {}
        visited: set[PackageId] = {root_identity}
        stack = [root_id]

        while stack:
            cargo_id = stack.pop()
            neighbours = sorted(
                (dep for dep in edges.get(cargo_id, []) if identities[dep] != root_identity),
                key=lambda dep: (identities[dep].sort_key(), dep),
            )
            node_edges[identities[cargo_id]] = tuple(
                dict.fromkeys(identities[dep] for dep in neighbours)
            )
            # Reversed so the smallest neighbour is expanded first
            for dep in reversed(neighbours):
                identity = identities[dep]
                if identity in visited:
                    continue
                visited.add(identity)
                chosen[identity] = dep
                stack.append(dep)

        top_level = set(node_edges[root_identity])
        nodes = [
            self._make_node(
                identity,
                packages[cargo_id],
                is_top_level=identity in top_level,
                dependencies=node_edges[identity],
            )
            for identity, cargo_id in chosen.items()
        ]
        nodes.sort(key=lambda node: node.id.sort_key())

        try:
            graph = DependencyGraph(
                root=self._make_node(
                    root_identity,
                    packages[root_id],
                    is_top_level=False,
                    dependencies=node_edges[root_identity],
                ),
                nodes=tuple(nodes),
            )
        except ValidationError as e:
            raise GraphLoadError(f"Inconsistent dependency graph: {e}") from e

        logger.info(
            "Loaded dependency graph for %s: %d packages, %d direct",
            root_identity,
            graph.total_count,
            len(top_level),
        )
        return graph

    @staticmethod
    def _index_packages(raw_packages: Any) -> dict[str, dict[str, Any]]:
        """Index the ``packages`` section by Cargo package id."""
        if not isinstance(raw_packages, list):
            raise GraphLoadError("Invalid metadata: 'packages' must be a list")
        index: dict[str, dict[str, Any]] = {}
        for package in raw_packages:
            if not isinstance(package, dict) or "id" not in package:
                raise GraphLoadError("Invalid metadata: package entry without an id")
            index[package["id"]] = package
        return index

    @staticmethod
    def _identity(cargo_id: str, package: dict[str, Any]) -> PackageId:
        name = package.get("name")
        version = package.get("version")
        if not name or not version:
            raise GraphLoadError(
                f"Invalid metadata: package '{cargo_id}' has no name or version"
            )
        return PackageId(name=name, version=version)

    def _index_edges(
        self,
        raw_nodes: Any,
        identities: dict[str, PackageId],
    ) -> dict[str, list[str]]:
        """Map each Cargo package id to the ids it depends on."""
        if not isinstance(raw_nodes, list):
            raise GraphLoadError("Invalid metadata: 'resolve.nodes' must be a list")
        edges: dict[str, list[str]] = {}
        for raw_node in raw_nodes:
            cargo_id = raw_node.get("id")
            if cargo_id not in identities:
                raise GraphLoadError(
                    f"Invalid metadata: resolve node '{cargo_id}' is not a known package"
                )
            dependencies = self._dependencies_of(raw_node)
            for dep in dependencies:
                if dep not in identities:
                    raise GraphLoadError(
                        f"Invalid metadata: '{cargo_id}' depends on unknown "
                        f"package '{dep}'"
                    )
            edges[cargo_id] = dependencies
        return edges

    def _dependencies_of(self, raw_node: dict[str, Any]) -> list[str]:
        deps = raw_node.get("deps")
        if deps is None:
            # Cargo releases before 1.30 only report the flat id list
            return list(raw_node.get("dependencies") or [])
        return [
            dep["pkg"]
            for dep in deps
            if self._include_dev or not self._is_dev_only(dep)
        ]

    @staticmethod
    def _is_dev_only(dep: dict[str, Any]) -> bool:
        kinds = dep.get("dep_kinds")
        if not kinds:
            return False
        return all(kind.get("kind") == "dev" for kind in kinds)

    @staticmethod
    def _make_node(
        identity: PackageId,
        package: dict[str, Any],
        is_top_level: bool,
        dependencies: tuple[PackageId, ...],
    ) -> PackageNode:
        manifest_path = package.get("manifest_path")
        return PackageNode(
            id=identity,
            license=package.get("license"),
            license_file=package.get("license_file"),
            source_dir=Path(manifest_path).parent if manifest_path else None,
            is_top_level=is_top_level,
            dependencies=dependencies,
        )
