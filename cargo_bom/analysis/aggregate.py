"""Report assembly from a resolved dependency graph."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Optional

from cargo_bom.analysis.filtering import filter_ignored_packages
from cargo_bom.models.graph import DependencyGraph, PackageId, PackageNode
from cargo_bom.models.report import (
    LicenseBlock,
    PackageLicenses,
    ReportModel,
    ReportRow,
    Scope,
)

logger = logging.getLogger(__name__)


def select_nodes(graph: DependencyGraph, scope: Scope) -> list[PackageNode]:
    """Select the nodes a report covers.

    Args:
        graph: The resolved dependency graph.
        scope: FULL_GRAPH for every package, TOP_LEVEL_ONLY for direct
            dependencies of the root.

    Returns:
        Selected nodes. Identities are unique because the graph's are.
    """
    if scope == Scope.TOP_LEVEL_ONLY:
        return graph.top_level_nodes()
    return list(graph.nodes)


def build_report(
    graph: DependencyGraph,
    results: Mapping[PackageId, PackageLicenses],
    scope: Scope = Scope.FULL_GRAPH,
    ignored_packages: Optional[list[str]] = None,
) -> ReportModel:
    """Assemble the Bill of Materials for a graph.

    Nodes are sorted by name and then by semantic version. Each node
    produces one row; nodes with license files also produce a license
    block, in the same order. Different versions of one package are
    separate rows.

    Args:
        graph: The resolved dependency graph.
        results: Resolved licenses keyed by package identity. A node with no
            entry is reported with no licenses and no texts.
        scope: Which packages to include.
        ignored_packages: Package names to leave out.

    Returns:
        ReportModel for the renderers. An empty selection gives an empty
        model.
    """
    filtered = filter_ignored_packages(select_nodes(graph, scope), ignored_packages)
    selected = sorted(filtered.nodes, key=lambda node: node.id.sort_key())

    rows: list[ReportRow] = []
    blocks: list[LicenseBlock] = []
    for node in selected:
        result = results.get(node.id)
        if result is None:
            logger.debug("No license result for %s", node.id)
            result = PackageLicenses(package=node.id)

        rows.append(
            ReportRow(
                name=node.name,
                version=node.version,
                licenses=result.finding,
                overridden=result.is_overridden,
                original_licenses=result.original_finding,
                override_reason=result.override_reason,
            )
        )
        if result.files:
            blocks.append(
                LicenseBlock(name=node.name, version=node.version, files=result.files)
            )

    return ReportModel(
        rows=tuple(rows),
        license_blocks=tuple(blocks),
        scope=scope,
        ignored_names=tuple(sorted(set(filtered.ignored_names))),
    )
