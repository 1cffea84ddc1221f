"""Package filtering for ignored packages configuration."""

from __future__ import annotations

from typing import NamedTuple, Optional

from cargo_bom.models.graph import PackageNode


class FilterResult(NamedTuple):
    """Result of filtering packages.

    Attributes:
        nodes: Nodes kept after filtering.
        ignored_names: Names of the nodes that were left out, in input order.
    """

    nodes: list[PackageNode]
    ignored_names: list[str]

    @property
    def ignored_count(self) -> int:
        return len(self.ignored_names)


def filter_ignored_packages(
    nodes: list[PackageNode],
    ignored_packages: Optional[list[str]],
) -> FilterResult:
    """Leave out packages listed in the ignored_packages configuration.

    Package name matching is case-sensitive and covers every version of
    the named package.

    Args:
        nodes: Nodes to filter.
        ignored_packages: Package names to leave out, or None.

    Returns:
        FilterResult with the remaining nodes and the ignored names.
    """
    if not ignored_packages:
        return FilterResult(nodes=nodes, ignored_names=[])

    ignored_set = set(ignored_packages)
    kept: list[PackageNode] = []
    ignored_names: list[str] = []

    for node in nodes:
        if node.name in ignored_set:
            ignored_names.append(node.name)
        else:
            kept.append(node)

    return FilterResult(nodes=kept, ignored_names=ignored_names)
