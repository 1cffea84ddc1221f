"""Scanner module: graph loading and per-package license resolution."""
import asyncio
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from cargo_bom.analysis.aggregate import build_report, select_nodes
from cargo_bom.models.config import BomConfig
from cargo_bom.models.graph import DependencyGraph, PackageId, PackageNode
from cargo_bom.models.report import PackageLicenses, ReportModel
from cargo_bom.resolvers.files import locate_license_files
from cargo_bom.resolvers.license import apply_license_override, resolve_license
from cargo_bom.resolvers.metadata import (
    GraphLoader,
    MetadataOptions,
    load_metadata_file,
    run_cargo_metadata,
)

logger = logging.getLogger(__name__)


def load_graph(
    options: MetadataOptions,
    config: BomConfig,
    metadata_file: Optional[Path] = None,
) -> DependencyGraph:
    """Obtain the resolved dependency graph of the project.

    Args:
        options: Flags for ``cargo metadata``.
        config: Configuration (dev-dependency handling).
        metadata_file: Saved ``cargo metadata`` output to use instead of
            running Cargo.

    Returns:
        Frozen DependencyGraph.

    Raises:
        GraphLoadError: If the graph cannot be obtained.
    """
    if metadata_file is not None:
        metadata = load_metadata_file(metadata_file)
    else:
        metadata = run_cargo_metadata(options)
    loader = GraphLoader(include_dev_dependencies=config.include_dev_dependencies)
    return loader.build_graph(metadata)


def resolve_package(node: PackageNode, config: BomConfig) -> PackageLicenses:
    """Resolve declared licenses and license texts of one package.

    Only reads the package's own metadata and files, so packages can be
    resolved in any order and concurrently.

    Args:
        node: Package to resolve.
        config: Configuration (nested search, overrides).

    Returns:
        PackageLicenses for the node.
    """
    result = PackageLicenses(
        package=node.id,
        finding=resolve_license(node),
        files=locate_license_files(
            node.id,
            node.source_dir,
            include_nested=config.include_nested_license_files,
            declared=node.license_file,
        ),
    )
    return apply_license_override(result, config)


async def resolve_packages(
    graph: DependencyGraph,
    config: BomConfig,
    console: Optional[Console] = None,
    show_progress: bool = True,
) -> dict[PackageId, PackageLicenses]:
    """Resolve the packages in the configured scope concurrently.

    Filesystem work runs in worker threads, at most ``config.max_workers``
    at a time. The graph is only read.

    Args:
        graph: Frozen dependency graph.
        config: Configuration for resolution.
        console: Optional Rich Console for progress display.
        show_progress: Whether to show progress indicator (default: True).

    Returns:
        Results keyed by package identity, one per selected node.
    """
    semaphore = asyncio.Semaphore(config.max_workers)

    async def resolve_one(node: PackageNode) -> PackageLicenses:
        async with semaphore:
            return await asyncio.to_thread(resolve_package, node, config)

    nodes = select_nodes(graph, config.scope)
    results: dict[PackageId, PackageLicenses] = {}

    if console is not None and show_progress and len(nodes) > 0:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task_id = progress.add_task(
                f"Collecting licenses for {len(nodes)} packages...",
                total=len(nodes),
            )
            for coro in asyncio.as_completed([resolve_one(node) for node in nodes]):
                result = await coro
                results[result.package] = result
                progress.advance(task_id)
        return results

    for result in await asyncio.gather(*(resolve_one(node) for node in nodes)):
        results[result.package] = result
    return results


def generate_report(
    graph: DependencyGraph,
    config: BomConfig,
    console: Optional[Console] = None,
    show_progress: bool = True,
) -> ReportModel:
    """Resolve all packages and assemble the report.

    Args:
        graph: Frozen dependency graph.
        config: Configuration (scope, ignored packages, resolution options).
        console: Optional Rich Console for progress display.
        show_progress: Whether to show progress indicator.

    Returns:
        ReportModel for the configured scope.
    """
    results = asyncio.run(resolve_packages(graph, config, console, show_progress))
    report = build_report(
        graph,
        results,
        scope=config.scope,
        ignored_packages=config.ignored_packages,
    )
    logger.info(
        "Report covers %d packages, %d with license texts",
        report.total_packages,
        len(report.license_blocks),
    )
    return report
