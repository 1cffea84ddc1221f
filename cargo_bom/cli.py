"""CLI entry point for cargo-bom."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Literal, Optional, cast

import click
from rich.console import Console
from rich.logging import RichHandler

from cargo_bom import __version__
from cargo_bom.config import BomConfig, load_config
from cargo_bom.constants import EXIT_ERROR, EXIT_SUCCESS
from cargo_bom.exceptions import CargoBomError, ConfigurationError
from cargo_bom.models.report import ReportModel, ReportOptions, Scope, Verbosity
from cargo_bom.output.report_json import ReportJsonFormatter
from cargo_bom.output.terminal import TerminalFormatter
from cargo_bom.output.text import TextFormatter
from cargo_bom.resolvers.metadata import MetadataOptions
from cargo_bom.scanner import generate_report, load_graph

ColorChoice = Literal["auto", "always", "never"]


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-V", "--version")
@click.option(
    "--manifest-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to Cargo.toml (default: the one in the current directory).",
)
@click.option(
    "--metadata-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Use saved `cargo metadata --format-version 1` output instead of running Cargo.",
)
@click.option(
    "--scope",
    type=click.Choice([scope.value for scope in Scope]),
    default=None,
    help="Report every transitive dependency or only direct ones (default: full-graph).",
)
@click.option(
    "--nested/--no-nested",
    default=None,
    help="Also search package subdirectories for license files.",
)
@click.option(
    "--no-dev",
    is_flag=True,
    default=False,
    help="Do not follow dev-dependencies.",
)
@click.option(
    "--features",
    multiple=True,
    help="Space or comma separated list of features to activate.",
)
@click.option("--all-features", is_flag=True, default=False, help="Activate all features.")
@click.option(
    "--no-default-features",
    is_flag=True,
    default=False,
    help="Do not activate the `default` feature.",
)
@click.option(
    "--filter-platform",
    default=None,
    help="Only include dependencies matching the given target triple.",
)
@click.option("--frozen", is_flag=True, default=False, help="Require Cargo.lock and cache are up to date.")
@click.option("--locked", is_flag=True, default=False, help="Require Cargo.lock is up to date.")
@click.option("--offline", is_flag=True, default=False, help="Run without accessing the network.")
@click.option(
    "--color",
    type=click.Choice(["auto", "always", "never"]),
    default="auto",
    help="Coloring: auto, always, never.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "terminal", "json"], case_sensitive=False),
    default="text",
    help="Output format (default: text).",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write report to file instead of stdout.",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to configuration file.",
)
@click.option(
    "--verbose",
    "-v",
    "verbose_count",
    count=True,
    help="Use verbose output (-vv for debug output).",
)
@click.option(
    "--quiet",
    "-q",
    "quiet_flag",
    is_flag=True,
    default=False,
    help="Print warnings and progress only on error.",
)
def main(
    manifest_path: Optional[Path],
    metadata_file: Optional[Path],
    scope: Optional[str],
    nested: Optional[bool],
    no_dev: bool,
    features: tuple[str, ...],
    all_features: bool,
    no_default_features: bool,
    filter_platform: Optional[str],
    frozen: bool,
    locked: bool,
    offline: bool,
    color: str,
    output_format: str,
    output_path: str | None,
    config_path: str | None,
    verbose_count: int,
    quiet_flag: bool,
) -> None:
    """Produce a Bill of Materials from a Cargo project's dependencies.

    Lists every resolved dependency with its declared licenses, followed
    by the text of each dependency's LICENSE* and UNLICENSE* files.

    \b
    Examples:
        cargo bom
        cargo bom --scope top-level-only
        cargo bom --manifest-path path/to/Cargo.toml --locked
        cargo bom --format json --output bom.json
        cargo metadata --format-version 1 > meta.json && cargo bom --metadata-file meta.json
    """
    if verbose_count and quiet_flag:
        raise click.UsageError("--verbose and --quiet are mutually exclusive.")

    if quiet_flag:
        verbosity = Verbosity.QUIET
    elif verbose_count:
        verbosity = Verbosity.VERBOSE
    else:
        verbosity = Verbosity.NORMAL

    color_choice = cast(ColorChoice, color)
    console = _make_console(color_choice)
    error_console = _make_console(color_choice, stderr=True)
    _configure_logging(error_console, verbose_count, quiet_flag)

    format_value = cast(Literal["text", "terminal", "json"], output_format.lower())
    options = ReportOptions(format=format_value, verbosity=verbosity)

    try:
        config = _apply_cli_overrides(
            load_config(config_path, manifest_path), scope, nested, no_dev
        )
        metadata_options = MetadataOptions(
            manifest_path=manifest_path,
            features=_split_features(features),
            all_features=all_features,
            no_default_features=no_default_features,
            filter_platform=filter_platform,
            frozen=frozen,
            locked=locked,
            offline=offline,
            color=color_choice,
        )
        graph = load_graph(metadata_options, config, metadata_file)

        # Progress only when the terminal table goes to the screen
        show_progress = (
            options.format == "terminal"
            and output_path is None
            and options.verbosity != Verbosity.QUIET
        )
        report = generate_report(
            graph,
            config,
            console=console if show_progress else None,
            show_progress=show_progress,
        )
        _display_report(report, options, console, output_path)
        sys.exit(EXIT_SUCCESS)

    except CargoBomError as e:
        _display_error(e, error_console)
        sys.exit(EXIT_ERROR)


def run() -> None:
    """Console script entry point.

    Cargo runs ``cargo-bom bom ...`` for ``cargo bom ...``; the extra
    subcommand name is dropped.
    """
    args = sys.argv[1:]
    if args[:1] == ["bom"]:
        args = args[1:]
    main(args=args, prog_name="cargo-bom")


def _make_console(color: ColorChoice, stderr: bool = False) -> Console:
    if color == "never":
        return Console(stderr=stderr, no_color=True)
    if color == "always":
        return Console(stderr=stderr, force_terminal=True)
    return Console(stderr=stderr)


def _configure_logging(console: Console, verbose_count: int, quiet: bool) -> None:
    """Route cargo_bom log records to stderr through Rich.

    Args:
        console: Console writing to stderr.
        verbose_count: Number of -v flags (1 = info, 2+ = debug).
        quiet: Only show errors.
    """
    if quiet:
        level = logging.ERROR
    elif verbose_count >= 2:
        level = logging.DEBUG
    elif verbose_count == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    package_logger = logging.getLogger("cargo_bom")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.addHandler(
        RichHandler(console=console, show_time=False, show_path=False)
    )
    package_logger.setLevel(level)


def _split_features(features: tuple[str, ...]) -> list[str]:
    """Flatten --features values given as repeated, comma or space separated."""
    result: list[str] = []
    for value in features:
        result.extend(item for item in value.replace(",", " ").split() if item)
    return result


def _apply_cli_overrides(
    config: BomConfig,
    scope: Optional[str],
    nested: Optional[bool],
    no_dev: bool,
) -> BomConfig:
    """Apply command-line flags on top of the loaded configuration."""
    update: dict[str, object] = {}
    if scope is not None:
        update["scope"] = Scope(scope)
    if nested is not None:
        update["include_nested_license_files"] = nested
    if no_dev:
        update["include_dev_dependencies"] = False
    return config.model_copy(update=update) if update else config


def _write_output_to_file(content: str, path: str, console: Console) -> None:
    """Write report content to file.

    Args:
        content: The report content to write.
        path: The file path to write to.
        console: Console for status messages.

    Raises:
        ConfigurationError: If file cannot be written.
    """
    file_path = Path(path)

    try:
        if file_path.exists():
            console.print(
                f"[yellow]Warning: Overwriting existing file: {path}[/yellow]"
            )
        file_path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot write to file '{path}': {e}") from e

    console.print(f"[green]Report written to {path}[/green]")


def _display_report(
    report: ReportModel,
    options: ReportOptions,
    console: Console,
    output_path: str | None = None,
) -> None:
    """Display the report in the requested format.

    Args:
        report: The report to display.
        options: Format and verbosity.
        console: Console for terminal output.
        output_path: Optional file path to write output to.
    """
    if options.format == "json":
        content = ReportJsonFormatter().format_report(report)
    elif options.format == "terminal" and output_path is None:
        TerminalFormatter(console=console, verbosity=options.verbosity).format_report(
            report
        )
        return
    else:
        # Terminal format to file uses plain text instead
        content = TextFormatter().format_report(report)

    if output_path:
        _write_output_to_file(content, output_path, console)
    else:
        click.echo(content, nl=not content.endswith("\n"))


def _display_error(error: CargoBomError, console: Console) -> None:
    """Display error message on stderr.

    Args:
        error: The exception that occurred.
        console: Console writing to stderr.
    """
    message = f"Error: {type(error).__name__}: {error}"
    console.print(
        message, style="red bold", markup=False, highlight=False, soft_wrap=True
    )


if __name__ == "__main__":
    run()
