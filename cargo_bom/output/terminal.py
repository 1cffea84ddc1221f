"""Terminal output formatter using Rich."""
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cargo_bom.models.report import ReportModel, Verbosity
from cargo_bom.output.text import decode_license_text


class TerminalFormatter:
    """Display a report as a Rich table followed by the license texts."""

    def __init__(
        self,
        console: Optional[Console] = None,
        verbosity: Verbosity = Verbosity.NORMAL,
    ) -> None:
        """Initialize the formatter with a Rich console.

        Args:
            console: Optional Rich Console instance. If not provided,
                a new Console will be created.
            verbosity: Output verbosity level.
        """
        self._console = console if console is not None else Console()
        self._verbosity = verbosity

    def format_report(self, report: ReportModel) -> None:
        """Display the report.

        Quiet mode prints the summary line only; verbose mode also marks
        overridden licenses and lists ignored packages.

        Args:
            report: The report to display.
        """
        if self._verbosity == Verbosity.QUIET:
            self._print_summary(report)
            return

        if report.total_packages == 0:
            self._console.print("[yellow]No dependencies found[/yellow]")
            return

        table = Table(title="Bill of Materials")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Version", style="magenta")
        table.add_column("Licenses", style="green")

        for row in report.rows:
            licenses = escape(row.licenses_display)
            if row.overridden and self._verbosity == Verbosity.VERBOSE:
                licenses += " [blue]\\[override][/blue]"
            table.add_row(row.name, row.version, licenses)

        self._console.print(table)
        if self._verbosity == Verbosity.VERBOSE:
            self._print_overrides(report)
        self._console.print("")

        for block in report.license_blocks:
            self._console.print(f"[bold]{block.begin_marker}[/bold]", highlight=False)
            for license_file in block.files:
                self._console.print(
                    f"==> {license_file.filename} <==", markup=False, highlight=False
                )
                self._console.out(
                    decode_license_text(license_file.content).rstrip("\n"),
                    highlight=False,
                )
            self._console.print(f"[bold]{block.end_marker}[/bold]", highlight=False)
            self._console.print("")

        self._print_summary(report)

    def _print_overrides(self, report: ReportModel) -> None:
        """List each manual override with the declared licenses it replaced."""
        for row in report.rows:
            if not row.overridden:
                continue
            declared = str(row.original_licenses) if row.original_licenses else "none"
            self._console.print(
                f"[blue]Override[/blue] {escape(row.name)} {escape(row.version)}: "
                f"{escape(row.licenses_display)} (declared: {escape(declared)})"
                f" - {escape(row.override_reason or '')}",
                highlight=False,
            )

    def _print_summary(self, report: ReportModel) -> None:
        self._console.print(
            f"[bold]Packages:[/bold] {report.total_packages}  "
            f"[bold]License texts:[/bold] {len(report.license_blocks)}  "
            f"[bold]No license info:[/bold] {report.missing_license_count}"
        )
        if report.ignored_names and self._verbosity == Verbosity.VERBOSE:
            self._console.print(
                f"[bold]Ignored:[/bold] {', '.join(report.ignored_names)}"
            )
