"""Output formatters for cargo-bom."""

from cargo_bom.output.report_json import ReportJsonFormatter
from cargo_bom.output.terminal import TerminalFormatter
from cargo_bom.output.text import TextFormatter

__all__ = [
    "ReportJsonFormatter",
    "TerminalFormatter",
    "TextFormatter",
]
