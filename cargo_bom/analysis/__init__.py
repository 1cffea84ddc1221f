"""Report assembly for cargo-bom."""
from cargo_bom.analysis.aggregate import build_report, select_nodes
from cargo_bom.analysis.filtering import FilterResult, filter_ignored_packages

__all__ = [
    "FilterResult",
    "build_report",
    "filter_ignored_packages",
    "select_nodes",
]
