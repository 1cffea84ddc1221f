"""JSON output formatter for Bill of Materials reports."""
import json
from datetime import datetime, timezone
from typing import Any

from cargo_bom import __version__
from cargo_bom.models.report import ReportModel
from cargo_bom.output.text import decode_license_text


class ReportJsonFormatter:
    """Format reports as JSON for programmatic processing."""

    def format_report(self, report: ReportModel) -> str:
        """Format the report as a JSON string.

        Args:
            report: The report to format.

        Returns:
            Indented JSON document.
        """
        return json.dumps(self._build_output(report), indent=2)

    def _build_output(self, report: ReportModel) -> dict[str, Any]:
        return {
            "report_metadata": self._build_metadata(report),
            "summary": self._build_summary(report),
            "packages": [
                {
                    "name": row.name,
                    "version": row.version,
                    "licenses": list(row.licenses.identifiers),
                    "overridden": row.overridden,
                    "original_licenses": (
                        list(row.original_licenses.identifiers)
                        if row.original_licenses is not None
                        else None
                    ),
                    "override_reason": row.override_reason,
                }
                for row in report.rows
            ],
            "license_texts": [
                {
                    "name": block.name,
                    "version": block.version,
                    "files": [
                        {
                            "filename": license_file.filename,
                            "content": decode_license_text(license_file.content),
                        }
                        for license_file in block.files
                    ],
                }
                for block in report.license_blocks
            ],
        }

    @staticmethod
    def _build_metadata(report: ReportModel) -> dict[str, Any]:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        return {
            "generated_at": timestamp,
            "tool_version": __version__,
            "scope": report.scope.value,
        }

    @staticmethod
    def _build_summary(report: ReportModel) -> dict[str, Any]:
        return {
            "total_packages": report.total_packages,
            "packages_with_license_texts": len(report.license_blocks),
            "packages_without_license_info": report.missing_license_count,
            "ignored_packages": list(report.ignored_names),
        }
