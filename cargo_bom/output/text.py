"""Plain text Bill of Materials formatter."""

from cargo_bom.models.report import LicenseBlock, ReportModel

# Name column widths; the smallest one fitting the longest name is used
_NAME_WIDTHS = (8, 16, 24)
_WIDEST_NAME = 32
_VERSION_WIDTH = 8
_RULE = "-" * 80


def decode_license_text(content: bytes) -> str:
    """Decode license file bytes for display.

    Undecodable bytes are replaced rather than rejected.
    """
    return content.decode("utf-8", errors="replace")


class TextFormatter:
    """Format a report as the classic cargo-bom text output.

    A padded ``Name | Version | Licenses`` table, a rule, then one
    ``-----BEGIN <name> <version> LICENSES-----`` block per package with
    license texts.
    """

    def format_report(self, report: ReportModel) -> str:
        """Format the report as plain text.

        Args:
            report: The report to format.

        Returns:
            The full report text, ending with a newline.
        """
        name_width = self._name_width(report)
        parts = [
            self._format_row(name_width, "Name", "Version", "Licenses"),
            _RULE,
        ]
        for row in report.rows:
            parts.append(
                self._format_row(name_width, row.name, row.version, row.licenses_display)
            )
        parts.append("")

        for block in report.license_blocks:
            parts.append(self._format_block(block))
            parts.append("")

        return "\n".join(parts) + "\n"

    @staticmethod
    def _name_width(report: ReportModel) -> int:
        longest = max((len(row.name) for row in report.rows), default=0)
        for width in _NAME_WIDTHS:
            if longest <= width:
                return width
        return _WIDEST_NAME

    @staticmethod
    def _format_row(name_width: int, name: str, version: str, licenses: str) -> str:
        line = f"{name:<{name_width}} | {version:<{_VERSION_WIDTH}} | {licenses}"
        return line.rstrip()

    @staticmethod
    def _format_block(block: LicenseBlock) -> str:
        """Format one package's license texts between its markers.

        Each file is introduced by a ``==> filename <==`` line.
        """
        parts = [block.begin_marker]
        for license_file in block.files:
            parts.append(f"==> {license_file.filename} <==")
            text = decode_license_text(license_file.content)
            parts.append(text[:-1] if text.endswith("\n") else text)
        parts.append(block.end_marker)
        return "\n".join(parts)
