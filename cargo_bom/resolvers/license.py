"""Declared license resolution from package metadata.

Only the manifest's ``license`` field is consulted; no registry lookups.
"""
import logging
from typing import Optional

from license_expression import ExpressionError, ExpressionParseError, Licensing

from cargo_bom.exceptions import LicenseExpressionError
from cargo_bom.models.config import BomConfig
from cargo_bom.models.graph import PackageNode
from cargo_bom.models.report import LicenseSet, PackageLicenses

logger = logging.getLogger(__name__)

# No known symbols: identifiers are kept exactly as declared
_licensing = Licensing()


def parse_license_expression(expression: Optional[str]) -> LicenseSet:
    """Split a declared license expression into identifiers.

    ``AND``, ``OR`` (any case) and the legacy ``/`` separate identifiers.
    ``WITH`` keeps an exception attached to its license, and parentheses
    only group. Examples:

        "MIT OR Apache-2.0"                 -> Apache-2.0, MIT
        "Apache-2.0/MIT"                    -> Apache-2.0, MIT
        "(MIT OR Apache-2.0) AND BSD-3-Clause" -> Apache-2.0, BSD-3-Clause, MIT
        "Apache-2.0 WITH LLVM-exception"    -> Apache-2.0 WITH LLVM-exception

    Args:
        expression: Raw expression, or None if none was declared.

    Returns:
        LicenseSet of the identifiers (empty for a missing or blank expression).

    Raises:
        LicenseExpressionError: If the expression is malformed.
    """
    if expression is None or not expression.strip():
        return LicenseSet()

    # Cargo still accepts "MIT/Apache-2.0" for "MIT OR Apache-2.0"
    normalized = expression.replace("/", " OR ")
    try:
        parsed = _licensing.parse(normalized)
    except (ExpressionError, ExpressionParseError) as e:
        raise LicenseExpressionError(
            f"invalid license expression {expression!r}: {e}"
        ) from e
    if parsed is None:
        raise LicenseExpressionError(f"invalid license expression {expression!r}")

    symbols = _licensing.license_symbols(parsed, unique=True, decompose=False)
    return LicenseSet(identifiers=tuple(symbol.render() for symbol in symbols))


def resolve_license(node: PackageNode) -> LicenseSet:
    """Determine the declared license identifiers of a package.

    A missing license is not an error and yields an empty set. A malformed
    expression is logged and also yields an empty set.

    Args:
        node: Package to resolve.

    Returns:
        LicenseSet of declared identifiers.
    """
    try:
        return parse_license_expression(node.license)
    except LicenseExpressionError as e:
        logger.warning("Ignoring license of %s: %s", node.id, e)
        return LicenseSet()


def apply_license_override(
    result: PackageLicenses,
    config: BomConfig,
) -> PackageLicenses:
    """Apply a manual license override to a resolved package.

    Package name matching is case-sensitive. The declared licenses are kept
    in ``original_finding``.

    Args:
        result: Resolved licenses of one package.
        config: Configuration with the overrides mapping.

    Returns:
        PackageLicenses with the override applied, or ``result`` unchanged
        if the package has no override.
    """
    if not config.overrides or result.package.name not in config.overrides:
        return result

    override = config.overrides[result.package.name]
    try:
        finding = parse_license_expression(override.license)
    except LicenseExpressionError as e:
        logger.warning("Ignoring license override for %s: %s", result.package, e)
        return result

    return result.model_copy(
        update={
            "finding": finding,
            "original_finding": result.finding,
            "override_reason": override.reason,
        }
    )
