"""Custom exceptions for cargo-bom."""


class CargoBomError(Exception):
    """Base exception for all cargo-bom errors."""

    pass


class GraphLoadError(CargoBomError):
    """Exception raised when the resolved dependency graph cannot be obtained."""

    pass


class ConfigurationError(CargoBomError):
    """Exception raised when configuration is invalid."""

    pass


class LicenseExpressionError(CargoBomError):
    """Exception raised when a declared license expression cannot be parsed."""

    pass
