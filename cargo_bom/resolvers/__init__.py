"""Graph loading and per-package license resolution."""

from cargo_bom.resolvers.files import is_license_file_name, locate_license_files
from cargo_bom.resolvers.license import (
    apply_license_override,
    parse_license_expression,
    resolve_license,
)
from cargo_bom.resolvers.metadata import (
    GraphLoader,
    MetadataOptions,
    load_metadata_file,
    run_cargo_metadata,
)

__all__ = [
    "GraphLoader",
    "MetadataOptions",
    "apply_license_override",
    "is_license_file_name",
    "load_metadata_file",
    "locate_license_files",
    "parse_license_expression",
    "resolve_license",
    "run_cargo_metadata",
]
