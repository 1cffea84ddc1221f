"""Constants for cargo-bom."""

# Exit codes
EXIT_SUCCESS = 0  # Report produced
EXIT_ERROR = 2  # Run aborted (graph could not be loaded, bad configuration)

# License text file patterns, matched case-insensitively against file names
LICENSE_FILE_PATTERNS = ("LICENSE*", "UNLICENSE*")

# Markers bounding each package's license texts in the report
LICENSE_BLOCK_BEGIN = "-----BEGIN {name} {version} LICENSES-----"
LICENSE_BLOCK_END = "-----END {name} {version} LICENSES-----"

# Upper bound on concurrent per-package resolution tasks
DEFAULT_MAX_WORKERS = 8

# Version of the `cargo metadata` output format understood by the loader
CARGO_METADATA_FORMAT_VERSION = 1
