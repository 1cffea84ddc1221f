"""License text discovery in package source directories."""
import logging
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterator, Optional

from cargo_bom.constants import LICENSE_FILE_PATTERNS
from cargo_bom.models.graph import PackageId
from cargo_bom.models.report import LicenseFile

logger = logging.getLogger(__name__)


def is_license_file_name(name: str) -> bool:
    """Check a file name against the license patterns, ignoring case.

    Args:
        name: Base name of the file.

    Returns:
        True if the name matches ``LICENSE*`` or ``UNLICENSE*``.
    """
    lowered = name.lower()
    return any(fnmatch(lowered, pattern.lower()) for pattern in LICENSE_FILE_PATTERNS)


def _candidates(source_dir: Path, include_nested: bool) -> Iterator[Path]:
    entries = source_dir.rglob("*") if include_nested else source_dir.iterdir()
    for entry in entries:
        if is_license_file_name(entry.name) and entry.is_file():
            yield entry


def locate_license_files(
    package: PackageId,
    source_dir: Optional[Path],
    include_nested: bool = False,
    declared: Optional[str] = None,
) -> tuple[LicenseFile, ...]:
    """Find and read the license files of a package.

    Only the immediate source directory is searched unless
    ``include_nested`` is set. A declared ``license-file`` from the manifest
    is included even if its name does not match the patterns. Each file is
    read once; unreadable files are skipped with a warning.

    Args:
        package: Identity of the package owning the directory.
        source_dir: Package source directory, or None if unknown.
        include_nested: Search subdirectories as well.
        declared: The manifest's ``license-file`` value, relative to
            ``source_dir``.

    Returns:
        LicenseFile tuple sorted by filename (relative POSIX path).
        Empty if the directory does not exist.
    """
    if source_dir is None or not source_dir.is_dir():
        logger.debug("No source directory for %s", package)
        return ()

    matches: dict[str, Path] = {}
    try:
        for path in _candidates(source_dir, include_nested):
            matches[path.relative_to(source_dir).as_posix()] = path
    except OSError as e:
        logger.warning("Cannot list license files of %s in %s: %s", package, source_dir, e)
        return ()

    if declared:
        declared_path = source_dir / declared
        if declared_path.is_file():
            try:
                filename = declared_path.relative_to(source_dir).as_posix()
            except ValueError:
                # Absolute path outside the package directory
                filename = declared
            matches.setdefault(filename, declared_path)
        else:
            logger.debug("Declared license file %s of %s not found", declared, package)

    files: list[LicenseFile] = []
    for filename in sorted(matches):
        path = matches[filename]
        try:
            content = path.read_bytes()
        except OSError as e:
            logger.warning("Skipping unreadable license file %s of %s: %s", path, package, e)
            continue
        files.append(
            LicenseFile(package=package, filename=filename, path=path, content=content)
        )
    return tuple(files)
