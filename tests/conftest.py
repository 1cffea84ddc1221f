"""Shared fixtures for cargo-bom tests."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Optional, Union

import pytest
from click.testing import CliRunner

REGISTRY = "registry+https://github.com/rust-lang/crates.io-index"


class MetadataBuilder:
    """Builds ``cargo metadata --format-version 1`` documents for tests.

    Every package gets a source directory under ``base_dir`` so license
    files can be written next to its manifest.
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir
        self.root: Optional[str] = None
        self._packages: dict[str, dict[str, Any]] = {}
        self._deps: dict[str, list[dict[str, Any]]] = {}

    def package(
        self,
        name: str,
        version: str,
        license: Optional[str] = None,
        license_file: Optional[str] = None,
        files: Optional[dict[str, Union[str, bytes]]] = None,
        root: bool = False,
        source: str = REGISTRY,
    ) -> str:
        """Add a package and return its Cargo id."""
        cargo_id = f"{source}#{name}@{version}"
        source_dir = self.base_dir / f"{name}-{version}-{len(self._packages)}"
        source_dir.mkdir(parents=True, exist_ok=True)
        for filename, content in (files or {}).items():
            path = source_dir / filename
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, str):
                content = content.encode("utf-8")
            path.write_bytes(content)

        self._packages[cargo_id] = {
            "name": name,
            "version": version,
            "id": cargo_id,
            "license": license,
            "license_file": license_file,
            "source": None if root else source,
            "dependencies": [],
            "manifest_path": str(source_dir / "Cargo.toml"),
        }
        self._deps[cargo_id] = []
        if root:
            self.root = cargo_id
        return cargo_id

    def source_dir(self, cargo_id: str) -> Path:
        return Path(self._packages[cargo_id]["manifest_path"]).parent

    def depend(self, parent: str, child: str, kind: Optional[str] = None) -> None:
        """Add a resolved dependency edge."""
        self._deps[parent].append(
            {
                "name": self._packages[child]["name"],
                "pkg": child,
                "dep_kinds": [{"kind": kind, "target": None}],
            }
        )

    def build(self) -> dict[str, Any]:
        return {
            "packages": list(self._packages.values()),
            "workspace_members": [self.root] if self.root else [],
            "resolve": {
                "nodes": [
                    {
                        "id": cargo_id,
                        "dependencies": [dep["pkg"] for dep in deps],
                        "deps": deps,
                        "features": [],
                    }
                    for cargo_id, deps in self._deps.items()
                ],
                "root": self.root,
            },
            "target_directory": str(self.base_dir / "target"),
            "version": 1,
            "workspace_root": str(self.base_dir),
            "metadata": None,
        }

    def write(self, path: Path) -> Path:
        path.write_text(json.dumps(self.build()), encoding="utf-8")
        return path


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def metadata_builder(tmp_path: Path) -> MetadataBuilder:
    """Provide a builder for cargo metadata documents."""
    return MetadataBuilder(tmp_path / "registry")


@pytest.fixture(autouse=True)
def restore_package_logger() -> Iterator[None]:
    """Undo logging configuration done by CLI invocations."""
    package_logger = logging.getLogger("cargo_bom")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    yield
    package_logger.handlers = handlers
    package_logger.setLevel(level)
