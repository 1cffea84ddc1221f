"""CLI behavior tests for cargo-bom."""
import json
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from conftest import MetadataBuilder

from cargo_bom import __version__
from cargo_bom.cli import _split_features, main, run
from cargo_bom.constants import EXIT_ERROR, EXIT_SUCCESS


@pytest.fixture
def metadata_file(metadata_builder: MetadataBuilder, tmp_path: Path) -> Path:
    """root -> A@1.0.0 -> B@2.0.0, root -> B@2.0.0."""
    root = metadata_builder.package("root", "0.1.0", license="MIT", root=True)
    a = metadata_builder.package(
        "A", "1.0.0", license="MIT", files={"LICENSE": "A license text\n"}
    )
    b = metadata_builder.package("B", "2.0.0", license="Apache-2.0/MIT")
    metadata_builder.depend(root, a)
    metadata_builder.depend(root, b)
    metadata_builder.depend(a, b)
    return metadata_builder.write(tmp_path / "metadata.json")


def test_cli_help(cli_runner: CliRunner) -> None:
    """Test that --help outputs usage information."""
    result = cli_runner.invoke(main, ["--help"])

    assert result.exit_code == 0
    assert "Bill of Materials" in result.output
    assert "--manifest-path" in result.output
    assert "--scope" in result.output


def test_cli_short_help(cli_runner: CliRunner) -> None:
    """Test that -h is accepted."""
    result = cli_runner.invoke(main, ["-h"])

    assert result.exit_code == 0
    assert "--version" in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    """Test that --version outputs correct version."""
    result = cli_runner.invoke(main, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_text_report(cli_runner: CliRunner, metadata_file: Path) -> None:
    """Test the default text report for a saved metadata document."""
    result = cli_runner.invoke(main, ["--metadata-file", str(metadata_file)])

    assert result.exit_code == EXIT_SUCCESS
    lines = result.output.splitlines()
    assert lines[0] == "Name     | Version  | Licenses"
    assert lines[2] == "A        | 1.0.0    | MIT"
    assert lines[3] == "B        | 2.0.0    | Apache-2.0, MIT"
    assert "-----BEGIN A 1.0.0 LICENSES-----" in lines
    assert "A license text" in lines
    assert "-----BEGIN B 2.0.0 LICENSES-----" not in lines


def test_top_level_scope(
    cli_runner: CliRunner, metadata_builder: MetadataBuilder, tmp_path: Path
) -> None:
    """Test that --scope top-level-only drops transitive packages."""
    root = metadata_builder.package("root", "0.1.0", root=True)
    a = metadata_builder.package("A", "1.0.0")
    c = metadata_builder.package("C", "3.0.0")
    metadata_builder.depend(root, a)
    metadata_builder.depend(a, c)
    path = metadata_builder.write(tmp_path / "metadata.json")

    result = cli_runner.invoke(
        main, ["--metadata-file", str(path), "--scope", "top-level-only"]
    )

    assert result.exit_code == EXIT_SUCCESS
    assert "A        | 1.0.0" in result.output
    assert "C        | 3.0.0" not in result.output


def test_invalid_scope(cli_runner: CliRunner, metadata_file: Path) -> None:
    """Test that an unknown scope is rejected by option parsing."""
    result = cli_runner.invoke(
        main, ["--metadata-file", str(metadata_file), "--scope", "everything"]
    )

    assert result.exit_code != 0
    assert "Invalid value" in result.output


def test_json_report(cli_runner: CliRunner, metadata_file: Path) -> None:
    """Test that --format json outputs a parseable document."""
    result = cli_runner.invoke(
        main, ["--metadata-file", str(metadata_file), "--format", "json"]
    )

    assert result.exit_code == EXIT_SUCCESS
    data = json.loads(result.output)
    assert [p["name"] for p in data["packages"]] == ["A", "B"]
    assert data["license_texts"][0]["files"][0]["content"] == "A license text\n"


def test_format_is_case_insensitive(cli_runner: CliRunner, metadata_file: Path) -> None:
    """Test that --format JSON is accepted."""
    result = cli_runner.invoke(
        main, ["--metadata-file", str(metadata_file), "--format", "JSON"]
    )

    assert result.exit_code == EXIT_SUCCESS
    json.loads(result.output)


def test_terminal_report(cli_runner: CliRunner, metadata_file: Path) -> None:
    """Test the Rich table output."""
    result = cli_runner.invoke(
        main, ["--metadata-file", str(metadata_file), "--format", "terminal"]
    )

    assert result.exit_code == EXIT_SUCCESS
    assert "Bill of Materials" in result.output
    assert "A license text" in result.output


def test_output_file(
    cli_runner: CliRunner, metadata_file: Path, tmp_path: Path
) -> None:
    """Test that --output writes the report to a file."""
    output = tmp_path / "bom.txt"

    result = cli_runner.invoke(
        main, ["--metadata-file", str(metadata_file), "--output", str(output)]
    )

    assert result.exit_code == EXIT_SUCCESS
    assert "Report written to" in result.output
    content = output.read_text(encoding="utf-8")
    assert content.startswith("Name     | Version  | Licenses\n")
    assert "-----END A 1.0.0 LICENSES-----" in content


def test_terminal_format_to_file_uses_text(
    cli_runner: CliRunner, metadata_file: Path, tmp_path: Path
) -> None:
    """Test that the terminal format falls back to plain text in a file."""
    output = tmp_path / "bom.txt"

    result = cli_runner.invoke(
        main,
        [
            "--metadata-file",
            str(metadata_file),
            "--format",
            "terminal",
            "-o",
            str(output),
        ],
    )

    assert result.exit_code == EXIT_SUCCESS
    assert output.read_text(encoding="utf-8").startswith("Name     | Version")


def test_config_file(
    cli_runner: CliRunner, metadata_file: Path, tmp_path: Path
) -> None:
    """Test that a configuration file is applied."""
    config = tmp_path / "bom.yaml"
    config.write_text(
        "ignored_packages:\n"
        "  - B\n"
        "overrides:\n"
        "  A:\n"
        "    license: ISC\n"
        "    reason: Relicensed upstream\n",
        encoding="utf-8",
    )

    result = cli_runner.invoke(
        main, ["--metadata-file", str(metadata_file), "--config", str(config)]
    )

    assert result.exit_code == EXIT_SUCCESS
    assert "A        | 1.0.0    | ISC" in result.output
    assert "B        |" not in result.output


def test_invalid_config_file(
    cli_runner: CliRunner, metadata_file: Path, tmp_path: Path
) -> None:
    """Test that a bad configuration aborts with the error exit code."""
    config = tmp_path / "bom.yaml"
    config.write_text("max_workers: 0\n", encoding="utf-8")

    result = cli_runner.invoke(
        main, ["--metadata-file", str(metadata_file), "--config", str(config)]
    )

    assert result.exit_code == EXIT_ERROR
    assert "Error: ConfigurationError" in result.output


def test_virtual_workspace(
    cli_runner: CliRunner, metadata_builder: MetadataBuilder, tmp_path: Path
) -> None:
    """Test that a metadata document without a root is an error."""
    metadata_builder.package("member", "0.1.0")
    path = metadata_builder.write(tmp_path / "metadata.json")

    result = cli_runner.invoke(main, ["--metadata-file", str(path)])

    assert result.exit_code == EXIT_ERROR
    assert "Error: GraphLoadError" in result.output
    assert "virtual workspace" in result.output


def test_cargo_failure(cli_runner: CliRunner) -> None:
    """Test that a failing cargo metadata run aborts the report."""
    failed = subprocess.CompletedProcess(
        args=["cargo"],
        returncode=101,
        stdout="",
        stderr="error: could not find `Cargo.toml`",
    )

    with patch(
        "cargo_bom.resolvers.metadata.subprocess.run", return_value=failed
    ):
        result = cli_runner.invoke(main, [])

    assert result.exit_code == EXIT_ERROR
    assert "exit code 101" in result.output
    assert "could not find" in result.output


def test_cargo_flags_passed_through(
    cli_runner: CliRunner, metadata_builder: MetadataBuilder, tmp_path: Path
) -> None:
    """Test that Cargo options reach the cargo metadata command line."""
    metadata_builder.package("root", "0.1.0", root=True)
    completed = subprocess.CompletedProcess(
        args=["cargo"],
        returncode=0,
        stdout=json.dumps(metadata_builder.build()),
        stderr="",
    )
    manifest = tmp_path / "Cargo.toml"

    with patch(
        "cargo_bom.resolvers.metadata.subprocess.run", return_value=completed
    ) as mock_run:
        result = cli_runner.invoke(
            main,
            [
                "--manifest-path",
                str(manifest),
                "--features",
                "serde derive",
                "--features",
                "std",
                "--locked",
                "--offline",
                "--color",
                "never",
            ],
        )

    assert result.exit_code == EXIT_SUCCESS
    command = mock_run.call_args.args[0]
    assert command[1:4] == ["metadata", "--format-version", "1"]
    assert "--manifest-path" in command
    assert str(manifest) in command
    assert command[command.index("--features") + 1] == "serde,derive,std"
    assert "--locked" in command
    assert "--offline" in command
    assert command[command.index("--color") + 1] == "never"


def test_verbose_and_quiet_are_exclusive(
    cli_runner: CliRunner, metadata_file: Path
) -> None:
    """Test that -v and -q cannot be combined."""
    result = cli_runner.invoke(
        main, ["--metadata-file", str(metadata_file), "-v", "-q"]
    )

    assert result.exit_code == 2
    assert "mutually exclusive" in result.output


def test_quiet_terminal_prints_summary(
    cli_runner: CliRunner, metadata_file: Path
) -> None:
    """Test that --quiet reduces the terminal output to the summary."""
    result = cli_runner.invoke(
        main, ["--metadata-file", str(metadata_file), "--format", "terminal", "-q"]
    )

    assert result.exit_code == EXIT_SUCCESS
    assert "Packages: 2" in result.output
    assert "Bill of Materials" not in result.output


def test_split_features() -> None:
    """Test that repeated, comma and space separated features are flattened."""
    assert _split_features(("a,b", "c d", " e ,")) == ["a", "b", "c", "d", "e"]
    assert _split_features(()) == []


def test_run_strips_cargo_subcommand(
    monkeypatch: pytest.MonkeyPatch, metadata_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test that `cargo bom` style invocations drop the subcommand name."""
    monkeypatch.setattr(
        sys, "argv", ["cargo-bom", "bom", "--metadata-file", str(metadata_file)]
    )

    with pytest.raises(SystemExit) as exc_info:
        run()

    assert exc_info.value.code == EXIT_SUCCESS
    assert "A        | 1.0.0    | MIT" in capsys.readouterr().out


def test_json_report_shows_override_details(
    cli_runner: CliRunner, metadata_file: Path, tmp_path: Path
) -> None:
    """Test that overrides carry their reason and the declared licenses."""
    config = tmp_path / "bom.yaml"
    config.write_text(
        "overrides:\n"
        "  A:\n"
        "    license: ISC\n"
        "    reason: Relicensed upstream\n",
        encoding="utf-8",
    )

    result = cli_runner.invoke(
        main,
        [
            "--metadata-file",
            str(metadata_file),
            "--config",
            str(config),
            "--format",
            "json",
        ],
    )

    assert result.exit_code == EXIT_SUCCESS
    package = json.loads(result.output)["packages"][0]
    assert package["licenses"] == ["ISC"]
    assert package["original_licenses"] == ["MIT"]
    assert package["override_reason"] == "Relicensed upstream"


def test_config_found_next_to_manifest(
    cli_runner: CliRunner, metadata_builder: MetadataBuilder, tmp_path: Path
) -> None:
    """Test that --manifest-path selects the project's configuration file."""
    project = tmp_path / "other"
    project.mkdir()
    (project / ".cargo-bom.yaml").write_text("ignored_packages: [A]\n", encoding="utf-8")
    root = metadata_builder.package("root", "0.1.0", root=True)
    metadata_builder.depend(root, metadata_builder.package("A", "1.0.0"))
    metadata_builder.depend(root, metadata_builder.package("B", "1.0.0"))
    completed = subprocess.CompletedProcess(
        args=["cargo"],
        returncode=0,
        stdout=json.dumps(metadata_builder.build()),
        stderr="",
    )

    with patch("cargo_bom.resolvers.metadata.subprocess.run", return_value=completed):
        result = cli_runner.invoke(
            main, ["--manifest-path", str(project / "Cargo.toml")]
        )

    assert result.exit_code == EXIT_SUCCESS
    assert "B        | 1.0.0" in result.output
    assert "A        | 1.0.0" not in result.output
