"""Tests for the amd-loader command line."""

from click.testing import CliRunner
from amd_loader.cli import cli


def test_run_prints_exports(fixtures_dir) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli, ["run", "ABC", "--base-path", str(fixtures_dir / "amd" / "bundles")]
    )

    assert result.exit_code == 0, result.output
    assert "ABC: {'text': 'Module A', 'parts': ['Module B', 'Module C']}" in result.output


def test_run_with_path_mapping(fixtures_dir) -> None:
    commonjs = fixtures_dir / "commonjs"
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "run",
            "a",
            "-b",
            str(commonjs / "custom" / "module"),
            "-p",
            f"test={commonjs / 'util' / 'test'}",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "checked=True" in result.output


def test_run_with_config_file(fixtures_dir, tmp_path) -> None:
    config_file = tmp_path / "loader.yaml"
    config_file.write_text(f"base_path: {fixtures_dir / 'app'}\n")

    runner = CliRunner()
    result = runner.invoke(cli, ["run", "app", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "I've got my app reference: app text" in result.output


def test_run_missing_module(tmp_path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["run", "nope", "--base-path", str(tmp_path)])

    assert result.exit_code == 1
    assert "File not found" in result.output


def test_run_invalid_path_option(tmp_path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["run", "a", "-b", str(tmp_path), "-p", "novalue"])

    assert result.exit_code != 0
    assert "ID=LOCATION" in result.output


def test_describe(fixtures_dir) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli, ["describe", "A", "-b", str(fixtures_dir / "amd" / "dependencies" / "local")]
    )

    assert result.exit_code == 0, result.output
    assert "Modules:" in result.output
    assert "[evaluated]" in result.output
    assert "-> require, B" in result.output


def test_describe_reports_failure(tmp_path) -> None:
    (tmp_path / "bad.py").write_text("define(lambda: 1 / 0)\n")
    runner = CliRunner()
    result = runner.invoke(cli, ["describe", "bad", "-b", str(tmp_path)])

    assert result.exit_code == 1
    assert "[failed]" in result.output
    assert "ZeroDivisionError" in result.output
