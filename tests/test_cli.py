"""Tests for the `tagguard` CLI."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner

from tagguard import __version__
from tagguard.cli import main

if TYPE_CHECKING:
    from pathlib import Path


def _bad_config(tmp_path: Path) -> Path:
    path = tmp_path / "bad.yml"
    path.write_text(
        "version: 1\n"
        "tags:\n"
        "  - name: a\n"
        "    implies: [b]\n"
        "  - name: b\n"
        "    implies: [a]\n"
        "    requires: [ghost]\n"
        "groups:\n"
        "  - tags: [a]\n"
        "    min: 2\n",
        encoding="utf-8",
    )
    return path


def test_version() -> None:
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


class TestCheckConfig:
    def test_valid(self, sample_config_path: Path) -> None:
        result = CliRunner().invoke(main, ["check-config", str(sample_config_path)])
        assert result.exit_code == 0, result.output
        assert "9 tags, 9 rules, 2 roles" in result.output

    def test_reports_all_errors(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(main, ["check-config", str(_bad_config(tmp_path))])
        assert result.exit_code == 2
        assert "3 configuration error(s)" in result.output
        assert "UnknownTag" in result.output
        assert "CyclicImplication" in result.output
        assert "InvalidGroupBounds" in result.output

    def test_schema_error(self, tmp_path: Path) -> None:
        path = tmp_path / "tags.yml"
        path.write_text("tags: []\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["check-config", str(path)])
        assert result.exit_code == 2
        assert "missing required 'version'" in result.output

    def test_version_not_a_number(self, tmp_path: Path) -> None:
        path = tmp_path / "tags.yml"
        path.write_text("version: [1]\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["check-config", str(path)])
        assert result.exit_code == 2
        assert "unsupported version" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(main, ["check-config", str(tmp_path / "nope.yml")])
        assert result.exit_code == 2


class TestCheck:
    def test_consistent(self, sample_config_path: Path) -> None:
        result = CliRunner().invoke(
            main, ["check", str(sample_config_path), "scp", "euclid", "--format", "rich"]
        )
        assert result.exit_code == 0, result.output
        assert "No violations found" in result.output

    def test_violations_porcelain(self, sample_config_path: Path) -> None:
        result = CliRunner().invoke(
            main, ["check", str(sample_config_path), "scp", "tale", "--format", "porcelain"]
        )
        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == [
            "excludes_violated:0:scp,tale",
            "group_cardinality:7:scp,tale,hub",
        ]

    def test_default_format_when_piped(self, sample_config_path: Path) -> None:
        result = CliRunner().invoke(main, ["check", str(sample_config_path), "keter"])
        assert result.exit_code == 0, result.output
        assert result.output.splitlines()[0] == "requires_unmet:4:keter,scp"

    def test_strict_exit_code(self, sample_config_path: Path) -> None:
        result = CliRunner().invoke(
            main, ["check", str(sample_config_path), "scp", "tale", "--strict"]
        )
        assert result.exit_code == 1

    def test_json(self, sample_config_path: Path) -> None:
        result = CliRunner().invoke(
            main, ["check", str(sample_config_path), "hub", "--format", "json"]
        )
        assert result.exit_code == 0, result.output
        parsed = json.loads(result.output)
        assert parsed["summary"]["ok"] is True
        assert parsed["effective"] == ["hub"]

    def test_unknown_tag(self, sample_config_path: Path) -> None:
        result = CliRunner().invoke(main, ["check", str(sample_config_path), "scp", "sliver"])
        assert result.exit_code == 2
        assert "sliver" in result.output

    def test_bad_config(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(main, ["check", str(_bad_config(tmp_path)), "a"])
        assert result.exit_code == 2


def test_derive(sample_config_path: Path) -> None:
    result = CliRunner().invoke(main, ["derive", str(sample_config_path), "tale"])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["tale", "primary-content"]


def test_derive_unknown(sample_config_path: Path) -> None:
    result = CliRunner().invoke(main, ["derive", str(sample_config_path), "nope"])
    assert result.exit_code == 2


def test_explain(sample_config_path: Path) -> None:
    result = CliRunner().invoke(main, ["explain", str(sample_config_path)])
    assert result.exit_code == 0, result.output
    assert "keter" in result.output
    assert "licensing" in result.output


def test_verbose_flag(sample_config_path: Path) -> None:
    result = CliRunner().invoke(main, ["-v", "check-config", str(sample_config_path)])
    assert result.exit_code == 0, result.output
