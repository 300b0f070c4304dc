"""Integration tests for the command-line interface."""

import json
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from review_guesser import cli
from review_guesser.config import get_settings


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point the CLI at a temporary catalog and state directory."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "released_appids.csv").write_text("11\n", encoding="utf-8")

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CATALOG_DATA_DIR", str(data_dir))
    monkeypatch.setenv("CATALOG_PARTITIONS", "[]")
    monkeypatch.setenv("STORAGE_PATH", str(tmp_path / "state"))
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


def run_cli(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], *args: str) -> tuple[int, Any]:
    """Run the CLI and return (exit code, parsed JSON output)."""
    monkeypatch.setattr(sys, "argv", ["review-guesser", *args])
    code = 0
    try:
        cli.main()
    except SystemExit as e:
        code = int(e.code or 0)
    out = capsys.readouterr().out
    return code, json.loads(out)


class TestCLI:
    """Tests for CLI commands."""

    def test_next_mark_and_fallback(
        self, cli_env: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test picking, marking and exhausting the catalog."""
        code, output = run_cli(monkeypatch, capsys, "next", "pure")
        assert code == 0
        assert output["data"]["app_id"] == 11
        assert output["data"]["url"] == "https://store.steampowered.com/app/11/"

        code, output = run_cli(monkeypatch, capsys, "mark", "11", "correct")
        assert code == 0
        assert output["data"]["outcome"] == "correct"

        code, output = run_cli(monkeypatch, capsys, "next", "smart")
        assert output["data"]["app_id"] == 570

    def test_export_and_import(
        self, cli_env: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test exporting to a file and importing it back after a clear."""
        code, output = run_cli(monkeypatch, capsys, "export")
        assert code == 1
        assert output["error"] == "No games have been seen yet!"

        run_cli(monkeypatch, capsys, "mark", "11", "incorrect")
        export_path = cli_env / "seen.csv"
        code, output = run_cli(monkeypatch, capsys, "export", str(export_path))
        assert code == 0
        assert export_path.read_text(encoding="utf-8").startswith("id,outcomeCode,timestamp\n11,0,")

        run_cli(monkeypatch, capsys, "clear")
        code, output = run_cli(monkeypatch, capsys, "import", str(export_path))
        assert code == 0
        assert output["data"]["imported"] == 1

        code, output = run_cli(monkeypatch, capsys, "stats")
        assert output["data"]["incorrect"] == 1

    def test_import_missing_file(
        self, cli_env: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test the could-not-read notice."""
        code, output = run_cli(monkeypatch, capsys, "import", str(cli_env / "absent.csv"))

        assert code == 1
        assert output["error"] == "Failed to read the file."

    def test_mark_unknown_outcome(
        self, cli_env: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test that unknown outcome words are rejected."""
        code, output = run_cli(monkeypatch, capsys, "mark", "11", "maybe")

        assert code == 1
        assert output["success"] is False
