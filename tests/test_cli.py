"""Tests for CLI tools: server control and grape seeding."""

import asyncio
from unittest.mock import patch

import pytest

from winecellar.cli import grapes as grapes_cli
from winecellar.cli import server as server_cli
from winecellar.config import DatabaseConfig, Settings, WinecellarConfig


class TestServerControl:
    """Tests for winecellar-server helpers."""

    def test_parser_defaults_come_from_settings(self):
        parser = server_cli.build_parser("127.0.0.1", 20000)
        args = parser.parse_args(["start"])
        assert (args.host, args.port, args.reload, args.foreground) == ("127.0.0.1", 20000, False, False)

    def test_parser_overrides(self):
        parser = server_cli.build_parser("0.0.0.0", 20000)
        args = parser.parse_args(["restart", "--port", "8080", "--host", "localhost"])
        assert (args.command, args.host, args.port) == ("restart", "localhost", 8080)

    def test_stale_pid_file_removed(self, tmp_path, monkeypatch):
        pid_file = tmp_path / "winecellar.pid"
        pid_file.write_text("not-a-pid")
        monkeypatch.setattr(server_cli, "PID_FILE", pid_file)

        assert server_cli.get_pid() is None
        assert not pid_file.exists()

    def test_no_pid_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr(server_cli, "PID_FILE", tmp_path / "winecellar.pid")
        assert server_cli.get_pid() is None

    def test_no_command_prints_help(self):
        with patch.object(server_cli, "get_settings", return_value=Settings(WinecellarConfig())):
            assert server_cli.main([]) == 1


class TestGrapeSeeding:
    """Tests for winecellar-grapes."""

    @pytest.fixture
    def cli_settings(self, database_url):
        app_settings = Settings(WinecellarConfig(database=DatabaseConfig(url=database_url)))
        with patch.object(grapes_cli, "get_settings", return_value=app_settings):
            yield app_settings

    def test_seed_named_grapes(self, cli_settings, capsys):
        assert grapes_cli.main(["Nebbiolo", "Barbera"]) == 0
        assert "2 added, 0 already present" in capsys.readouterr().out

        assert grapes_cli.main(["Nebbiolo", "Dolcetto"]) == 0
        out = capsys.readouterr().out
        assert "Added: Dolcetto" in out
        assert "1 added, 1 already present" in out

        assert grapes_cli.main(["--list"]) == 0
        assert capsys.readouterr().out.split() == ["Barbera", "Dolcetto", "Nebbiolo"]

    def test_seed_builtin_list(self, cli_settings):
        assert grapes_cli.main([]) == 0
        names = asyncio.run(grapes_cli.list_catalog(cli_settings.database_url))
        assert sorted(names) == sorted(grapes_cli.COMMON_VARIETIES)

    def test_dry_run_writes_nothing(self, cli_settings, capsys):
        assert grapes_cli.main(["--dry-run", "Syrah"]) == 0
        assert "[DRY RUN] Would add: Syrah" in capsys.readouterr().out
        assert asyncio.run(grapes_cli.list_catalog(cli_settings.database_url)) == []

    def test_empty_catalog_listing(self, cli_settings, capsys):
        assert grapes_cli.main(["--list"]) == 0
        assert "Grape catalog is empty" in capsys.readouterr().out

    def test_missing_database_url(self, capsys):
        with patch.object(grapes_cli, "get_settings", return_value=Settings(WinecellarConfig())):
            assert grapes_cli.main(["--list"]) == 1
        assert "No database configured" in capsys.readouterr().err
