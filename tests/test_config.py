"""Tests for configuration discovery and loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from chatrelay.config import (
    DEFAULT_CONFIG_NAME,
    env_overrides,
    extract_server_fields,
    find_config_file,
    load_config,
    load_config_file,
)


def _write_config(directory: Path, body: str) -> Path:
    path = directory / DEFAULT_CONFIG_NAME
    path.write_text(body)
    return path


class TestFindConfigFile:
    def test_found(self, tmp_path: Path) -> None:
        path = _write_config(tmp_path, "")
        assert find_config_file(tmp_path) == path

    def test_missing(self, tmp_path: Path) -> None:
        assert find_config_file(tmp_path) is None


class TestLoadConfigFile:
    def test_parses_toml(self, tmp_path: Path) -> None:
        path = _write_config(tmp_path, '[server]\nhost = "0.0.0.0"\n')
        assert load_config_file(path) == {"server": {"host": "0.0.0.0"}}

    def test_bad_toml_exits(self, tmp_path: Path) -> None:
        path = _write_config(tmp_path, "[server\nport = ")
        with pytest.raises(SystemExit, match="Failed to parse"):
            load_config_file(path)


class TestExtractServerFields:
    def test_known_keys_only(self) -> None:
        raw: dict[str, object] = {"server": {"port": 4000, "colour": "blue"}}
        assert extract_server_fields(raw) == {"port": 4000}

    def test_missing_section(self) -> None:
        assert extract_server_fields({"other": {}}) == {}

    def test_non_table_section(self) -> None:
        assert extract_server_fields({"server": "nope"}) == {}


class TestEnvOverrides:
    def test_maps_names(self) -> None:
        env = {"PORT": "8080", "CHATRELAY_HOST": "0.0.0.0", "CHATRELAY_LOG_LEVEL": "debug"}
        assert env_overrides(env) == {"port": "8080", "host": "0.0.0.0", "log_level": "debug"}

    def test_ignores_empty(self) -> None:
        assert env_overrides({"PORT": "  "}) == {}


class TestLoadConfig:
    def test_defaults(self, tmp_path: Path) -> None:
        resolved = load_config(environ={}, start=tmp_path)
        assert resolved.config.port == 3000
        assert resolved.config.host == "127.0.0.1"
        assert resolved.config_path is None

    def test_file_values(self, tmp_path: Path) -> None:
        path = _write_config(
            tmp_path,
            "[server]\nport = 4000\nclose_replaced_connections = true\n",
        )
        resolved = load_config(environ={}, start=tmp_path)
        assert resolved.config.port == 4000
        assert resolved.config.close_replaced_connections is True
        assert resolved.config_path == path

    def test_env_beats_file(self, tmp_path: Path) -> None:
        _write_config(tmp_path, "[server]\nport = 4000\n")
        resolved = load_config(environ={"PORT": "5000"}, start=tmp_path)
        assert resolved.config.port == 5000

    def test_cli_beats_env(self, tmp_path: Path) -> None:
        resolved = load_config(
            port_override=6000,
            host_override="0.0.0.0",
            log_level_override="warning",
            environ={"PORT": "5000", "CHATRELAY_HOST": "10.0.0.1"},
            start=tmp_path,
        )
        assert resolved.config.port == 6000
        assert resolved.config.host == "0.0.0.0"
        assert resolved.config.log_level == "WARNING"

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.toml"
        path.write_text("[server]\nport = 7000\n")
        resolved = load_config(config_path=path, environ={}, start=tmp_path)
        assert resolved.config.port == 7000
        assert resolved.config_path == path

    def test_explicit_path_missing_exits(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit, match="not found"):
            load_config(config_path=tmp_path / "absent.toml", environ={})

    def test_invalid_value_exits(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit, match="Invalid configuration"):
            load_config(environ={"PORT": "not-a-port"}, start=tmp_path)

    def test_reads_process_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PORT", "3100")
        assert load_config(start=tmp_path).config.port == 3100
