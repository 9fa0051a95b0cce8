"""Tests for the chatrelay CLI entry point."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from chatrelay.__main__ import app
from chatrelay.config import ResolvedConfig
from chatrelay.models import RelayConfig

runner = CliRunner()

_RESOLVED = ResolvedConfig(config=RelayConfig(host="0.0.0.0", port=4321))


class TestVersionCommand:
    @patch("chatrelay.__main__.pkg_version", return_value="0.1.0")
    def test_prints_version(self, _mock_version: MagicMock) -> None:
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "chatrelay 0.1.0" in result.output


class TestServeCommand:
    @patch("chatrelay.__main__.configure_logging")
    @patch("chatrelay.__main__.uvicorn.run")
    @patch("chatrelay.__main__.load_config", return_value=_RESOLVED)
    def test_runs_uvicorn_with_config(
        self,
        _mock_config: MagicMock,
        mock_run: MagicMock,
        mock_logging: MagicMock,
    ) -> None:
        result = runner.invoke(app, ["serve"])
        assert result.exit_code == 0, result.output
        mock_logging.assert_called_once_with("INFO")
        mock_run.assert_called_once()
        kwargs = mock_run.call_args.kwargs
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 4321
        assert kwargs["log_level"] == "info"
        assert "ws://0.0.0.0:4321" in result.output

    @patch("chatrelay.__main__.configure_logging")
    @patch("chatrelay.__main__.uvicorn.run")
    @patch("chatrelay.__main__.load_config", return_value=_RESOLVED)
    def test_forwards_overrides(
        self,
        mock_config: MagicMock,
        _mock_run: MagicMock,
        _mock_logging: MagicMock,
    ) -> None:
        result = runner.invoke(
            app, ["serve", "--host", "::1", "--port", "9000", "--log-level", "debug"]
        )
        assert result.exit_code == 0, result.output
        kwargs = mock_config.call_args.kwargs
        assert kwargs["host_override"] == "::1"
        assert kwargs["port_override"] == 9000
        assert kwargs["log_level_override"].upper() == "DEBUG"
        assert kwargs["config_path"] is None

    def test_invalid_log_level_rejected(self) -> None:
        result = runner.invoke(app, ["serve", "--log-level", "loud"])
        assert result.exit_code != 0

    @patch("chatrelay.__main__.uvicorn.run")
    def test_bad_config_file_exits(self, mock_run: MagicMock, tmp_path: Path) -> None:
        result = runner.invoke(app, ["serve", "--config", str(tmp_path / "missing.toml")])
        assert result.exit_code != 0
        mock_run.assert_not_called()
