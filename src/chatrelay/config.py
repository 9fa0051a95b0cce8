"""Configuration discovery and loading.

Settings come from four layers, highest precedence first:

1. CLI overrides (``chatrelay serve --port 4000``).
2. Environment: ``PORT``, ``CHATRELAY_HOST``, ``CHATRELAY_LOG_LEVEL``.
3. A TOML file, ``chatrelay.toml`` in the working directory or the
   path given with ``--config``.
4. Defaults on :class:`~chatrelay.models.RelayConfig`.

Config file format (``chatrelay.toml``)::

    [server]
    host = "0.0.0.0"
    port = 3000
    log_level = "info"
    close_replaced_connections = false
    writer_shutdown_timeout = 5.0
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import cast

from pydantic import ValidationError

from chatrelay.models import RelayConfig

DEFAULT_CONFIG_NAME = "chatrelay.toml"

_ENV_KEYS = {
    "PORT": "port",
    "CHATRELAY_HOST": "host",
    "CHATRELAY_LOG_LEVEL": "log_level",
}

_SERVER_KEYS = frozenset(RelayConfig.model_fields)


@dataclass(frozen=True)
class ResolvedConfig:
    """Fully resolved configuration ready for server startup."""

    config: RelayConfig
    config_path: Path | None = None


def find_config_file(start: Path | None = None) -> Path | None:
    """Return ``chatrelay.toml`` in *start* (default: cwd) if it exists."""
    path = (start or Path.cwd()) / DEFAULT_CONFIG_NAME
    return path if path.is_file() else None


def load_config_file(path: Path) -> dict[str, object]:
    """Parse a TOML config file, raising ``SystemExit`` on failure."""
    try:
        return tomllib.loads(path.read_text())
    except OSError as exc:
        raise SystemExit(f"Cannot read config file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise SystemExit(
            f"Failed to parse {path}:\n{exc}\n"
            "Fix or remove this file before starting chatrelay."
        ) from exc


def extract_server_fields(raw: Mapping[str, object]) -> dict[str, object]:
    """Pick the known ``[server]`` keys out of parsed TOML data.

    Unknown keys are ignored so a config file can carry settings for
    other tools.
    """
    section: object = raw.get("server")
    if not isinstance(section, dict):
        return {}
    items = cast("dict[str, object]", section)
    return {k: v for k, v in items.items() if k in _SERVER_KEYS}


def env_overrides(environ: Mapping[str, str]) -> dict[str, object]:
    """Read settings from environment variables; empty values are ignored."""
    return {
        field: environ[name]
        for name, field in _ENV_KEYS.items()
        if environ.get(name, "").strip()
    }


def load_config(
    *,
    host_override: str | None = None,
    port_override: int | None = None,
    log_level_override: str | None = None,
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    start: Path | None = None,
) -> ResolvedConfig:
    """Discover and resolve all configuration.

    An explicit *config_path* must exist; the implicit
    ``chatrelay.toml`` lookup is skipped silently when absent.

    Raises :class:`SystemExit` with a readable message when the file
    cannot be parsed or a value fails validation.
    """
    if config_path is not None and not config_path.is_file():
        raise SystemExit(f"Config file not found: {config_path}")
    path = config_path or find_config_file(start)

    values: dict[str, object] = {}
    if path is not None:
        values.update(extract_server_fields(load_config_file(path)))
    values.update(env_overrides(os.environ if environ is None else environ))

    cli = {
        "host": host_override,
        "port": port_override,
        "log_level": log_level_override,
    }
    values.update({k: v for k, v in cli.items() if v is not None})

    try:
        config = RelayConfig.model_validate(values)
    except ValidationError as exc:
        raise SystemExit(f"Invalid configuration:\n{exc}") from exc
    return ResolvedConfig(config=config, config_path=path)
