"""Sampler configuration: user config file defaults plus command-line values."""

from __future__ import annotations

import logging
from pathlib import Path

import tomllib

from pydantic import BaseModel, ConfigDict, Field

LOG = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".config" / "psstats" / "config.toml"

DEFAULT_VIEW = "table_io_latency"


class ConnectionOptions(BaseModel):
    """Raw connection inputs as given on the command line.

    Empty strings and a zero port mean "not given"; the resolver decides which
    of them may be combined.
    """

    model_config = ConfigDict(frozen=True)

    host: str = ""
    port: int = 0
    socket: str = ""
    user: str = ""
    password: str = ""
    defaults_file: str = ""


class SamplerConfig(BaseModel):
    """Everything the sampler needs, gathered once at startup."""

    model_config = ConfigDict(frozen=True)

    delay: int = 1
    count: int = 0
    limit: int = 0
    view: str = DEFAULT_VIEW
    totals: bool = False
    debug: bool = False
    connection: ConnectionOptions = Field(default_factory=ConnectionOptions)

    @property
    def unbounded(self) -> bool:
        """True when the sampler should poll until interrupted."""

        return self.count == 0

    def with_overrides(self, **updates: object) -> SamplerConfig:
        """Return a copy with the given top-level fields replaced."""

        return self.model_copy(update=updates)

    def with_connection(self, **updates: object) -> SamplerConfig:
        """Return a copy with connection fields replaced."""

        connection = self.connection.model_copy(update=updates)
        return self.model_copy(update={"connection": connection})


def load_config() -> SamplerConfig:
    """Load defaults from the user config file; fall back to built-ins."""

    try:
        data = _read_config_file()
    except FileNotFoundError:
        return SamplerConfig()
    except (tomllib.TOMLDecodeError, OSError) as exc:
        LOG.warning("Ignoring unreadable config file", extra={"path": str(CONFIG_FILE), "error": str(exc)})
        return SamplerConfig()

    connection = data.pop("connection", None)
    config = SamplerConfig(**data)
    if isinstance(connection, dict):
        config = config.with_connection(**connection)
    return config


def _read_config_file() -> dict[str, object]:
    with CONFIG_FILE.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    view = raw.get("view")
    if isinstance(view, str) and view:
        data["view"] = view
    limit = raw.get("limit")
    if isinstance(limit, int) and not isinstance(limit, bool) and limit >= 0:
        data["limit"] = limit
    totals = raw.get("totals")
    if isinstance(totals, bool):
        data["totals"] = totals
    connection = raw.get("connection")
    if isinstance(connection, dict):
        parsed: dict[str, str] = {}
        for key in ("defaults_file", "user"):
            value = connection.get(key)
            if isinstance(value, str):
                parsed[key] = value
        if parsed:
            data["connection"] = parsed
    return data


__all__ = [
    "CONFIG_FILE",
    "ConnectionOptions",
    "DEFAULT_VIEW",
    "SamplerConfig",
    "load_config",
]
