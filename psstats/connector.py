"""Open the MySQL session the sampler polls."""

from __future__ import annotations

import getpass
import logging
from pathlib import Path
from typing import Any, Mapping

import mysql.connector

from .models import ConnectionSpec, ConnectionStrategy

LOG = logging.getLogger(__name__)

DEFAULT_PORT = 3306
DEFAULT_OPTION_GROUP = "client"


def implicit_defaults_file() -> Path:
    """Per-user option file consulted when no --defaults-file is given."""

    return Path.home() / ".my.cnf"


class ConnectorError(RuntimeError):
    """Raised when a session cannot be opened or is used before opening."""


class Connector:
    """Owns the single database session used by the sampler."""

    def __init__(self, *, connect_timeout: int = 10) -> None:
        self._connect_timeout = connect_timeout
        self._handle: Any | None = None

    @property
    def connected(self) -> bool:
        return self._handle is not None

    @property
    def handle(self) -> Any:
        """The open DB-API connection."""

        if self._handle is None:
            raise ConnectorError("Not connected")
        return self._handle

    def connect(self, spec: ConnectionSpec) -> Any:
        """Open the session described by a resolved connection spec."""

        if spec.strategy is ConnectionStrategy.BY_COMPONENTS:
            return self.connect_by_components(spec.components())
        return self.connect_by_defaults_file(spec.defaults_file)

    def connect_by_components(self, components: Mapping[str, str]) -> Any:
        kwargs: dict[str, object] = {}
        if components.get("socket"):
            kwargs["unix_socket"] = components["socket"]
        else:
            kwargs["host"] = components.get("host") or "localhost"
            port = components.get("port")
            kwargs["port"] = int(port) if port else DEFAULT_PORT
        kwargs["user"] = components.get("user") or getpass.getuser()
        if components.get("password"):
            kwargs["password"] = components["password"]
        return self._open(kwargs)

    def connect_by_defaults_file(self, defaults_file: str) -> Any:
        kwargs: dict[str, object] = {}
        path: Path | None
        if defaults_file:
            path = Path(defaults_file).expanduser()
            if not path.is_file():
                raise ConnectorError(f"Defaults file '{defaults_file}' does not exist")
        else:
            path = implicit_defaults_file()
            if not path.is_file():
                LOG.debug("No implicit defaults file found", extra={"path": str(path)})
                path = None
        if path is not None:
            kwargs["option_files"] = str(path)
            kwargs["option_groups"] = [DEFAULT_OPTION_GROUP]
        else:
            kwargs["user"] = getpass.getuser()
        return self._open(kwargs)

    def close(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        try:
            handle.close()
        except mysql.connector.Error as exc:
            LOG.warning("Failed to close connection cleanly", extra={"error": str(exc)})

    def _open(self, kwargs: dict[str, object]) -> Any:
        if self._handle is not None:
            raise ConnectorError("Already connected")
        kwargs.setdefault("connection_timeout", self._connect_timeout)
        kwargs["autocommit"] = True
        LOG.debug(
            "Connecting to MySQL",
            extra={"options": sorted(key for key in kwargs if key != "password")},
        )
        try:
            self._handle = mysql.connector.connect(**kwargs)
        except mysql.connector.Error as exc:
            raise ConnectorError(f"Failed to connect to MySQL: {exc}") from exc
        return self._handle


__all__ = [
    "Connector",
    "ConnectorError",
    "DEFAULT_OPTION_GROUP",
    "DEFAULT_PORT",
    "implicit_defaults_file",
]
