"""Connection descriptors shared by the resolver and the connector."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ConnectionStrategy(str, Enum):
    """How the connector should open its MySQL session."""

    BY_COMPONENTS = "by_components"
    BY_DEFAULTS_FILE = "by_defaults_file"


@dataclass(frozen=True, slots=True)
class ConnectionSpec:
    """Resolved, internally consistent connection parameters."""

    strategy: ConnectionStrategy
    host: str | None = None
    port: int | None = None
    socket: str | None = None
    user: str | None = None
    password: str | None = None
    defaults_file: str = ""

    def __post_init__(self) -> None:
        if self.strategy is ConnectionStrategy.BY_COMPONENTS:
            if self.host and self.socket:
                raise ValueError("host and socket are mutually exclusive")
            if self.port and self.socket:
                raise ValueError("port and socket are mutually exclusive")

    @property
    def uses_implicit_defaults(self) -> bool:
        """True when the connector should discover the defaults file itself."""

        return self.strategy is ConnectionStrategy.BY_DEFAULTS_FILE and not self.defaults_file

    def components(self) -> dict[str, str]:
        """Return the non-empty discrete components as strings."""

        components: dict[str, str] = {}
        if self.host:
            components["host"] = self.host
        if self.port:
            components["port"] = str(self.port)
        if self.socket:
            components["socket"] = self.socket
        if self.user:
            components["user"] = self.user
        if self.password:
            components["password"] = self.password
        return components


__all__ = ["ConnectionSpec", "ConnectionStrategy"]
