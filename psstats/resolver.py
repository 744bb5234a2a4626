"""Turn the raw connection flags into a single connection strategy."""

from __future__ import annotations

import logging

from .config import ConnectionOptions
from .models import ConnectionSpec, ConnectionStrategy

LOG = logging.getLogger(__name__)


class ConflictingOptionsError(ValueError):
    """Raised when two connection flags cannot be used together."""

    def __init__(self, first: str, second: str) -> None:
        super().__init__(f"Do not specify --{first} and --{second} together")
        self.first = first
        self.second = second


def resolve_connection(options: ConnectionOptions) -> ConnectionSpec:
    """Pick between component based and defaults-file based connections.

    ``--host`` or ``--socket`` selects the discrete components; otherwise the
    connector reads a defaults file, with an empty path meaning the implicit
    per-user location. No I/O happens here.
    """

    if options.host and options.socket:
        raise ConflictingOptionsError("host", "socket")

    if options.host or options.socket:
        if options.port and options.socket:
            raise ConflictingOptionsError("socket", "port")
        LOG.debug("--host= or --socket= defined")
        return ConnectionSpec(
            strategy=ConnectionStrategy.BY_COMPONENTS,
            host=options.host or None,
            port=options.port or None,
            socket=options.socket or None,
            user=options.user or None,
            password=options.password or None,
        )

    if options.defaults_file:
        LOG.debug("--defaults-file defined", extra={"defaults_file": options.defaults_file})
    else:
        LOG.debug("connecting by implicit defaults file")
    return ConnectionSpec(
        strategy=ConnectionStrategy.BY_DEFAULTS_FILE,
        defaults_file=options.defaults_file,
    )


__all__ = ["ConflictingOptionsError", "resolve_connection"]
