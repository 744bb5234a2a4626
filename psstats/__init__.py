"""vmstat-like sampler for MySQL performance_schema activity."""

from __future__ import annotations

__version__ = "0.1.0"

MY_NAME = "ps-stats"

__all__ = ["MY_NAME", "__version__"]
