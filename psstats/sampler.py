"""Polling loop that prints performance_schema deltas to stdout."""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Protocol, TextIO

import mysql.connector

from .config import SamplerConfig
from .connector import ConnectorError
from .filenames import FileNameMapper

LOG = logging.getLogger(__name__)

Sample = Mapping[str, int]


class Collector(Protocol):
    """Reads one cumulative sample of a view from the server."""

    def collect(self) -> Sample: ...


def _fetch(handle: Any, query: str) -> list[tuple[Any, ...]]:
    try:
        cursor = handle.cursor()
        try:
            cursor.execute(query)
            return list(cursor.fetchall())
        finally:
            cursor.close()
    except mysql.connector.Error as exc:
        raise ConnectorError(f"Query failed: {exc}") from exc


class TableIoLatencyCollector:
    """Table I/O wait time per ``schema.table``."""

    QUERY = """
        SELECT OBJECT_SCHEMA, OBJECT_NAME, SUM_TIMER_WAIT
        FROM performance_schema.table_io_waits_summary_by_table
        WHERE SUM_TIMER_WAIT > 0
    """

    def __init__(self, handle: Any) -> None:
        self._handle = handle

    def collect(self) -> Sample:
        sample: dict[str, int] = {}
        for schema, name, wait in _fetch(self._handle, self.QUERY):
            key = f"{schema}.{name}"
            sample[key] = sample.get(key, 0) + int(wait)
        return sample


class FileIoLatencyCollector:
    """File I/O wait time grouped by the logical object behind each file."""

    QUERY = """
        SELECT FILE_NAME, SUM_TIMER_WAIT
        FROM performance_schema.file_summary_by_instance
        WHERE SUM_TIMER_WAIT > 0
    """

    def __init__(self, handle: Any, mapper: FileNameMapper | None = None) -> None:
        self._handle = handle
        self._mapper = mapper if mapper is not None else FileNameMapper(self._datadir())

    @property
    def mapper(self) -> FileNameMapper:
        return self._mapper

    def collect(self) -> Sample:
        sample: dict[str, int] = {}
        for file_name, wait in _fetch(self._handle, self.QUERY):
            key = self._mapper.logical_name(str(file_name))
            sample[key] = sample.get(key, 0) + int(wait)
        return sample

    def _datadir(self) -> str:
        rows = _fetch(self._handle, "SELECT @@datadir")
        if not rows or rows[0][0] is None:
            return ""
        return str(rows[0][0])


VIEWS: dict[str, Callable[[Any], Collector]] = {
    "table_io_latency": TableIoLatencyCollector,
    "file_io_latency": FileIoLatencyCollector,
}


@dataclass(frozen=True, slots=True)
class DeltaRow:
    name: str
    value: int


def compute_deltas(previous: Sample, current: Sample) -> list[DeltaRow]:
    """Per-name activity since ``previous``, largest first, zero rows dropped.

    A counter lower than last time (e.g. after ``TRUNCATE``) is treated as
    having restarted from zero.
    """

    rows: list[DeltaRow] = []
    for name, value in current.items():
        delta = value - previous.get(name, 0)
        if delta < 0:
            delta = value
        if delta:
            rows.append(DeltaRow(name=name, value=delta))
    rows.sort(key=lambda row: (-row.value, row.name))
    return rows


def format_latency(picoseconds: int) -> str:
    """Render a performance_schema timer value with a readable unit."""

    for unit, scale in (("s", 10**12), ("ms", 10**9), ("us", 10**6), ("ns", 10**3)):
        if picoseconds >= scale:
            return f"{picoseconds / scale:.2f} {unit}"
    return f"{picoseconds} ps"


class Sampler:
    """Runs ``count`` ticks of the configured view, ``delay`` seconds apart."""

    def __init__(
        self,
        handle: Any,
        config: SamplerConfig,
        *,
        collector: Collector | None = None,
        out: TextIO | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if collector is None:
            try:
                factory = VIEWS[config.view]
            except KeyError:
                raise ValueError(f"Unknown view '{config.view}'") from None
            collector = factory(handle)
        self._collector = collector
        self._config = config
        self._out = out if out is not None else sys.stdout
        self._sleep = sleep
        self._previous: Sample = {}
        self._ticks = 0

    @property
    def ticks(self) -> int:
        return self._ticks

    def run(self) -> None:
        try:
            while True:
                self.tick()
                if not self._config.unbounded and self._ticks >= self._config.count:
                    break
                self._sleep(self._config.delay)
        except KeyboardInterrupt:
            LOG.debug("Interrupted", extra={"ticks": self._ticks})

    def tick(self) -> None:
        current = self._collector.collect()
        rows = compute_deltas(self._previous, current)
        self._previous = current
        self._ticks += 1
        self._write(rows)

    def cleanup(self) -> None:
        mapper = getattr(self._collector, "mapper", None)
        if isinstance(mapper, FileNameMapper):
            stats = mapper.statistics()
            LOG.debug(
                "File name cache statistics",
                extra={
                    "read_requests": stats.read_requests,
                    "served_from_cache": stats.served_from_cache,
                    "write_requests": stats.write_requests,
                },
            )
        self._out.flush()

    def _write(self, rows: list[DeltaRow]) -> None:
        total = sum(row.value for row in rows)
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        print(f"{stamp} {self._config.view} total={format_latency(total)}", file=self._out)
        if self._config.totals:
            return
        if self._config.limit:
            rows = rows[: self._config.limit]
        for row in rows:
            share = 100.0 * row.value / total if total else 0.0
            print(f"{share:6.1f}% {format_latency(row.value):>12}  {row.name}", file=self._out)


__all__ = [
    "Collector",
    "DeltaRow",
    "FileIoLatencyCollector",
    "Sampler",
    "TableIoLatencyCollector",
    "VIEWS",
    "compute_deltas",
    "format_latency",
]
