"""Map performance_schema file names to the logical objects they belong to."""

from __future__ import annotations

import re

from .cache import CacheStatistics, LookupCache, NotFound

_TABLE_FILE = re.compile(r"^(?:.*/)?([^/]+)/([^/]+)\.(?:ibd|frm|MYD|MYI|CSV|CSM|par|sdi)$")
_PARTITION = re.compile(r"#[Pp]#.*$")
_HEX_ESCAPE = re.compile(r"@([0-9a-fA-F]{4})")

_SERVER_FILES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(^|/)#sql[-_][^/]*$"), "<temp_table>"),
    (re.compile(r"(^|/)ibdata\d+$"), "<ibdata>"),
    (re.compile(r"(^|/)(ib_logfile\d+|#ib_redo\d+(_tmp)?)$"), "<redo_log>"),
    (re.compile(r"(^|/)undo_?\d+(\.ibu)?$"), "<undo>"),
    (re.compile(r"(^|/)ibtmp\d+$"), "<ibtmp>"),
    (re.compile(r"-relay-bin\.(\d{6}|index)$"), "<relay_log>"),
    (re.compile(r"(^|/)[^/]*bin(log)?\.(\d{6}|index)$"), "<binlog>"),
    (re.compile(r"(^|/)(relay-log|master)\.info$"), "<replication_info>"),
    (re.compile(r"(^|/)auto\.cnf$"), "<auto_cnf>"),
    (re.compile(r"\.pid$"), "<pid_file>"),
    (re.compile(r"(^|/)db\.opt$"), "<db_opt>"),
    (re.compile(r"\.err$"), "<error_log>"),
    (re.compile(r"slow[^/]*\.log$"), "<slow_log>"),
)


def decode_identifier(name: str) -> str:
    """Undo MySQL's ``@XXXX`` filename escaping (``foo@0024bar`` -> ``foo$bar``)."""

    return _HEX_ESCAPE.sub(lambda match: chr(int(match.group(1), 16)), name)


class FileNameMapper:
    """Resolves raw file paths to names like ``schema.table`` or ``<binlog>``."""

    def __init__(self, datadir: str = "", cache: LookupCache | None = None) -> None:
        self._datadir = datadir.rstrip("/") + "/" if datadir else ""
        self._cache = cache if cache is not None else LookupCache()

    def logical_name(self, path: str) -> str:
        try:
            return self._cache.get(path)
        except NotFound:
            return self._cache.put(path, self._derive(path))

    def statistics(self) -> CacheStatistics:
        return self._cache.statistics()

    def _derive(self, path: str) -> str:
        relative = path
        if self._datadir and relative.startswith(self._datadir):
            relative = relative[len(self._datadir):]
        if relative.startswith("./"):
            relative = relative[2:]

        for pattern, tag in _SERVER_FILES:
            if pattern.search(relative):
                return tag

        match = _TABLE_FILE.match(relative)
        if match:
            schema, table = match.groups()
            table = _PARTITION.sub("", table)
            return f"{decode_identifier(schema)}.{decode_identifier(table)}"
        return path


__all__ = ["FileNameMapper", "decode_identifier"]
