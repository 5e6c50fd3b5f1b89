from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Iterable, TextIO


def append(stream: TextIO, fields: Iterable[object]) -> None:
    """Write one tab-separated row and flush so tailing readers see it at once."""
    stream.write("\t".join(str(field) for field in fields) + "\n")
    stream.flush()


class TimeseriesWriter:
    def __init__(self, stream: TextIO, *, fsync: bool = False, owns_stream: bool = False) -> None:
        self._stream = stream
        self._fsync = fsync
        self._owns_stream = owns_stream
        self.rows = 0

    @classmethod
    def open(cls, path: str | Path | None, *, fsync: bool = False) -> "TimeseriesWriter":
        if path is None or str(path) == "-":
            return cls(sys.stdout)
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        return cls(target.open("a", encoding="utf-8"), fsync=fsync, owns_stream=True)

    @property
    def name(self) -> str:
        return getattr(self._stream, "name", "<stream>")

    def write_row(self, fields: Iterable[object]) -> None:
        append(self._stream, fields)
        if self._fsync:
            os.fsync(self._stream.fileno())
        self.rows += 1

    def close(self) -> None:
        if self._owns_stream and not self._stream.closed:
            self._stream.close()

    def __enter__(self) -> "TimeseriesWriter":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()
