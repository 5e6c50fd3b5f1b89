from __future__ import annotations

import contextlib
import os
import random
import stat
import time
from pathlib import Path
from typing import Any

import orjson

from .errors import PublishFailed

_SNAPSHOT_OPTIONS = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS | orjson.OPT_APPEND_NEWLINE


def temp_path_for(target: Path) -> Path:
    """Sibling of ``target`` that keeps its extension, e.g. state.123_1700000000000_42.json."""
    nonce = f"{os.getpid()}_{time.time_ns() // 1_000_000}_{random.randrange(1_000_000)}"
    return target.with_name(f"{target.stem}.{nonce}{target.suffix}")


def _copy_ownership(source: Path, dest: Path) -> None:
    try:
        old = source.stat()
    except FileNotFoundError:
        return
    with contextlib.suppress(PermissionError):
        os.chown(dest, old.st_uid, old.st_gid)
    with contextlib.suppress(PermissionError):
        os.chmod(dest, stat.S_IMODE(old.st_mode))


def publish(path: str | Path, state: dict[str, Any], *, fsync: bool = True) -> None:
    """Atomically replace ``path`` with ``state`` as pretty-printed JSON.

    The document is written to a temporary file in the same directory and
    renamed over ``path``, so readers see either the old or the new file.
    On failure the temporary file is removed and ``path`` is left as it was.
    """
    target = Path(path)
    try:
        payload = orjson.dumps(state, option=_SNAPSHOT_OPTIONS)
    except orjson.JSONEncodeError as exc:
        raise PublishFailed(f"cannot serialize snapshot for {target}: {exc}") from exc

    tmp = temp_path_for(target)
    try:
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o666)
    except OSError as exc:
        raise PublishFailed(f"cannot create {tmp}: {exc}") from exc
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
            handle.flush()
            if fsync:
                os.fsync(handle.fileno())
        _copy_ownership(target, tmp)
        os.replace(tmp, target)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise PublishFailed(f"cannot publish snapshot to {target}: {exc}") from exc
