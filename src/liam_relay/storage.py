"""Whole-file JSON persistence shared by the archive log and the vector store.

Both files are small enough to be read and rewritten wholesale.  Writers
hold the per-path lock for the full read-modify-write cycle, and every
write goes through a temp file so readers never see a half-written file.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any

_LOCKS: dict[Path, threading.RLock] = {}
_LOCKS_GUARD = threading.Lock()


def path_lock(path: Path) -> threading.RLock:
    """Return the process-wide lock that serialises access to *path*."""
    key = Path(path).resolve()
    with _LOCKS_GUARD:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = _LOCKS[key] = threading.RLock()
        return lock


def read_json(path: Path, default: Any = None) -> Any:
    """Load JSON from *path*, returning *default* when the file does not exist."""
    path = Path(path)
    if not path.exists():
        return default
    return json.loads(path.read_text(encoding="utf-8"))


def write_json(path: Path, obj: Any) -> None:
    """Atomically replace *path* with the JSON encoding of *obj*."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(obj, ensure_ascii=False, indent=2), encoding="utf-8")
    os.replace(tmp, path)
