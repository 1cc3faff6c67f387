"""Per-agent Drive folder map, with ``env:VARNAME`` indirection.

The file looks like::

    {
      "agents": {
        "liam": {
          "unifiedFolderId": "env:LIAM_UNIFIED_FOLDER_ID",
          "archivesFolderId": "1AbC..."
        }
      }
    }

Folder ids written as ``env:VARNAME`` are replaced by the value of that
environment variable when the file is loaded.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from liam_relay.config import settings
from liam_relay.storage import read_json

FOLDER_KEYS = ("unifiedFolderId", "archivesFolderId")
ENV_PREFIX = "env:"


class SyncLogError(RuntimeError):
    """The sync log is missing or references an unset environment variable."""


def load_sync_log(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load the sync log and resolve ``env:`` folder references."""
    path = Path(path) if path is not None else settings.sync_log_path
    environ = os.environ if environ is None else environ

    log = read_json(path)
    if log is None:
        raise SyncLogError(f"sync-log.json not found at {path}")

    for agent in log.get("agents", {}).values():
        for key in FOLDER_KEYS:
            value = agent.get(key)
            if isinstance(value, str) and value.startswith(ENV_PREFIX):
                env_var = value[len(ENV_PREFIX):]
                resolved = environ.get(env_var)
                if not resolved:
                    raise SyncLogError(f"Missing ENV variable: {env_var}")
                agent[key] = resolved
    return log


def agent_folders(log: Mapping[str, Any], agent: str) -> dict[str, Any]:
    """Return the folder map for *agent*; raises ``KeyError`` when unknown."""
    agents = log.get("agents", {})
    if agent not in agents:
        raise KeyError(agent)
    return agents[agent]
