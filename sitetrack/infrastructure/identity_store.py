"""Identity Stores — durable string key/value storage for visitor/session identity.

Invariants:
    - get() returns None for unknown keys; set() overwrites
    - JsonFileIdentityStore survives process restarts (the "reload" boundary)
    - Every IO/decode failure is raised as StorageError (core/errors.py)

Design Decisions:
    - Whole-file JSON rewrite via temp file + os.replace: a crash mid-write keeps
      the previous contents; a failed write removes its temp file
    - InMemoryIdentityStore for tests and hosts without durable storage
"""

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path

from sitetrack.core.errors import StorageError

logger = logging.getLogger(__name__)


class InMemoryIdentityStore:
    """Process-local store; identity lasts as long as the object."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read(key)
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=".identity_", suffix=".json",
            )
        except OSError as e:
            raise StorageError(str(e), key) from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as e:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise StorageError(str(e), key) from e
