"""JSON file store for the dedup ledger.

The ledger is a flat JSON list of message identifiers, rewritten whole at the
end of every successful run.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import AbstractSet

LOGGER = logging.getLogger(__name__)


class JsonLedgerStore:
    """Implements the core LedgerStorePort on a single JSON file."""

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def load(self) -> set[str]:
        """Return the stored identifiers, or an empty set when unavailable.

        A missing file is normal on first run. A corrupt file is logged and
        treated as empty; the CSV log stays the record of what was emitted.
        """

        if not os.path.exists(self._path):
            return set()
        try:
            with open(self._path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError):
            LOGGER.warning("Ignoring unreadable ledger at %s", self._path, exc_info=True)
            return set()
        if not isinstance(data, list):
            LOGGER.warning("Ignoring ledger at %s: expected a JSON list", self._path)
            return set()
        return {str(item) for item in data if item is not None}

    def save(self, ids: AbstractSet[str]) -> None:
        """Atomically overwrite the ledger file with the given identifiers."""

        directory = os.path.dirname(os.path.abspath(self._path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".ledger-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(sorted(ids), handle, indent=2)
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
