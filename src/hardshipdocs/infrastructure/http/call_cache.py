from __future__ import annotations

import json
import logging
from pathlib import Path

from hardshipdocs.core.files import write_text_atomic

logger = logging.getLogger(__name__)


class CallCache:
    """Persistent memo of outbound call results, stored as one JSON object.

    The whole map is held in memory and the file is rewritten after every
    ``put``. Entries are never evicted. One process per cache file.
    """

    def __init__(self, path: Path, entries: dict[str, object] | None = None) -> None:
        self.path = path
        self._entries: dict[str, object] = dict(entries or {})

    @classmethod
    def init(cls, path: Path) -> "CallCache":
        cache = cls(path)
        cache.load()
        return cache

    def load(self) -> None:
        self._entries = {}
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.error("Error loading cache %s: %s", self.path, exc)
            return

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Error loading cache %s: %s", self.path, exc)
            return
        if not isinstance(payload, dict):
            logger.error("Error loading cache %s: expected a JSON object", self.path)
            return
        self._entries = payload
        logger.debug("Loaded %d cache entries from %s", len(self._entries), self.path)

    def flush(self) -> None:
        try:
            write_text_atomic(self.path, json.dumps(self._entries, ensure_ascii=False, indent=2))
        except OSError as exc:
            logger.error("Error saving cache file %s: %s", self.path, exc)

    def get(self, key: str) -> object | None:
        return self._entries.get(key)

    def put(self, key: str, value: object) -> None:
        self._entries[key] = value
        self.flush()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
