"""Key/value storage with the semantics of browser local storage.

Values are strings. ``JsonFileStorage`` writes through to disk on every
change so the persisted store survives a restart.
"""
import json
import logging
import os
from typing import Dict, Optional

log = logging.getLogger(__name__)


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)
        self._flush()

    def remove_item(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    def keys(self):
        return list(self._data)

    def _flush(self) -> None:
        pass


class JsonFileStorage(MemoryStorage):
    def __init__(self, path: str):
        self.path = path
        data = {}
        if os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as fh:
                    data = json.load(fh)
            except ValueError:
                log.warning("Ignoring unreadable state file %s", path)
                data = {}
        super().__init__({k: v for k, v in data.items() if isinstance(v, str)})

    def _flush(self) -> None:
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(self._data, fh)
        os.replace(tmp, self.path)
