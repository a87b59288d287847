from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

NOTEPAD_KEY = "notepad-content"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """Key-value store persisted as one JSON object, replaced atomically on write."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="utf-8", dir=str(self.path.parent), prefix=f"{self.path.name}.", delete=False
        ) as tmp:
            tmp.write(json.dumps(data, indent=2, sort_keys=True))
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_name = tmp.name
        os.replace(tmp_name, self.path)

    def _load(self) -> Dict[str, object]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} must hold a JSON object")
        return data


class Notepad:
    """Text buffer loaded from the store on mount and written back only on save."""

    def __init__(self, store: KeyValueStore, key: str = NOTEPAD_KEY) -> None:
        self.store = store
        self.key = key
        self.text = ""

    def mount(self) -> str:
        saved = self.store.get(self.key)
        if saved:
            self.text = saved
        return self.text

    def edit(self, text: str) -> str:
        self.text = text
        return self.text

    def save(self) -> None:
        self.store.set(self.key, self.text)
