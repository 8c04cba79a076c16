"""
Client-local key/value storage and the recent-search list kept in it.
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

RECENT_SEARCHES_KEY = "recentSearches"


class KeyValueStore(Protocol):
    """String-to-string storage that survives restarts of the client."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryStore:
    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """All keys in one JSON object on disk, rewritten atomically on every set."""

    def __init__(self, path: Optional[str | Path] = None) -> None:
        self.path = Path(path or settings.recent_searches_path).expanduser()

    def _read(self) -> dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Unreadable client storage, starting empty", path=str(self.path), error=str(e))
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise


class RecentSearches:
    """
    Most-recent-first list of search strings.

    Re-adding an existing entry moves it to the front; the list never holds
    more than `limit` entries.
    """

    def __init__(
        self,
        store: KeyValueStore,
        limit: Optional[int] = None,
        key: str = RECENT_SEARCHES_KEY,
    ) -> None:
        self.store = store
        self.limit = limit or settings.recent_searches_limit
        self.key = key
        self._items = self._load()

    def _load(self) -> list[str]:
        raw = self.store.get(self.key)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except ValueError:
            logger.warning("Discarding corrupt recent searches")
            return []
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, str)][: self.limit]

    @property
    def items(self) -> list[str]:
        return list(self._items)

    def add(self, query: str) -> list[str]:
        if not query:
            return self.items
        self._items = [query, *(s for s in self._items if s != query)][: self.limit]
        self.store.set(self.key, json.dumps(self._items))
        return self.items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))
