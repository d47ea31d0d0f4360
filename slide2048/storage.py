import json
import logging
import os
from typing import Dict, Optional

logger = logging.getLogger(__name__)

BEST_SCORE_KEY = "bestScore"
GAME_STATE_KEY = "gameState"
DEFAULT_STATE_FILE = os.path.join(os.path.dirname(__file__), "game_state.json")
STATE_FILE_ENV = "SLIDE2048_STATE_FILE"


class MemoryStorage:
    """Key-value store that lives only as long as the process."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value) -> None:
        self._data[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data = {}


class JsonFileStorage:
    """Key-value store kept in a single JSON object on disk.

    Every write rewrites the whole file. Reads tolerate a missing or damaged
    file and treat it as empty; write failures raise ``OSError``.
    """

    def __init__(self, path: str) -> None:
        self.path = path

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as handler:
                data = json.load(handler)
        except (OSError, json.JSONDecodeError, ValueError):
            logger.warning("Ignoring unreadable state file %s", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(key): str(value) for key, value in data.items()}

    def _dump(self, data: Dict[str, str]) -> None:
        with open(self.path, "w", encoding="utf-8") as handler:
            json.dump(data, handler)

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value) -> None:
        data = self._load()
        data[key] = str(value)
        self._dump(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)

    def clear(self) -> None:
        self._dump({})


def storage_supported(storage) -> bool:
    if storage is None:
        return False
    try:
        storage.set_item("test", "1")
        storage.remove_item("test")
    except Exception as exc:
        logger.warning("Storage %r is unavailable: %s", storage, exc)
        return False
    return True


def default_storage(path: Optional[str] = None):
    path = path or os.environ.get(STATE_FILE_ENV) or DEFAULT_STATE_FILE
    return JsonFileStorage(path)


class StorageManager:
    """Best score and in-progress session persistence.

    Every operation is fail-open: if the backing store stops working it is
    replaced by a :class:`MemoryStorage` so play continues without durability.
    The replacement is seeded with the last values read or written, so the best
    score never goes backwards.
    """

    def __init__(self, storage=None) -> None:
        self._known: Dict[str, str] = {}
        if storage_supported(storage):
            self.storage = storage
            self._durable = True
        else:
            if storage is not None:
                logger.warning("Falling back to in-memory storage; progress will not be saved")
            self.storage = MemoryStorage()
            self._durable = False

    @property
    def durable(self) -> bool:
        return self._durable

    def _degrade(self) -> None:
        logger.exception("Storage %r failed; switching to in-memory storage", self.storage)
        self.storage = MemoryStorage()
        self._durable = False
        for key, value in self._known.items():
            self.storage.set_item(key, value)

    def _get(self, key: str) -> Optional[str]:
        try:
            raw = self.storage.get_item(key)
        except Exception:
            self._degrade()
            raw = self.storage.get_item(key)
        if raw is not None:
            self._known[key] = str(raw)
        return raw

    def _set(self, key: str, value) -> None:
        self._known[key] = str(value)
        try:
            self.storage.set_item(key, value)
        except Exception:
            self._degrade()

    def _remove(self, key: str) -> None:
        self._known.pop(key, None)
        try:
            self.storage.remove_item(key)
        except Exception:
            self._degrade()

    def get_best_score(self) -> int:
        raw = self._get(BEST_SCORE_KEY)
        try:
            return max(int(raw), 0) if raw is not None else 0
        except ValueError:
            return 0

    def set_best_score(self, score: int) -> None:
        self._set(BEST_SCORE_KEY, int(score))

    def get_game_state(self) -> Optional[Dict]:
        raw = self._get(GAME_STATE_KEY)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding unparseable saved game")
            return None

    def set_game_state(self, state: Dict) -> None:
        self._set(GAME_STATE_KEY, json.dumps(state))

    def clear_game_state(self) -> None:
        self._remove(GAME_STATE_KEY)
