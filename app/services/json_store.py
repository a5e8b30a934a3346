import asyncio
import json
import os
import tempfile
import threading
from typing import Any, Callable, Dict, List, TypeVar

from app.core.exceptions import StorageError
from app.core.logger import logger

T = TypeVar("T")

# One lock per resolved file path, shared by every store pointing at it.
_locks: Dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: str) -> threading.Lock:
    key = os.path.abspath(path)
    with _locks_guard:
        if key not in _locks:
            _locks[key] = threading.Lock()
        return _locks[key]


def write_json_atomic(path: str, data: Any) -> None:
    """
    Writes `data` as 2-space indented JSON to a temp file next to `path`
    and swaps it in with os.replace, so readers never see a half-written file.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


class JsonListStore:
    """
    A JSON array on disk used as a table.

    Every mutation is a full read -> decode -> mutate -> encode -> atomic write
    cycle, done in a worker thread while holding the file's lock.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = _lock_for(path)

    def _ensure_file(self) -> None:
        if not os.path.exists(self.path):
            write_json_atomic(self.path, [])
            logger.info(f"🆕 Created empty {os.path.basename(self.path)}")

    def _read(self) -> List[dict]:
        self._ensure_file()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"❌ Corrupt JSON in {self.path}: {e}")
            raise StorageError(f"Could not decode {os.path.basename(self.path)}")
        except OSError as e:
            logger.error(f"❌ Cannot read {self.path}: {e}")
            raise StorageError(f"Could not read {os.path.basename(self.path)}")

        if not isinstance(data, list):
            logger.error(f"❌ Expected a JSON array in {self.path}, got {type(data).__name__}")
            raise StorageError(f"Unexpected content in {os.path.basename(self.path)}")
        return data

    def _read_locked(self) -> List[dict]:
        with self._lock:
            return self._read()

    def _update_locked(self, mutate: Callable[[List[dict]], T]) -> T:
        with self._lock:
            items = self._read()
            result = mutate(items)
            try:
                write_json_atomic(self.path, items)
            except OSError as e:
                logger.error(f"❌ Cannot write {self.path}: {e}")
                raise StorageError(f"Could not write {os.path.basename(self.path)}")
            return result

    async def read_all(self) -> List[dict]:
        return await asyncio.to_thread(self._read_locked)

    async def update(self, mutate: Callable[[List[dict]], T]) -> T:
        """
        Runs `mutate(items)` against the current snapshot and persists the
        list afterwards. If `mutate` raises, nothing is written.
        """
        return await asyncio.to_thread(self._update_locked, mutate)
