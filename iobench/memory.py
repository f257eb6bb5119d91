"""Хранилище в памяти процесса, для пробных запусков и тестов"""

import errno
import io
import threading
from typing import Dict, Set

from .base import StorageBackend


class _MemoryWriteStream(io.BytesIO):
    """Буфер, содержимое которого публикуется в хранилище при flush/close"""

    def __init__(self, storage: 'MemoryStorage', path: str):
        super().__init__()
        self._storage = storage
        self._path = path

    def flush(self):
        super().flush()
        if not self.closed:
            self._storage._put(self._path, self.getvalue())

    def close(self):
        if not self.closed:
            self._storage._put(self._path, self.getvalue())
        super().close()


class MemoryStorage(StorageBackend):
    """Объекты хранятся в словаре, директории - в множестве"""

    name = "memory"

    def __init__(self):
        self._lock = threading.Lock()
        self._files: Dict[str, bytes] = {}
        self._dirs: Set[str] = set()

    @staticmethod
    def _dir_key(path: str) -> str:
        return path.rstrip('/') or '/'

    def _put(self, path: str, data: bytes):
        with self._lock:
            self._files[path] = data

    def exists(self, path: str) -> bool:
        with self._lock:
            return path in self._files or self._dir_key(path) in self._dirs

    def mkdirs(self, path: str) -> None:
        with self._lock:
            self._dirs.add(self._dir_key(path))

    def create(self, path: str):
        return _MemoryWriteStream(self, path)

    def open(self, path: str):
        with self._lock:
            data = self._files.get(path)
        if data is None:
            raise FileNotFoundError(errno.ENOENT, "No such object", path)
        return io.BytesIO(data)

    def delete_file(self, path: str) -> None:
        with self._lock:
            if path not in self._files:
                raise FileNotFoundError(errno.ENOENT, "No such object", path)
            del self._files[path]

    def files(self) -> Dict[str, int]:
        """Снимок: путь -> размер объекта"""
        with self._lock:
            return {path: len(data) for path, data in self._files.items()}
