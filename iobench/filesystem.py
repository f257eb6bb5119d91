"""Хранилище на локальной или смонтированной ФС (s3fs, goofys, NFS)"""

from pathlib import Path

from .base import StorageBackend


class LocalStorage(StorageBackend):
    """Файловая система, доступная через обычные пути"""

    name = "local"

    @staticmethod
    def _resolve(path: str) -> Path:
        if path.startswith("file://"):
            path = path[len("file://"):]
        return Path(path)

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def mkdirs(self, path: str) -> None:
        self._resolve(path).mkdir(parents=True, exist_ok=True)

    def create(self, path: str):
        return open(self._resolve(path), 'wb')

    def open(self, path: str):
        return open(self._resolve(path), 'rb')

    def delete_file(self, path: str) -> None:
        self._resolve(path).unlink()
