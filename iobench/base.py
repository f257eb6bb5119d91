"""Базовый класс хранилища, на котором выполняется бенчмарк"""

from abc import ABC, abstractmethod
from typing import BinaryIO


class StorageBackend(ABC):
    """
    Узкий интерфейс хранилища.

    Один экземпляр используется всеми воркерами одновременно, поэтому
    реализация не должна держать изменяемого состояния без блокировки.
    Ошибки хранилища выбрасываются как OSError.
    """

    name = "base"

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Существует ли файл или директория"""
        pass

    @abstractmethod
    def mkdirs(self, path: str) -> None:
        """Создание директории вместе с родителями"""
        pass

    @abstractmethod
    def create(self, path: str) -> BinaryIO:
        """
        Открытие потока на запись.
        Поток поддерживает write(bytes), flush() и close().
        """
        pass

    @abstractmethod
    def open(self, path: str) -> BinaryIO:
        """
        Открытие потока на чтение.
        read(size) возвращает b"" в конце данных.
        """
        pass

    @abstractmethod
    def delete_file(self, path: str) -> None:
        """Удаление файла"""
        pass

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r})"
