"""Определения режимов нагрузки и параметров запуска"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import List, Optional

from .errors import ConfigurationError
from .sizes import parse_space_size


class IOMode(Enum):
    """Тип операции воркера"""
    WRITE = 'write'
    READ = 'read'


class WorkloadConfig:
    """Конфигурация нагрузки"""

    # Размер одного блока записи/чтения
    BUFFER_SIZE = 1024 * 1024  # 1 MB

    DEFAULT_THREADS = 4
    DEFAULT_IO_SIZE = "4G"

    # Имя объекта добавляется к целевому пути без разделителя
    OBJECT_NAME = "io-benchmark-{}"

    # Размер части multipart upload для S3 (минимум у S3 - 5 MB)
    S3_PART_SIZE = 8 * 1024 * 1024


@dataclass(frozen=True)
class BenchmarkParameters:
    """Неизменяемые параметры одного запуска"""
    path: str
    threads: int = WorkloadConfig.DEFAULT_THREADS
    io_size: str = WorkloadConfig.DEFAULT_IO_SIZE
    timeout: Optional[float] = None

    def validate(self) -> int:
        """Проверка параметров, возвращает размер нагрузки в байтах"""
        if not self.path:
            raise ConfigurationError("Target path must not be empty")
        if isinstance(self.threads, bool) or not isinstance(self.threads, int):
            raise ConfigurationError(f"Thread count must be an integer, got {self.threads!r}")
        if self.threads <= 0:
            raise ConfigurationError(f"Thread count must be positive, got {self.threads}")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"Timeout must be positive, got {self.timeout}")
        return parse_space_size(self.io_size)

    @property
    def io_size_bytes(self) -> int:
        return parse_space_size(self.io_size)

    def object_path(self, index: int) -> str:
        """Путь объекта для воркера с номером index"""
        return self.path + WorkloadConfig.OBJECT_NAME.format(index)

    def object_paths(self) -> List[str]:
        return [self.object_path(i) for i in range(self.threads)]

    def to_dict(self):
        return asdict(self)
