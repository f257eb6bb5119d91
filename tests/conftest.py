"""
Общие фикстуры тестов.

Все тесты работают с хранилищем в памяти или во временной директории,
настоящее S3 не нужно.
"""

import errno
import io
import threading

import matplotlib
import pytest
import structlog

from iobench.memory import MemoryStorage
from iobench.workloads import BenchmarkParameters

matplotlib.use("Agg")


class FailingCreateStorage(MemoryStorage):
    """create() падает для путей с заданными номерами воркеров"""

    def __init__(self, failing_indexes):
        super().__init__()
        self.failing_indexes = set(failing_indexes)

    def create(self, path):
        if any(path.endswith(f"io-benchmark-{i}") for i in self.failing_indexes):
            raise OSError(errno.EIO, "Injected create failure", path)
        return super().create(path)


class _FailingCloseStream(io.BytesIO):
    def close(self):
        was_open = not self.closed
        super().close()
        if was_open:
            raise OSError(errno.EIO, "Injected close failure")


class FailingCloseStorage(MemoryStorage):
    """Поток чтения читается нормально, но не закрывается"""

    def open(self, path):
        stream = super().open(path)
        return _FailingCloseStream(stream.getvalue())


class VanishingDirStorage(MemoryStorage):
    """mkdirs() ничего не делает: директория так и не появляется"""

    def mkdirs(self, path):
        pass


class FailingDeleteStorage(MemoryStorage):
    """delete_file() всегда падает"""

    def delete_file(self, path):
        raise PermissionError(errno.EACCES, "Injected delete failure", path)


class BlockingCreateStorage(MemoryStorage):
    """create() для воркера 0 ждёт release"""

    def __init__(self):
        super().__init__()
        self.release = threading.Event()

    def create(self, path):
        if path.endswith("io-benchmark-0"):
            self.release.wait(10)
        return super().create(path)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Возврат structlog к настройкам по умолчанию после CLI тестов"""
    yield
    structlog.reset_defaults()


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def bench_parameters():
    return BenchmarkParameters(path="/bench/", threads=4, io_size="4MB")
