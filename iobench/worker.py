"""Задачи воркеров: одна запись или одно чтение одного объекта"""

import threading
import time
from typing import List

from .base import StorageBackend
from .log import get_logger
from .results import Point, WorkerOutcome
from .workloads import IOMode, WorkloadConfig

logger = get_logger(__name__, component="worker")


def _close_stream(stream, path: str, index: int, errors: List[str]):
    """
    Закрытие потока, ошибка закрытия добавляется к ошибкам воркера.
    Ловится любое исключение: замер, сделанный до close, не теряется.
    """
    if stream is None:
        return
    try:
        stream.close()
    except Exception as e:
        logger.warning("Failed to close stream", path=path, worker=index, error=str(e))
        errors.append(f"Failed to close {path}: {e}")


def run_write_task(storage: StorageBackend, index: int, path: str,
                   io_size_bytes: int, data: bytes) -> WorkerOutcome:
    """
    Запись io_size_bytes байт в path блоками из data.
    Время считается от открытия потока до flush включительно.
    """
    if not data and io_size_bytes > 0:
        raise ValueError("Write payload must not be empty")

    logger.debug("Writing", path=path, worker=index, io_size=io_size_bytes,
                 thread=threading.current_thread().name)
    errors: List[str] = []
    point = None
    stream = None
    written = 0
    view = memoryview(data)
    start = time.perf_counter()
    try:
        stream = storage.create(path)
        while written < io_size_bytes:
            to_write = min(io_size_bytes - written, len(data))
            stream.write(view[:to_write])
            written += to_write
        stream.flush()

        duration = time.perf_counter() - start
        point = Point(IOMode.WRITE, duration, written)
        logger.debug("Write task finished", path=path, worker=index,
                     duration=duration, data_size=written)
    except OSError as e:
        logger.error("Failed to write", path=path, worker=index, error=str(e))
        errors.append(f"Failed to write {path}: {e}")
    finally:
        _close_stream(stream, path, index, errors)

    return WorkerOutcome(index=index, mode=IOMode.WRITE, point=point, errors=tuple(errors))


def run_read_task(storage: StorageBackend, index: int, path: str, io_size_bytes: int,
                  buffer_size: int = WorkloadConfig.BUFFER_SIZE) -> WorkerOutcome:
    """
    Чтение из path до io_size_bytes байт или до конца данных.
    Короткое чтение тоже считается успешным замером.
    """
    logger.debug("Reading", path=path, worker=index, io_size=io_size_bytes,
                 thread=threading.current_thread().name)
    errors: List[str] = []
    point = None
    stream = None
    read_bytes = 0
    start = time.perf_counter()
    try:
        stream = storage.open(path)
        while read_bytes < io_size_bytes:
            chunk = stream.read(min(buffer_size, io_size_bytes - read_bytes))
            if not chunk:
                break
            read_bytes += len(chunk)

        duration = time.perf_counter() - start
        point = Point(IOMode.READ, duration, read_bytes)
        logger.debug("Read task finished", path=path, worker=index,
                     duration=duration, data_size=read_bytes)
    except OSError as e:
        logger.error("Failed to read", path=path, worker=index, error=str(e))
        errors.append(f"Failed to read {path}: {e}")
    finally:
        _close_stream(stream, path, index, errors)

    return WorkerOutcome(index=index, mode=IOMode.READ, point=point, errors=tuple(errors))
