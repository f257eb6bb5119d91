"""Запуск одной фазы: все воркеры параллельно, ждём всех"""

import os
import threading
from concurrent.futures import Executor, wait
from typing import Callable, List, Optional, Set

from .base import StorageBackend
from .errors import SetupError
from .log import get_logger
from .results import WorkerOutcome
from .worker import run_read_task, run_write_task
from .workloads import BenchmarkParameters, IOMode, WorkloadConfig

logger = get_logger(__name__, component="phase")


class LateWorkers:
    """Номера воркеров, которые не уложились в timeout и ещё выполняются"""

    def __init__(self):
        self._lock = threading.Lock()
        self._indexes: Set[int] = set()

    def add(self, index: int):
        with self._lock:
            self._indexes.add(index)

    def __contains__(self, index: int) -> bool:
        with self._lock:
            return index in self._indexes

    def __len__(self) -> int:
        with self._lock:
            return len(self._indexes)

    def indexes(self) -> List[int]:
        with self._lock:
            return sorted(self._indexes)


def discard_late_object(storage: StorageBackend, index: int, path: str):
    """Удаление объекта, записанного воркером уже после очистки"""
    try:
        storage.delete_file(path)
    except FileNotFoundError:
        logger.debug("Late worker left no object", worker=index, path=path)
    except OSError as e:
        logger.warning("Failed to delete object of late worker", worker=index,
                       path=path, error=str(e))
    else:
        logger.info("Deleted object of late worker", worker=index, path=path)


def prepare_target(storage: StorageBackend, path: str, mode: IOMode):
    """
    Проверка целевой директории до запуска воркеров.
    Для записи директория создаётся, для чтения должна уже быть.
    """
    try:
        exists = storage.exists(path)
        if mode is IOMode.WRITE and not exists:
            logger.debug("Prepare directory", path=path)
            storage.mkdirs(path)
    except OSError as e:
        raise SetupError(f"Cannot prepare target directory {path}: {e}") from e

    if mode is IOMode.READ and not exists:
        raise SetupError(f"The target directory {path} does not exist!")


def collect_outcomes(pool: Executor, mode: IOMode, worker_count: int,
                     task: Callable[[int], WorkerOutcome],
                     timeout: Optional[float] = None,
                     late: Optional[LateWorkers] = None) -> List[WorkerOutcome]:
    """
    Запуск task(index) для каждого воркера и сбор всех итогов по порядку.
    Ошибка одного воркера не останавливает остальных.

    Воркеры, которые к timeout уже начали работу и не закончили,
    попадают в late.
    """
    futures = [pool.submit(task, index) for index in range(worker_count)]
    _, not_done = wait(futures, timeout=timeout)

    outcomes = []
    for index, future in enumerate(futures):
        if future in not_done:
            # cancel() не останавливает уже запущенную задачу
            if not future.cancel() and late is not None:
                late.add(index)
            logger.error("Worker did not complete in time", worker=index,
                         mode=mode.value, timeout=timeout)
            outcomes.append(WorkerOutcome.failure(
                index, mode, f"Worker {index} did not complete {mode.value} within {timeout}s"))
            continue
        try:
            outcomes.append(future.result())
        except Exception as e:
            # Задача упала не на I/O - фиксируем как ошибку воркера
            logger.exception("Worker crashed", worker=index, mode=mode.value)
            outcomes.append(WorkerOutcome.failure(
                index, mode, f"Worker {index} failed: {type(e).__name__}: {e}"))
    return outcomes


def run_phase(storage: StorageBackend, parameters: BenchmarkParameters, mode: IOMode,
              pool: Executor, io_size_bytes: int,
              buffer_size: int = WorkloadConfig.BUFFER_SIZE,
              late_writers: Optional[LateWorkers] = None) -> List[WorkerOutcome]:
    """
    Фаза записи или чтения по всем воркерам.

    late_writers - писатели, брошенные по timeout. При записи фаза сама
    их туда добавляет, и такой воркер удаляет свой объект, когда
    всё-таки закончит. При чтении их объекты не читаются.
    """
    prepare_target(storage, parameters.path, mode)

    if mode is IOMode.WRITE:
        # Один случайный буфер на всех воркеров
        data = os.urandom(buffer_size)

        def task(index):
            path = parameters.object_path(index)
            outcome = run_write_task(storage, index, path, io_size_bytes, data)
            if late_writers is not None and index in late_writers:
                discard_late_object(storage, index, path)
            return outcome
    else:
        def task(index):
            if late_writers is not None and index in late_writers:
                return WorkerOutcome.failure(
                    index, mode, f"Worker {index} skipped read: write did not complete in time")
            return run_read_task(storage, index, parameters.object_path(index),
                                 io_size_bytes, buffer_size)

    logger.info("Phase started", mode=mode.value, workers=parameters.threads,
                io_size=io_size_bytes, path=parameters.path)
    outcomes = collect_outcomes(pool, mode, parameters.threads, task, parameters.timeout,
                                late=late_writers if mode is IOMode.WRITE else None)
    logger.info("Phase finished", mode=mode.value,
                succeeded=sum(1 for o in outcomes if o.ok),
                failed=sum(1 for o in outcomes if not o.ok))
    return outcomes
