"""Оркестратор бенчмарка: подготовка, запись, чтение, очистка, слияние"""

from concurrent.futures import Executor, ThreadPoolExecutor
from enum import Enum
from typing import List, Optional

from .base import StorageBackend
from .errors import ConfigurationError
from .log import get_logger
from .phase import LateWorkers, run_phase
from .results import IOTaskResult, merge_results, reduce_outcomes
from .workloads import BenchmarkParameters, IOMode, WorkloadConfig

logger = get_logger(__name__, component="bench")


class BenchState(Enum):
    """Состояния запуска"""
    PREPARE = 'prepare'
    WRITE_PHASE = 'write_phase'
    READ_PHASE = 'read_phase'
    CLEANUP = 'cleanup'
    DONE = 'done'
    FAILED = 'failed'


class IOBench:
    """
    Замер пропускной способности хранилища на N параллельных клиентах.

    Каждый воркер пишет свой объект <path>io-benchmark-<i>, затем читает
    его обратно. Результат - сырые точки и ошибки обеих фаз.
    """

    def __init__(self, storage: StorageBackend, parameters: BenchmarkParameters,
                 pool_size: Optional[int] = None,
                 buffer_size: int = WorkloadConfig.BUFFER_SIZE):
        self.storage = storage
        self.parameters = parameters
        self.pool_size = pool_size
        self.buffer_size = buffer_size
        self.state = BenchState.PREPARE
        self._io_size_bytes: Optional[int] = None
        self._late_writers = LateWorkers()
        self._pool: Optional[ThreadPoolExecutor] = None

    def prepare(self) -> None:
        """Проверка параметров до любого обращения к хранилищу"""
        self.state = BenchState.PREPARE
        self._late_writers = LateWorkers()
        try:
            if self.buffer_size <= 0:
                raise ConfigurationError(f"Buffer size must be positive, got {self.buffer_size}")
            if self.pool_size is not None and self.pool_size <= 0:
                raise ConfigurationError(f"Pool size must be positive, got {self.pool_size}")
            self._io_size_bytes = self.parameters.validate()
        except ConfigurationError as e:
            self.state = BenchState.FAILED
            logger.error("Invalid benchmark parameters", error=str(e))
            raise

    @property
    def io_size_bytes(self) -> int:
        if self._io_size_bytes is None:
            raise RuntimeError("prepare() must be called before running phases")
        return self._io_size_bytes

    def write(self, pool: Executor) -> IOTaskResult:
        self.state = BenchState.WRITE_PHASE
        outcomes = run_phase(self.storage, self.parameters, IOMode.WRITE, pool,
                             self.io_size_bytes, self.buffer_size,
                             late_writers=self._late_writers)
        if self._late_writers:
            logger.warning("Writers still running after timeout",
                           workers=self._late_writers.indexes())
        return reduce_outcomes(outcomes)

    def read(self, pool: Executor) -> IOTaskResult:
        """Чтение; объекты писателей, не уложившихся в timeout, пропускаются"""
        self.state = BenchState.READ_PHASE
        outcomes = run_phase(self.storage, self.parameters, IOMode.READ, pool,
                             self.io_size_bytes, self.buffer_size,
                             late_writers=self._late_writers)
        return reduce_outcomes(outcomes)

    def cleanup(self) -> List[str]:
        """Удаление всех объектов бенчмарка, возвращает пути, которые удалить не вышло"""
        self.state = BenchState.CLEANUP
        failed = []
        for path in self.parameters.object_paths():
            try:
                self.storage.delete_file(path)
            except FileNotFoundError:
                logger.debug("Benchmark object already absent", path=path)
            except OSError as e:
                logger.warning("Failed to delete benchmark object", path=path, error=str(e))
                failed.append(path)
        return failed

    def run(self) -> IOTaskResult:
        """Полный прогон, возвращает объединённый отчёт записи и чтения"""
        self.prepare()
        logger.info("Benchmark started", storage=self.storage.name,
                    **self.parameters.to_dict())

        pool = ThreadPoolExecutor(max_workers=self.pool_size or self.parameters.threads,
                                  thread_name_prefix="bench-io-thread")
        self._pool = pool
        try:
            write_result = self.write(pool)
            read_result = self.read(pool)
        finally:
            # Зависшие воркеры не ждём, их итог уже записан как ошибка,
            # а свой объект писатель удалит сам после завершения
            pool.shutdown(wait=False, cancel_futures=True)

        self.cleanup()
        report = merge_results(write_result, read_result)
        self.state = BenchState.DONE
        logger.info("Benchmark finished", points=len(report.points), errors=len(report.errors))
        return report

    def join(self) -> None:
        """Ожидание воркеров, брошенных по timeout, вместе с удалением их объектов"""
        if self._pool is not None:
            self._pool.shutdown(wait=True)
