"""Тесты запуска фазы"""

import os
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import BlockingCreateStorage, FailingCreateStorage, VanishingDirStorage
from iobench.errors import SetupError
from iobench.phase import (
    LateWorkers,
    collect_outcomes,
    discard_late_object,
    prepare_target,
    run_phase,
)
from iobench.results import Point, WorkerOutcome, reduce_outcomes
from iobench.workloads import BenchmarkParameters, IOMode


@pytest.fixture
def pool():
    executor = ThreadPoolExecutor(max_workers=8)
    yield executor
    executor.shutdown(wait=False, cancel_futures=True)


@pytest.mark.unit
class TestPrepareTarget:
    """Проверка директории до запуска воркеров"""

    def test_write_creates_missing_directory(self, memory_storage):
        """Для записи директория создаётся"""
        prepare_target(memory_storage, "/bench/", IOMode.WRITE)
        assert memory_storage.exists("/bench/")

    def test_read_requires_directory(self, memory_storage):
        """Для чтения отсутствие директории - SetupError"""
        with pytest.raises(SetupError, match="does not exist"):
            prepare_target(memory_storage, "/bench/", IOMode.READ)

    def test_backend_failure_is_setup_error(self, memory_storage, monkeypatch):
        """Ошибка хранилища при проверке - SetupError"""
        def broken_mkdirs(path):
            raise PermissionError(13, "Permission denied", path)

        monkeypatch.setattr(memory_storage, "mkdirs", broken_mkdirs)
        with pytest.raises(SetupError, match="Cannot prepare"):
            prepare_target(memory_storage, "/bench/", IOMode.WRITE)

    def test_setup_error_is_os_error(self, memory_storage):
        """SetupError ловится как OSError"""
        with pytest.raises(OSError):
            prepare_target(memory_storage, "/nope/", IOMode.READ)


@pytest.mark.unit
class TestCollectOutcomes:
    """Сбор итогов всех воркеров"""

    def test_outcomes_ordered_by_index(self, pool):
        """Итоги возвращаются по порядку номеров"""
        def task(index):
            return WorkerOutcome(index, IOMode.WRITE, Point(IOMode.WRITE, 0.1, index))

        outcomes = collect_outcomes(pool, IOMode.WRITE, 6, task)
        assert [o.index for o in outcomes] == list(range(6))
        assert [o.point.data_size for o in outcomes] == list(range(6))

    def test_crashed_task_is_recorded(self, pool):
        """Исключение в задаче не прерывает фазу и фиксируется ошибкой"""
        def task(index):
            if index == 1:
                raise RuntimeError("bug in backend")
            return WorkerOutcome(index, IOMode.READ, Point(IOMode.READ, 0.1, 1))

        outcomes = collect_outcomes(pool, IOMode.READ, 3, task)
        assert len(outcomes) == 3
        assert outcomes[0].ok and outcomes[2].ok
        assert outcomes[1].errors == ("Worker 1 failed: RuntimeError: bug in backend",)

    def test_timeout_records_unfinished_workers(self):
        """Воркер, не успевший за timeout, записывается как ошибка"""
        storage = BlockingCreateStorage()
        params = BenchmarkParameters(path="/bench/", threads=3, io_size="1KB", timeout=0.5)
        executor = ThreadPoolExecutor(max_workers=3)
        try:
            outcomes = run_phase(storage, params, IOMode.WRITE, executor, 1024, buffer_size=256)
        finally:
            storage.release.set()
            executor.shutdown(wait=True)

        assert len(outcomes) == 3
        assert outcomes[0].point is None
        assert "did not complete write within 0.5s" in outcomes[0].errors[0]
        assert outcomes[1].ok and outcomes[2].ok

    def test_only_started_workers_are_late(self):
        """Задача, отменённая в очереди, не считается работающей"""
        release = threading.Event()
        late = LateWorkers()

        def task(index):
            release.wait(10)
            return WorkerOutcome(index, IOMode.WRITE, Point(IOMode.WRITE, 0.1, 1))

        executor = ThreadPoolExecutor(max_workers=1)
        try:
            outcomes = collect_outcomes(executor, IOMode.WRITE, 2, task, timeout=0.2, late=late)
        finally:
            release.set()
            executor.shutdown(wait=True)

        assert [o.ok for o in outcomes] == [False, False]
        assert late.indexes() == [0]
        assert 0 in late and 1 not in late


@pytest.mark.unit
class TestLateWriters:
    """Писатели, брошенные по timeout"""

    def test_late_writer_deletes_its_object(self):
        """Опоздавший писатель удаляет объект, созданный после очистки"""
        storage = BlockingCreateStorage()
        params = BenchmarkParameters(path="/bench/", threads=2, io_size="1KB", timeout=0.3)
        late = LateWorkers()
        executor = ThreadPoolExecutor(max_workers=2)
        try:
            run_phase(storage, params, IOMode.WRITE, executor, 1024, buffer_size=256,
                      late_writers=late)
            assert late.indexes() == [0]
            assert sorted(storage.files()) == ["/bench/io-benchmark-1"]
        finally:
            storage.release.set()
            executor.shutdown(wait=True)

        assert sorted(storage.files()) == ["/bench/io-benchmark-1"]

    def test_read_skips_late_writers(self, memory_storage, pool):
        """Объект опоздавшего писателя не читается"""
        params = BenchmarkParameters(path="/bench/", threads=2, io_size="1KB")
        run_phase(memory_storage, params, IOMode.WRITE, pool, 1024, buffer_size=256)
        late = LateWorkers()
        late.add(1)
        opened = []
        real_open = memory_storage.open

        def tracking_open(path):
            opened.append(path)
            return real_open(path)

        memory_storage.open = tracking_open
        outcomes = run_phase(memory_storage, params, IOMode.READ, pool, 1024,
                             buffer_size=256, late_writers=late)

        assert outcomes[0].ok
        assert outcomes[1].errors == (
            "Worker 1 skipped read: write did not complete in time",)
        assert opened == ["/bench/io-benchmark-0"]

    def test_discard_missing_object(self, memory_storage):
        """Отсутствующий объект опоздавшего писателя - не ошибка"""
        discard_late_object(memory_storage, 0, "/bench/io-benchmark-0")
        assert memory_storage.files() == {}


@pytest.mark.unit
class TestRunPhase:
    """Фаза целиком"""

    @pytest.mark.parametrize("workers", [1, 2, 3, 5, 8, 16])
    def test_write_phase_yields_one_outcome_per_worker(self, memory_storage, pool, workers):
        """W воркеров дают ровно W итогов и points + errors == W"""
        params = BenchmarkParameters(path="/bench/", threads=workers, io_size="8KB")
        outcomes = run_phase(memory_storage, params, IOMode.WRITE, pool, 8192, buffer_size=1024)

        assert len(outcomes) == workers
        result = reduce_outcomes(outcomes)
        assert len(result.points) + len(result.errors) == workers

    def test_partial_failure_does_not_cancel_siblings(self, pool):
        """Ошибка одного воркера не мешает остальным"""
        storage = FailingCreateStorage([0, 3])
        params = BenchmarkParameters(path="/bench/", threads=5, io_size="2KB")
        outcomes = run_phase(storage, params, IOMode.WRITE, pool, 2048, buffer_size=512)

        assert [o.ok for o in outcomes] == [False, True, True, False, True]
        assert sorted(storage.files()) == [f"/bench/io-benchmark-{i}" for i in (1, 2, 4)]

    def test_read_phase_fails_fast_without_directory(self, pool):
        """Без директории фаза чтения не запускает воркеров"""
        storage = VanishingDirStorage()
        params = BenchmarkParameters(path="/bench/", threads=2, io_size="1KB")
        opened = []
        storage.open = lambda path: opened.append(path)

        with pytest.raises(SetupError):
            run_phase(storage, params, IOMode.READ, pool, 1024)
        assert opened == []

    def test_write_payload_is_shared(self, memory_storage, pool, monkeypatch):
        """Случайный буфер генерируется один раз на фазу"""
        calls = []
        real_urandom = os.urandom

        def counting_urandom(n):
            calls.append(n)
            return real_urandom(n)

        monkeypatch.setattr(os, "urandom", counting_urandom)
        params = BenchmarkParameters(path="/bench/", threads=4, io_size="4KB")
        run_phase(memory_storage, params, IOMode.WRITE, pool, 4096, buffer_size=1024)

        assert calls == [1024]
