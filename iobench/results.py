"""Результаты воркеров и их агрегация"""

from dataclasses import dataclass, field
from functools import reduce
from typing import Iterable, List, Optional, Tuple

from .workloads import IOMode


@dataclass(frozen=True)
class Point:
    """Одно измерение: сколько байт и за сколько секунд"""
    mode: IOMode
    duration: float
    data_size: int

    def __post_init__(self):
        if self.duration < 0:
            raise ValueError(f"Duration must be non-negative, got {self.duration}")
        if self.data_size < 0:
            raise ValueError(f"Data size must be non-negative, got {self.data_size}")

    @property
    def throughput_mbps(self) -> float:
        if self.duration <= 0:
            return 0.0
        return (self.data_size / (1024 * 1024)) / self.duration

    def to_dict(self):
        return {
            'mode': self.mode.value,
            'duration': self.duration,
            'data_size': self.data_size,
        }


@dataclass(frozen=True)
class TaskError:
    """Сообщение об ошибке вместе с фазой, в которой она случилась"""
    mode: IOMode
    message: str

    def __str__(self):
        return self.message

    def to_dict(self):
        return {'mode': self.mode.value, 'message': self.message}


@dataclass(frozen=True)
class WorkerOutcome:
    """
    Итог одного воркера.

    Обычно заполнено что-то одно: point или errors. Если замер получен,
    но поток не закрылся, есть и то и другое.
    """
    index: int
    mode: IOMode
    point: Optional[Point] = None
    errors: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.point is None and not self.errors:
            raise ValueError(f"Worker {self.index} outcome has neither a point nor an error")
        if self.point is not None and self.point.mode is not self.mode:
            raise ValueError(f"Point mode {self.point.mode} does not match outcome mode {self.mode}")

    @property
    def ok(self) -> bool:
        return self.point is not None and not self.errors

    @classmethod
    def failure(cls, index: int, mode: IOMode, message: str) -> 'WorkerOutcome':
        return cls(index=index, mode=mode, errors=(message,))


@dataclass
class IOTaskResult:
    """Сырые точки и ошибки одной или нескольких фаз"""
    points: List[Point] = field(default_factory=list)
    errors: List[TaskError] = field(default_factory=list)

    def add_point(self, point: Point):
        self.points.append(point)

    def add_error(self, mode: IOMode, message: str):
        self.errors.append(TaskError(mode, message))

    def merge(self, other: 'IOTaskResult') -> 'IOTaskResult':
        """Новый результат с точками и ошибками обоих, исходные не меняются"""
        return IOTaskResult(
            points=self.points + other.points,
            errors=self.errors + other.errors,
        )

    def for_mode(self, mode: IOMode) -> 'IOTaskResult':
        return IOTaskResult(
            points=[p for p in self.points if p.mode is mode],
            errors=[e for e in self.errors if e.mode is mode],
        )

    def error_messages(self, mode: Optional[IOMode] = None) -> List[str]:
        return [e.message for e in self.errors if mode is None or e.mode is mode]

    @classmethod
    def from_outcome(cls, outcome: WorkerOutcome) -> 'IOTaskResult':
        result = cls()
        if outcome.point is not None:
            result.add_point(outcome.point)
        for message in outcome.errors:
            result.add_error(outcome.mode, message)
        return result

    def to_dict(self):
        return {
            'points': [p.to_dict() for p in self.points],
            'errors': [e.to_dict() for e in self.errors],
        }


def merge_results(*results: IOTaskResult) -> IOTaskResult:
    """Объединение произвольного числа результатов"""
    return reduce(IOTaskResult.merge, results, IOTaskResult())


def reduce_outcomes(outcomes: Iterable[WorkerOutcome]) -> IOTaskResult:
    """Свёртка итогов воркеров фазы в один результат"""
    return merge_results(*(IOTaskResult.from_outcome(o) for o in outcomes))
