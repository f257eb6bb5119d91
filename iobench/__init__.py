"""Storage IO Benchmark Framework"""

from .base import StorageBackend
from .bench import BenchState, IOBench
from .errors import ConfigurationError, IOBenchError, SetupError
from .filesystem import LocalStorage
from .memory import MemoryStorage
from .metrics import IOTaskSummary, MetricsCollector, SpeedStat, summarize
from .native_s3 import S3Storage
from .results import IOTaskResult, Point, TaskError, WorkerOutcome, merge_results, reduce_outcomes
from .sizes import format_space_size, parse_space_size
from .workloads import BenchmarkParameters, IOMode, WorkloadConfig

__all__ = [
    'StorageBackend',
    'BenchState',
    'IOBench',
    'ConfigurationError',
    'IOBenchError',
    'SetupError',
    'LocalStorage',
    'MemoryStorage',
    'IOTaskSummary',
    'MetricsCollector',
    'SpeedStat',
    'summarize',
    'S3Storage',
    'IOTaskResult',
    'Point',
    'TaskError',
    'WorkerOutcome',
    'merge_results',
    'reduce_outcomes',
    'format_space_size',
    'parse_space_size',
    'BenchmarkParameters',
    'IOMode',
    'WorkloadConfig',
]
