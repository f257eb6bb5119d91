"""Сводная статистика, сохранение сырых данных и текстовый отчёт"""

import json
from dataclasses import dataclass, asdict, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from .results import IOTaskResult, Point
from .sizes import format_space_size
from .workloads import BenchmarkParameters, IOMode


@dataclass
class SpeedStat:
    """Скорость одной фазы по всем воркерам, MB/s"""
    points: int = 0
    total_duration_seconds: float = 0.0
    total_size_bytes: int = 0
    max_speed_mbps: float = 0.0
    min_speed_mbps: float = 0.0
    avg_speed_mbps: float = 0.0
    cluster_avg_speed_mbps: float = 0.0
    std_dev: float = 0.0
    saturation_speed_mbps: float = 0.0

    def to_dict(self):
        return asdict(self)


def calculate_stat(points: List[Point]) -> SpeedStat:
    """Статистика по точкам одного режима"""
    if not points:
        return SpeedStat()

    durations = np.array([p.duration for p in points], dtype=float)
    sizes = np.array([p.data_size for p in points], dtype=float)
    size_mb = sizes / (1024 * 1024)

    # Нулевая длительность даёт скорость 0, а не бесконечность
    speeds = np.divide(size_mb, durations, out=np.zeros_like(size_mb), where=durations > 0)

    total_duration = float(durations.sum())
    total_size_mb = float(size_mb.sum())
    avg_speed = total_size_mb / total_duration if total_duration > 0 else 0.0
    longest = float(durations.max())

    return SpeedStat(
        points=len(points),
        total_duration_seconds=total_duration,
        total_size_bytes=int(sizes.sum()),
        max_speed_mbps=float(speeds.max()),
        min_speed_mbps=float(speeds.min()),
        avg_speed_mbps=avg_speed,
        cluster_avg_speed_mbps=avg_speed * len(points),
        std_dev=float(np.std(speeds)),
        saturation_speed_mbps=total_size_mb / longest if longest > 0 else 0.0,
    )


@dataclass
class IOTaskSummary:
    """Итог запуска: параметры, скорости по фазам, ошибки"""
    parameters: Dict
    write: SpeedStat
    read: SpeedStat
    errors: Dict[str, List[str]] = field(default_factory=dict)
    success_rate: Dict[str, float] = field(default_factory=dict)

    @property
    def error_count(self) -> int:
        return sum(len(messages) for messages in self.errors.values())

    def stat(self, mode: IOMode) -> SpeedStat:
        return self.write if mode is IOMode.WRITE else self.read

    def to_dict(self):
        return {
            'parameters': self.parameters,
            'write': self.write.to_dict(),
            'read': self.read.to_dict(),
            'errors': self.errors,
            'success_rate': self.success_rate,
        }


def summarize(result: IOTaskResult, parameters: BenchmarkParameters) -> IOTaskSummary:
    """Сводка по объединённому отчёту"""
    stats = {}
    errors = {}
    success_rate = {}
    for mode in IOMode:
        mode_result = result.for_mode(mode)
        stats[mode] = calculate_stat(mode_result.points)
        errors[mode.value] = mode_result.error_messages()
        success_rate[mode.value] = len(mode_result.points) / parameters.threads

    return IOTaskSummary(
        parameters=parameters.to_dict(),
        write=stats[IOMode.WRITE],
        read=stats[IOMode.READ],
        errors=errors,
        success_rate=success_rate,
    )


class MetricsCollector:
    """Сборщик результатов одного запуска"""

    def __init__(self, parameters: BenchmarkParameters, result: IOTaskResult,
                 storage_type: str = "unknown"):
        self.parameters = parameters
        self.result = result
        self.storage_type = storage_type
        self.summary = summarize(result, parameters)
        self.timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    def save_raw_data(self, output_dir: Path) -> Path:
        """Сохранить сырые данные в JSON"""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        data = {
            'timestamp': self.timestamp,
            'storage_type': self.storage_type,
            'parameters': self.parameters.to_dict(),
            'result': self.result.to_dict(),
            'summary': self.summary.to_dict(),
        }

        output_file = output_dir / f"iobench_raw_{self.timestamp}.json"
        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        return output_file

    def generate_report(self, output_dir: Optional[Path] = None) -> str:
        """Генерация текстового отчета, при output_dir он сохраняется в файл"""
        report_lines = []
        report_lines.append("=" * 80)
        report_lines.append("STORAGE IO BENCHMARK REPORT")
        report_lines.append("=" * 80)
        report_lines.append(f"Timestamp:   {self.timestamp}")
        report_lines.append(f"Storage:     {self.storage_type}")
        report_lines.append(f"Path:        {self.parameters.path}")
        report_lines.append(f"Threads:     {self.parameters.threads}")
        report_lines.append(f"IO size:     {self.parameters.io_size} per thread")

        for mode in IOMode:
            stat = self.summary.stat(mode)
            errors = self.summary.errors[mode.value]
            report_lines.append(f"\n{'=' * 80}")
            report_lines.append(f"PHASE: {mode.value.upper()}")
            report_lines.append('=' * 80)
            report_lines.append(f"    Workers OK:       {stat.points:>10} / {self.parameters.threads}")
            report_lines.append(f"    Data:             {format_space_size(stat.total_size_bytes):>13}")
            report_lines.append(f"    Throughput (avg): {stat.avg_speed_mbps:>10.2f} MB/s")
            report_lines.append(f"    Throughput (min): {stat.min_speed_mbps:>10.2f} MB/s")
            report_lines.append(f"    Throughput (max): {stat.max_speed_mbps:>10.2f} MB/s")
            report_lines.append(f"    Std deviation:    {stat.std_dev:>10.2f} MB/s")
            report_lines.append(f"    Cluster (avg):    {stat.cluster_avg_speed_mbps:>10.2f} MB/s")
            report_lines.append(f"    Saturation:       {stat.saturation_speed_mbps:>10.2f} MB/s")
            report_lines.append(f"    Total time:       {stat.total_duration_seconds:>10.2f} sec")
            report_lines.append(f"    Errors:           {len(errors):>10}")
            for message in errors:
                report_lines.append(f"      - {message}")

        report_lines.append("\n" + "=" * 80)

        report_text = "\n".join(report_lines)

        if output_dir is not None:
            output_dir = Path(output_dir)
            output_dir.mkdir(parents=True, exist_ok=True)
            report_file = output_dir / f"iobench_report_{self.timestamp}.txt"
            with open(report_file, 'w', encoding='utf-8') as f:
                f.write(report_text)

        return report_text
