"""Визуализация результатов бенчмарка"""

from pathlib import Path
from typing import List

import matplotlib.pyplot as plt
import numpy as np

from .metrics import IOTaskSummary
from .results import IOTaskResult
from .workloads import IOMode

COLORS = {IOMode.WRITE: '#e74c3c', IOMode.READ: '#3498db'}


def generate_all_plots(summary: IOTaskSummary, result: IOTaskResult,
                       output_dir: Path) -> List[Path]:
    """Генерация всех графиков, возвращает пути файлов"""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = [
        output_dir / "01_throughput_summary.png",
        output_dir / "02_worker_throughput.png",
    ]
    plot_throughput_summary(summary, paths[0])
    plot_worker_throughput(result, paths[1])
    return paths


def plot_throughput_summary(summary: IOTaskSummary, output_path: Path):
    """Средняя, минимальная, максимальная скорость и насыщение по фазам"""
    metrics = ['Average', 'Min', 'Max', 'Saturation']

    fig, ax = plt.subplots(figsize=(12, 7))

    x = np.arange(len(metrics))
    width = 0.35

    for i, mode in enumerate(IOMode):
        stat = summary.stat(mode)
        values = [stat.avg_speed_mbps, stat.min_speed_mbps,
                  stat.max_speed_mbps, stat.saturation_speed_mbps]
        offset = width * (i - len(IOMode) / 2 + 0.5)
        bars = ax.bar(x + offset, values, width, label=mode.value, color=COLORS[mode])

        # Значения над столбцами
        for bar in bars:
            height = bar.get_height()
            if height > 0:
                ax.text(bar.get_x() + bar.get_width() / 2., height,
                        f'{height:.1f}',
                        ha='center', va='bottom', fontsize=9)

    ax.set_xlabel('Metric', fontsize=12, fontweight='bold')
    ax.set_ylabel('Throughput (MB/s)', fontsize=12, fontweight='bold')
    ax.set_title(f"Read/Write Throughput ({summary.parameters['threads']} threads)",
                 fontsize=14, fontweight='bold', pad=20)
    ax.set_xticks(x)
    ax.set_xticklabels(metrics, fontsize=10)
    ax.legend(fontsize=11, loc='upper right')
    ax.grid(axis='y', alpha=0.3, linestyle='--')

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)


def plot_worker_throughput(result: IOTaskResult, output_path: Path):
    """Скорость каждого успешного воркера, по убыванию"""
    fig, axes = plt.subplots(1, len(IOMode), figsize=(14, 6), sharey=True)

    for ax, mode in zip(axes, IOMode):
        speeds = sorted((p.throughput_mbps for p in result.for_mode(mode).points), reverse=True)
        if speeds:
            ax.bar(np.arange(len(speeds)), speeds, color=COLORS[mode])
            ax.axhline(np.mean(speeds), color='#2c3e50', linestyle='--', linewidth=1,
                       label=f'mean {np.mean(speeds):.1f}')
            ax.legend(fontsize=10)
        else:
            ax.text(0.5, 0.5, 'no successful workers', ha='center', va='center',
                    transform=ax.transAxes, fontsize=11)
        ax.set_title(mode.value.upper(), fontsize=13, fontweight='bold')
        ax.set_xlabel('Worker (sorted)', fontsize=11)
        ax.grid(axis='y', alpha=0.3, linestyle='--')

    axes[0].set_ylabel('Throughput (MB/s)', fontsize=12, fontweight='bold')

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
