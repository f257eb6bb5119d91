"""
Storage IO Benchmark Tool
Замер пропускной способности записи и чтения на N параллельных клиентах
"""
import argparse
import os
import sys
from pathlib import Path

from .base import StorageBackend
from .bench import IOBench
from .errors import ConfigurationError, SetupError
from .filesystem import LocalStorage
from .log import configure_logging
from .memory import MemoryStorage
from .metrics import MetricsCollector
from .native_s3 import S3Storage
from .visualize import generate_all_plots
from .workloads import BenchmarkParameters, WorkloadConfig

EXIT_OK = 0
EXIT_SETUP_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_WORKER_ERRORS = 3


def create_storage(path: str, endpoint_url: str = None,
                   access_key: str = None, secret_key: str = None) -> StorageBackend:
    """Выбор хранилища по схеме пути"""
    if path.startswith("s3://"):
        return S3Storage(
            endpoint_url=endpoint_url,
            access_key=access_key,
            secret_key=secret_key
        )
    elif path.startswith("memory://"):
        return MemoryStorage()
    elif "://" in path and not path.startswith("file://"):
        scheme = path.split("://", 1)[0]
        raise ConfigurationError(f"Unknown storage scheme: {scheme}")
    return LocalStorage()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='iobench',
        description='Storage IO Benchmark Tool',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Objects are named <path>io-benchmark-<i>: end --path with a separator.

Examples:
  # Mounted filesystem, 8 threads, 1 GB per thread
  iobench --path /mnt/s3fs/bench/ --threads 8 --io-size 1G

  # Native S3 API (MinIO)
  iobench --path s3://benchmark/io/ --endpoint http://localhost:9000

  # Dry run in memory
  iobench --path memory://bench/ --io-size 64MB --no-plots
        """
    )

    parser.add_argument('--path', required=True,
                        help='Target directory (local path, s3://bucket/prefix/ or memory://)')
    parser.add_argument('--threads', type=int, default=WorkloadConfig.DEFAULT_THREADS,
                        help='Number of concurrent workers')
    parser.add_argument('--io-size', default=WorkloadConfig.DEFAULT_IO_SIZE,
                        help='Data size per worker, e.g. 512MB, 4G')
    parser.add_argument('--timeout', type=float, default=None,
                        help='Seconds to wait for each phase before giving up on workers')
    parser.add_argument('--endpoint', default=None,
                        help='S3 endpoint URL (e.g., http://localhost:9000)')
    parser.add_argument('--output-dir', default='benchmark_results',
                        help='Output directory for results')
    parser.add_argument('--no-plots', action='store_true',
                        help='Do not draw plots')
    parser.add_argument('--fail-on-errors', action='store_true',
                        help='Exit with status 3 if any worker failed')
    parser.add_argument('--log-level', default=os.getenv('IOBENCH_LOG_LEVEL', 'WARNING'),
                        help='Log level (DEBUG, INFO, WARNING, ERROR)')
    parser.add_argument('--log-json', action='store_true',
                        help='Write logs as JSON')
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(json_output=args.log_json, log_level=args.log_level)
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    parameters = BenchmarkParameters(
        path=args.path,
        threads=args.threads,
        io_size=args.io_size,
        timeout=args.timeout,
    )

    print("=" * 80)
    print("STORAGE IO BENCHMARK")
    print("=" * 80)
    print(f"Path:         {parameters.path}")
    print(f"Endpoint:     {args.endpoint or 'default'}")
    print(f"Threads:      {parameters.threads}")
    print(f"IO size:      {parameters.io_size} per thread")
    print(f"Output:       {args.output_dir}")
    print("=" * 80)
    print()

    try:
        # Ключи S3Storage берёт из AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY
        storage = create_storage(parameters.path, endpoint_url=args.endpoint)
        bench = IOBench(storage, parameters)
        result = bench.run()
    except ConfigurationError as e:
        print(f"❌ Invalid parameters: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except SetupError as e:
        print(f"❌ Benchmark setup failed: {e}", file=sys.stderr)
        return EXIT_SETUP_ERROR

    collector = MetricsCollector(parameters, result, storage_type=storage.name)
    output_dir = Path(args.output_dir)

    raw_file = collector.save_raw_data(output_dir)
    print(f"✅ Raw data saved: {raw_file}")
    print("\n" + collector.generate_report(output_dir))

    if not args.no_plots:
        print("\n📊 Generating plots...")
        for plot in generate_all_plots(collector.summary, result, output_dir):
            print(f"  ✓ {plot.name}")

    print(f"\nResults saved to: {output_dir.absolute()}")

    if result.errors:
        print(f"⚠️  {len(result.errors)} worker error(s), see report above")
        if args.fail_on_errors:
            return EXIT_WORKER_ERRORS
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
