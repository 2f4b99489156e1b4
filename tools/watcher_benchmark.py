"""
File Watcher Benchmark for cfgswitch.

This script measures the cost of the polling watcher. It creates a set of
files in a temporary directory, rewrites one of them on a fixed schedule,
and ticks the watcher synchronously in between. At the end it reports:
1. Tick latency (mean, p95, max) for unchanged and changed ticks.
2. The number of events per change type, compared with the number of
   modifications actually made.
"""

import argparse
import logging
import os
import shutil
import statistics
import sys
import tempfile
import time
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import List

# Add the src directory to the Python path to allow importing 'cfgswitch' modules.
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from cfgswitch.models import ChangeType
from cfgswitch.monitoring import FileWatcher

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("WatcherBenchmark")


@dataclass
class BenchmarkConfig:
    duration_seconds: float = 60
    file_count: int = 10
    file_size_bytes: int = 1024
    modification_frequency_seconds: float = 5
    tick_seconds: float = 0.5


@dataclass
class BenchmarkResult:
    ticks: int
    modifications: int
    events: Counter
    idle_tick_ms: List[float]
    busy_tick_ms: List[float]


def _payload(size: int, generation: int) -> bytes:
    # Same size every generation so only the checksum can reveal the change.
    stamp = f"{generation:012d}".encode()
    return (stamp * (size // len(stamp) + 1))[:size]


def _summary(samples: List[float]) -> str:
    if not samples:
        return "n/a"
    ordered = sorted(samples)
    p95 = ordered[min(len(ordered) - 1, int(len(ordered) * 0.95))]
    return (
        f"mean={statistics.mean(ordered):.3f}ms p95={p95:.3f}ms "
        f"max={ordered[-1]:.3f}ms (n={len(ordered)})"
    )


def run_benchmark(config: BenchmarkConfig) -> BenchmarkResult:
    """Run one benchmark and return the raw measurements."""
    work_dir = Path(tempfile.mkdtemp(prefix="cfgswitch-bench-"))
    try:
        files = []
        for i in range(config.file_count):
            path = work_dir / f"bench-{i}.settings.json"
            path.write_bytes(_payload(config.file_size_bytes, 0))
            files.append(path)

        watcher = FileWatcher(max_scan_errors=5, cache_size_limit=max(config.file_count, 1))
        for path in files:
            watcher.add_file(path)

        events: Counter = Counter()
        idle_ticks: List[float] = []
        busy_ticks: List[float] = []
        modifications = 0
        generation = 0

        started = time.monotonic()
        next_modification = started + config.modification_frequency_seconds
        while time.monotonic() - started < config.duration_seconds:
            changed = False
            if time.monotonic() >= next_modification:
                generation += 1
                target = files[generation % len(files)]
                target.write_bytes(_payload(config.file_size_bytes, generation))
                # Make sure the stat differs even on coarse-timestamp filesystems.
                os.utime(target, ns=(time.time_ns(), time.time_ns() + generation))
                modifications += 1
                changed = True
                next_modification += config.modification_frequency_seconds

            tick_start = time.perf_counter()
            batch = watcher.scan_once()
            elapsed_ms = (time.perf_counter() - tick_start) * 1000
            (busy_ticks if changed else idle_ticks).append(elapsed_ms)
            events.update(change.change_type for change in batch)

            time.sleep(config.tick_seconds)

        return BenchmarkResult(
            ticks=len(idle_ticks) + len(busy_ticks),
            modifications=modifications,
            events=events,
            idle_tick_ms=idle_ticks,
            busy_tick_ms=busy_ticks,
        )
    finally:
        shutil.rmtree(work_dir, ignore_errors=True)


def main() -> int:
    defaults = BenchmarkConfig()
    parser = argparse.ArgumentParser(description="Benchmark the cfgswitch polling file watcher.")
    parser.add_argument("--duration", type=float, default=defaults.duration_seconds,
                        help="Benchmark duration in seconds.")
    parser.add_argument("--files", type=int, default=defaults.file_count,
                        help="Number of monitored files.")
    parser.add_argument("--size", type=int, default=defaults.file_size_bytes,
                        help="Size of each file in bytes.")
    parser.add_argument("--modify-every", type=float, default=defaults.modification_frequency_seconds,
                        help="Seconds between file modifications.")
    parser.add_argument("--tick", type=float, default=defaults.tick_seconds,
                        help="Seconds between watcher ticks.")
    args = parser.parse_args()

    if args.files < 1 or args.size < 1 or args.duration <= 0 or args.modify_every <= 0:
        logger.error("--files, --size, --duration and --modify-every must be positive")
        return 2

    config = BenchmarkConfig(
        duration_seconds=args.duration,
        file_count=args.files,
        file_size_bytes=args.size,
        modification_frequency_seconds=args.modify_every,
        tick_seconds=args.tick,
    )
    logger.info(f"--- Starting watcher benchmark: {config} ---")
    result = run_benchmark(config)

    logger.info(f"Ticks: {result.ticks}, modifications: {result.modifications}")
    logger.info(f"Idle ticks: {_summary(result.idle_tick_ms)}")
    logger.info(f"Ticks after a change: {_summary(result.busy_tick_ms)}")
    for change_type in ChangeType:
        logger.info(f"{change_type.value} events: {result.events.get(change_type, 0)}")

    modified = result.events.get(ChangeType.MODIFIED, 0)
    if modified != result.modifications:
        logger.warning(
            f"Detected {modified} modifications but made {result.modifications}"
        )
        return 1
    logger.info("All modifications detected exactly once")
    return 0


if __name__ == "__main__":
    sys.exit(main())
