#!/usr/bin/env python3
"""
Benchmarking script for the word count job.
Runs the job locally across invocation policies and map task counts and
collects performance metrics.
"""

import csv
import sys
import json
import shutil
import logging
import tempfile
from datetime import datetime
from pathlib import Path

from jarcount.common.config import JobConfig, PER_RECORD, PER_TASK
from jarcount.common.errors import JarCountError
from jarcount.coordinator.job_runner import LocalJobRunner

# Configuration
RESULTS_DIR = Path("benchmark_results")
EXAMPLES_DIR = Path(__file__).resolve().parent / "examples"
SOURCE_FILE = EXAMPLES_DIR / "sample.txt"
PROGRAM = EXAMPLES_DIR / "echo_program.py"
SKIP_FILE = EXAMPLES_DIR / "skip_patterns.txt"

# Input sizes, in copies of the sample text
INPUT_COPIES = {"small": 20, "medium": 200}

BENCHMARKS = [
    # Experiment 1: invocation cadence
    {"name": "policy_per_record_small", "input": "small", "policy": PER_RECORD, "maps": 4, "reduces": 2,
     "description": "Program run for every line"},
    {"name": "policy_per_task_small", "input": "small", "policy": PER_TASK, "maps": 4, "reduces": 2,
     "description": "Program run once per map task"},
    {"name": "policy_per_record_medium", "input": "medium", "policy": PER_RECORD, "maps": 4, "reduces": 2,
     "description": "Program run for every line"},
    {"name": "policy_per_task_medium", "input": "medium", "policy": PER_TASK, "maps": 4, "reduces": 2,
     "description": "Program run once per map task"},

    # Experiment 2: map task scaling with per-record invocation
    {"name": "map_scaling_1", "input": "small", "policy": PER_RECORD, "maps": 1, "reduces": 2,
     "description": "1 map task"},
    {"name": "map_scaling_2", "input": "small", "policy": PER_RECORD, "maps": 2, "reduces": 2,
     "description": "2 map tasks"},
    {"name": "map_scaling_4", "input": "small", "policy": PER_RECORD, "maps": 4, "reduces": 2,
     "description": "4 map tasks"},
    {"name": "map_scaling_8", "input": "small", "policy": PER_RECORD, "maps": 8, "reduces": 2,
     "description": "8 map tasks"},
]


def generate_input(work_dir: Path, label: str, copies: int) -> Path:
    """Write an input file made of repeated copies of the sample text."""
    content = SOURCE_FILE.read_bytes()
    path = work_dir / f"input_{label}.txt"
    with open(path, 'wb') as f:
        for _ in range(copies):
            f.write(content)
    return path


def run_benchmark(config, inputs, work_dir, run_number=1):
    """Run a single benchmark configuration."""
    print(f"\n{'='*70}")
    print(f"Benchmark: {config['name']} (Run {run_number})")
    print(f"Description: {config['description']}")
    print(f"Config: {config['maps']} maps, {config['reduces']} reduces, policy {config['policy']}")
    print(f"{'='*70}")

    input_path = inputs[config['input']]
    output_path = work_dir / f"output_{config['name']}_{run_number}"

    job = JobConfig(
        input_path=str(input_path),
        output_path=str(output_path),
        executable=sys.executable,
        params=(str(PROGRAM), "benchmark"),
        skip_files=(str(SKIP_FILE),),
        case_sensitive=False,
        num_map_tasks=config['maps'],
        num_reduce_tasks=config['reduces'],
        invocation_policy=config['policy'],
    )

    try:
        metrics = LocalJobRunner(job, job_id=f"{config['name']}-{run_number}").run()
    except JarCountError as e:
        print(f"  ❌ Job failed: {e}")
        return None
    finally:
        shutil.rmtree(output_path, ignore_errors=True)

    duration = metrics.total_time_seconds
    input_size = metrics.input_size_bytes
    print(f"  ✓ Job completed in {duration:.2f}s")

    return {
        "benchmark_name": config["name"],
        "description": config["description"],
        "run_number": run_number,
        "timestamp": datetime.now().isoformat(),
        "job_id": metrics.job_id,
        "input_size_bytes": input_size,
        "input_size_mb": round(input_size / 1024 / 1024, 4),
        "invocation_policy": config["policy"],
        "num_map_tasks": config["maps"],
        "num_reduce_tasks": config["reduces"],
        "success": True,
        "total_runtime_seconds": round(duration, 3),
        "map_phase_seconds": round(metrics.map_phase_time_seconds, 3),
        "reduce_phase_seconds": round(metrics.reduce_phase_time_seconds, 3),
        "records": metrics.counters.get("MAP_INPUT_RECORDS", 0),
        "words": metrics.counters.get("INPUT_WORDS", 0),
        "peak_rss_mb": round(metrics.peak_rss_bytes / 1024 / 1024, 2),
        "throughput_records_per_sec": round(metrics.counters.get("MAP_INPUT_RECORDS", 0) / duration, 1) if duration > 0 else 0,
    }


def save_results(results, timestamp):
    """Save results to JSON and CSV files."""
    json_file = RESULTS_DIR / f"benchmark_results_{timestamp}.json"
    with open(json_file, 'w') as f:
        json.dump(results, f, indent=2)
    print(f"\n✓ Results saved to: {json_file}")

    csv_file = RESULTS_DIR / f"benchmark_results_{timestamp}.csv"
    if results:
        fieldnames = list(results[0].keys())
        with open(csv_file, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(results)
        print(f"✓ Results saved to: {csv_file}")

    return json_file, csv_file


def print_summary(results):
    """Print a summary table of results."""
    print(f"\n{'='*70}")
    print("BENCHMARK SUMMARY")
    print(f"{'='*70}")
    print(f"{'Benchmark':<28} {'Policy':>10} {'Maps':>5} {'Runtime':>10} {'Rec/s':>10}")
    print(f"{'-'*70}")

    for r in results:
        print(f"{r['benchmark_name']:<28} {r['invocation_policy']:>10} {r['num_map_tasks']:>5} "
              f"{r['total_runtime_seconds']:>9.2f}s {r['throughput_records_per_sec']:>10.1f}")

    print(f"{'='*70}")


def main():
    """Main benchmarking workflow."""
    logging.basicConfig(level=logging.WARNING)

    runs_per_benchmark = 1
    if len(sys.argv) > 1:
        runs_per_benchmark = max(1, min(5, int(sys.argv[1])))

    RESULTS_DIR.mkdir(exist_ok=True)
    work_dir = Path(tempfile.mkdtemp(prefix="jarcount-bench-"))

    try:
        inputs = {label: generate_input(work_dir, label, copies) for label, copies in INPUT_COPIES.items()}

        print(f"Running {len(BENCHMARKS)} benchmarks × {runs_per_benchmark} runs")
        all_results = []
        for config in BENCHMARKS:
            for run in range(1, runs_per_benchmark + 1):
                result = run_benchmark(config, inputs, work_dir, run_number=run)
                if result:
                    all_results.append(result)
    finally:
        shutil.rmtree(work_dir, ignore_errors=True)

    if not all_results:
        print("\n❌ No results collected")
        return 1

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    json_file, _ = save_results(all_results, timestamp)
    print_summary(all_results)
    print(f"\nGenerate plots: python plot_results.py {json_file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
