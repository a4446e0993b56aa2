#!/usr/bin/env python3
"""
Plot word count benchmark results written by benchmark.py.
"""

import json
import sys
from collections import defaultdict
from pathlib import Path

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

PLOTS_DIR = Path("benchmark_results/plots")
PHASES = ('map_phase_seconds', 'reduce_phase_seconds')


def load_results(json_file):
    with open(json_file, 'r') as f:
        return json.load(f)


def aggregate_runs(results):
    """
    Collapse repeated runs of each benchmark into means and spreads.

    Returns:
        Dict of benchmark name -> settings of its first run plus
        'runtime', 'runtime_std', 'throughput', 'peak_rss_mb', one mean per
        phase and 'runs'
    """
    grouped = defaultdict(list)
    for run in results:
        if run['success']:
            grouped[run['benchmark_name']].append(run)

    summary = {}
    for name, runs in grouped.items():
        row = {key: runs[0][key] for key in ('benchmark_name', 'description', 'invocation_policy',
                                             'num_map_tasks', 'num_reduce_tasks', 'records')}
        runtimes = np.array([run['total_runtime_seconds'] for run in runs])
        row['runtime'] = runtimes.mean()
        row['runtime_std'] = runtimes.std()
        row['throughput'] = np.mean([run['throughput_records_per_sec'] for run in runs])
        row['peak_rss_mb'] = max(run['peak_rss_mb'] for run in runs)
        for phase in PHASES:
            row[phase] = np.mean([run[phase] for run in runs])
        row['runs'] = len(runs)
        summary[name] = row

    return summary


def plot_invocation_policy(summary, output_file):
    """Stacked map/reduce time for each policy, one group per input size."""
    rows = [row for name, row in summary.items() if name.startswith('policy_')]
    if not rows:
        print("⚠️  No invocation policy data found")
        return

    sizes = sorted({row['records'] for row in rows})
    policies = sorted({row['invocation_policy'] for row in rows})
    width = 0.8 / len(policies)
    x = np.arange(len(sizes))

    fig, ax = plt.subplots(figsize=(10, 6))
    for i, policy in enumerate(policies):
        cells = {row['records']: row for row in rows if row['invocation_policy'] == policy}
        map_times = np.array([cells[s]['map_phase_seconds'] if s in cells else 0.0 for s in sizes])
        reduce_times = np.array([cells[s]['reduce_phase_seconds'] if s in cells else 0.0 for s in sizes])
        offset = x + i * width
        ax.bar(offset, map_times, width, label=f"{policy}: map")
        ax.bar(offset, reduce_times, width, bottom=map_times, label=f"{policy}: reduce", alpha=0.6)

    ax.set_xticks(x + width * (len(policies) - 1) / 2)
    ax.set_xticklabels([f"{s} records" for s in sizes])
    ax.set_ylabel('Phase time (seconds)')
    ax.set_title('Map and Reduce Time by Invocation Policy', fontweight='bold')
    ax.legend()
    ax.grid(True, axis='y', alpha=0.3)
    fig.tight_layout()
    fig.savefig(output_file, dpi=300, bbox_inches='tight')
    plt.close(fig)
    print(f"✓ Saved: {output_file}")


def plot_map_task_scaling(summary, output_file):
    """Speedup over a single map task, against ideal linear speedup."""
    rows = sorted((row for name, row in summary.items() if name.startswith('map_scaling_')),
                  key=lambda row: row['num_map_tasks'])
    if not rows:
        print("⚠️  No map scaling data found")
        return

    tasks = np.array([row['num_map_tasks'] for row in rows])
    runtimes = np.array([row['runtime'] for row in rows])
    speedup = runtimes[0] / runtimes
    ideal = tasks / tasks[0]

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(tasks, speedup, marker='o', linewidth=2, label='Measured')
    ax.plot(tasks, ideal, linestyle='--', color='gray', label='Linear')
    ax.set_xlabel('Map tasks')
    ax.set_ylabel(f'Speedup over {tasks[0]} map task(s)')
    ax.set_title('Map Task Scaling with Per-Record Invocation', fontweight='bold')
    ax.set_xticks(tasks)
    ax.legend()
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    fig.savefig(output_file, dpi=300, bbox_inches='tight')
    plt.close(fig)
    print(f"✓ Saved: {output_file}")


def write_summary_table(summary, output_file):
    header = ("| Benchmark | Policy | Maps | Records | Runtime (s) | ± | Map (s) | Reduce (s) "
              "| Records/s | Peak RSS (MB) |")
    rows = ["# Word Count Benchmarks\n", header, "|---" * (header.count("|") - 1) + "|"]

    for name in sorted(summary):
        row = summary[name]
        rows.append(
            f"| {name} | {row['invocation_policy']} | {row['num_map_tasks']} | {row['records']} "
            f"| {row['runtime']:.2f} | {row['runtime_std']:.3f} | {row['map_phase_seconds']:.2f} "
            f"| {row['reduce_phase_seconds']:.2f} | {row['throughput']:.1f} | {row['peak_rss_mb']:.1f} |"
        )

    Path(output_file).write_text('\n'.join(rows) + '\n')
    print(f"✓ Saved: {output_file}")


def main():
    if len(sys.argv) != 2:
        print("Usage: python plot_results.py <benchmark_results.json>")
        return 1

    results_file = Path(sys.argv[1])
    if not results_file.is_file():
        print(f"❌ No such results file: {results_file}")
        return 1

    results = load_results(results_file)
    summary = aggregate_runs(results)
    print(f"✓ {len(results)} runs across {len(summary)} benchmarks")

    PLOTS_DIR.mkdir(parents=True, exist_ok=True)
    plot_invocation_policy(summary, PLOTS_DIR / "invocation_policy.png")
    plot_map_task_scaling(summary, PLOTS_DIR / "map_task_scaling.png")
    write_summary_table(summary, PLOTS_DIR / "summary.md")

    print(f"Plots written to {PLOTS_DIR}/")
    return 0


if __name__ == "__main__":
    sys.exit(main())
