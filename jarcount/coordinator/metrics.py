"""
Performance metrics collection for word count jobs.
"""

import os
import time
import json
from collections import Counter
from dataclasses import dataclass, asdict, field
from typing import Dict, Iterable

import psutil


def current_rss_bytes() -> int:
    """Resident memory of this process, in bytes"""
    return psutil.Process().memory_info().rss


def total_size(paths: Iterable[str]) -> int:
    return sum(os.path.getsize(p) for p in paths if os.path.exists(p))


@dataclass
class JobMetrics:
    """Metrics for a single job execution."""

    job_id: str
    num_map_tasks: int
    num_reduce_tasks: int
    use_combiner: bool
    invocation_policy: str
    input_size_bytes: int
    start_time: float = field(default_factory=time.time)
    end_time: float = 0.0
    map_phase_start: float = 0.0
    map_phase_end: float = 0.0
    reduce_phase_start: float = 0.0
    reduce_phase_end: float = 0.0
    intermediate_size_bytes: int = 0
    output_size_bytes: int = 0
    output_records: int = 0
    peak_rss_bytes: int = 0
    counters: Dict[str, int] = field(default_factory=dict)
    properties: Dict[str, str] = field(default_factory=dict)

    @property
    def total_time_seconds(self) -> float:
        """Total job execution time in seconds."""
        return self.end_time - self.start_time

    @property
    def map_phase_time_seconds(self) -> float:
        """Map phase execution time in seconds."""
        return self.map_phase_end - self.map_phase_start

    @property
    def reduce_phase_time_seconds(self) -> float:
        """Reduce phase execution time in seconds."""
        return self.reduce_phase_end - self.reduce_phase_start

    @property
    def combiner_reduction_ratio(self) -> float:
        """Share of emitted words removed by the combiner before the shuffle"""
        emitted = self.counters.get("INPUT_WORDS", 0)
        if not self.use_combiner or emitted == 0:
            return 0.0
        return 1.0 - (self.counters.get("COMBINE_OUTPUT_RECORDS", 0) / emitted)

    def sample_memory(self):
        """Record current memory use if it is the highest seen so far."""
        self.peak_rss_bytes = max(self.peak_rss_bytes, current_rss_bytes())

    def add_counters(self, counters: Dict[str, int]):
        """Fold one task's counters into the job totals."""
        totals = Counter(self.counters)
        totals.update(counters)
        self.counters = dict(totals)

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        data = asdict(self)
        data.update(
            total_time_seconds=self.total_time_seconds,
            map_phase_time_seconds=self.map_phase_time_seconds,
            reduce_phase_time_seconds=self.reduce_phase_time_seconds,
            combiner_reduction_ratio=self.combiner_reduction_ratio,
        )
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
