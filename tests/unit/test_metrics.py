"""
Unit tests for JobMetrics
"""

import json
import os

from jarcount.coordinator.metrics import JobMetrics


def make_metrics(**overrides):
    settings = dict(
        job_id='test-job',
        num_map_tasks=2,
        num_reduce_tasks=1,
        use_combiner=True,
        invocation_policy='per-record',
        input_size_bytes=100,
    )
    settings.update(overrides)
    return JobMetrics(**settings)


def test_counters_from_tasks_are_summed():
    metrics = make_metrics()

    metrics.add_counters({'INPUT_WORDS': 6, 'MAP_INPUT_RECORDS': 1})
    metrics.add_counters({'INPUT_WORDS': 4, 'PROCESS_NONZERO_EXITS': 1})

    assert metrics.counters == {'INPUT_WORDS': 10, 'MAP_INPUT_RECORDS': 1, 'PROCESS_NONZERO_EXITS': 1}


def test_phase_durations():
    metrics = make_metrics(start_time=10.0, end_time=16.0, map_phase_start=10.0, map_phase_end=14.0,
                           reduce_phase_start=14.5, reduce_phase_end=16.0)

    assert metrics.total_time_seconds == 6.0
    assert metrics.map_phase_time_seconds == 4.0
    assert metrics.reduce_phase_time_seconds == 1.5


def test_combiner_reduction_ratio():
    metrics = make_metrics(counters={'INPUT_WORDS': 10, 'COMBINE_OUTPUT_RECORDS': 4})

    assert metrics.combiner_reduction_ratio == 0.6
    assert make_metrics(use_combiner=False, counters={'INPUT_WORDS': 10}).combiner_reduction_ratio == 0.0


def test_memory_sample_keeps_peak():
    metrics = make_metrics(peak_rss_bytes=1 << 60)

    metrics.sample_memory()

    assert metrics.peak_rss_bytes == 1 << 60
    fresh = make_metrics()
    fresh.sample_memory()
    assert fresh.peak_rss_bytes > 0


def test_save_to_file(temp_dir):
    metrics = make_metrics(counters={'INPUT_WORDS': 3})
    path = os.path.join(temp_dir, 'metrics.json')

    metrics.save_to_file(path)

    with open(path) as f:
        data = json.load(f)
    assert data['job_id'] == 'test-job'
    assert data['counters'] == {'INPUT_WORDS': 3}
    assert 'total_time_seconds' in data


def test_job_properties_are_saved(temp_dir):
    metrics = make_metrics(properties={'wordcount.combiner': 'false'})
    path = os.path.join(temp_dir, 'metrics.json')

    metrics.save_to_file(path)

    with open(path) as f:
        assert json.load(f)['properties'] == {'wordcount.combiner': 'false'}
