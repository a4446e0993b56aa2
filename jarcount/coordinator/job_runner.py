#!/usr/bin/env python3
"""
Local Job Runner
Splits the input, runs map tasks and then reduce tasks on a thread pool,
and collects job metrics
"""

import os
import glob
import time
import uuid
import shutil
import logging
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from jarcount.common.config import JobConfig
from jarcount.common.errors import JobAbortedError, ProcessStartError, TaskFailedError
from jarcount.coordinator.metrics import JobMetrics, total_size
from jarcount.worker.map_executor import MapExecutor
from jarcount.worker.process_supervisor import ExternalProcessSupervisor
from jarcount.worker.reduce_executor import ReduceExecutor

logger = logging.getLogger(__name__)


class JobStatus(Enum):
    """Status of a job"""
    PENDING = "pending"
    MAP_PHASE = "map_phase"
    REDUCE_PHASE = "reduce_phase"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class MapSplit:
    """Byte range of the input handled by one map task"""
    task_id: int
    start_offset: int
    end_offset: int


def generate_splits(input_path: str, num_map_tasks: int) -> List[MapSplit]:
    """Split input file into num_map_tasks byte ranges; the last one takes the remainder"""
    file_size = os.path.getsize(input_path)
    chunk_size = file_size // num_map_tasks

    splits = []
    for i in range(num_map_tasks):
        start = i * chunk_size
        end = file_size if i == num_map_tasks - 1 else (i + 1) * chunk_size
        splits.append(MapSplit(task_id=i, start_offset=start, end_offset=end))
    return splits


class LocalJobRunner:
    """Runs one word count job on this machine"""

    def __init__(self, config: JobConfig, job_id: Optional[str] = None,
                 supervisor: Optional[ExternalProcessSupervisor] = None):
        """
        Args:
            config: Job settings
            job_id: Identifier used in logs and metrics (random if omitted)
            supervisor: Shared program launcher, mainly for tests; each map
                task builds its own from config when omitted
        """
        self.config = config
        self.job_id = job_id or uuid.uuid4().hex[:12]
        self.supervisor = supervisor
        self.status = JobStatus.PENDING
        self.abort_event = threading.Event()

    def run(self) -> JobMetrics:
        """
        Run the job to completion

        Returns:
            JobMetrics for the finished job

        Raises:
            ConfigurationError: Before any record is read, if the config is unusable
            ProcessStartError: If any map task could not launch the external program
            TaskFailedError: If a task failed for any other reason
        """
        self.config.validate()

        metrics = JobMetrics(
            job_id=self.job_id,
            num_map_tasks=self.config.num_map_tasks,
            num_reduce_tasks=self.config.num_reduce_tasks,
            use_combiner=self.config.use_combiner,
            invocation_policy=self.config.invocation_policy,
            input_size_bytes=os.path.getsize(self.config.input_path),
            properties=dict(self.config.properties),
        )
        logger.info(f"Job {self.job_id}: starting with {self.config.num_map_tasks} map tasks, "
                    f"{self.config.num_reduce_tasks} reduce tasks")

        intermediate_dir = tempfile.mkdtemp(prefix=f"jarcount-{self.job_id}-")
        try:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                intermediate_files = self._run_map_phase(pool, metrics, intermediate_dir)
                metrics.intermediate_size_bytes = total_size(intermediate_files)
                self._run_reduce_phase(pool, metrics, intermediate_dir)
        except Exception:
            if self.status == JobStatus.REDUCE_PHASE:
                # Part files from the reducers that did finish
                shutil.rmtree(self.config.output_path, ignore_errors=True)
            self.status = JobStatus.FAILED
            logger.error(f"Job {self.job_id}: failed")
            raise
        finally:
            shutil.rmtree(intermediate_dir, ignore_errors=True)

        metrics.end_time = metrics.reduce_phase_end
        metrics.output_size_bytes = total_size(glob.glob(os.path.join(self.config.output_path, "part-*.txt")))
        self.status = JobStatus.COMPLETED
        logger.info(f"Job {self.job_id}: completed in {metrics.total_time_seconds:.2f}s, "
                    f"{metrics.output_records} output records")
        return metrics

    def _run_map_phase(self, pool: ThreadPoolExecutor, metrics: JobMetrics, intermediate_dir: str) -> List[str]:
        self.status = JobStatus.MAP_PHASE
        metrics.map_phase_start = metrics.start_time

        executors = [
            MapExecutor(
                task_id=split.task_id,
                config=self.config,
                start_offset=split.start_offset,
                end_offset=split.end_offset,
                intermediate_dir=intermediate_dir,
                supervisor=self.supervisor,
                abort_event=self.abort_event,
            )
            for split in generate_splits(self.config.input_path, self.config.num_map_tasks)
        ]
        futures = [pool.submit(executor.execute) for executor in executors]

        results = {}
        for future in as_completed(futures):
            try:
                results[futures.index(future)] = future.result()
            except JobAbortedError:
                # The task that set the abort event reports the real cause
                continue
            except ProcessStartError:
                self.abort_event.set()
                for pending in futures:
                    pending.cancel()
                raise

        intermediate_files = []
        for task_id, result in sorted(results.items()):
            if not result['success']:
                raise TaskFailedError("Map", task_id, result['error_message'])
            metrics.add_counters(result['counters'])
            intermediate_files.extend(result['intermediate_files'])

        metrics.sample_memory()
        metrics.map_phase_end = time.time()
        return intermediate_files

    def _run_reduce_phase(self, pool: ThreadPoolExecutor, metrics: JobMetrics, intermediate_dir: str):
        self.status = JobStatus.REDUCE_PHASE
        metrics.reduce_phase_start = time.time()

        executors = []
        for partition_id in range(self.config.num_reduce_tasks):
            pattern = os.path.join(intermediate_dir, f"map-*-reduce-{partition_id}.txt")
            executors.append(ReduceExecutor(
                task_id=partition_id,
                partition_id=partition_id,
                intermediate_files=sorted(glob.glob(pattern)),
                output_path=self.config.output_path,
            ))
        results = list(pool.map(lambda executor: executor.execute(), executors))

        for task_id, result in enumerate(results):
            if not result['success']:
                raise TaskFailedError("Reduce", task_id, result['error_message'])
            metrics.output_records += result['records_written']

        metrics.sample_memory()
        metrics.reduce_phase_end = time.time()
