"""
Map Task Executor
Reads one byte-range split of the input, runs the word count mapper over
every line, optionally combines locally, partitions the output and writes
intermediate files
"""

import os
import json
import time
import zlib
import logging
import threading
from collections import defaultdict
from typing import Iterator, Optional, Tuple

from jarcount.common.config import JobConfig
from jarcount.common.errors import JobAbortedError, ProcessStartError
from jarcount.worker.aggregator import combine
from jarcount.worker.mapper import WordCountMapper
from jarcount.worker.process_supervisor import ExternalProcessSupervisor
from jarcount.worker.reporter import Counters, TaskReporter

logger = logging.getLogger(__name__)


def partition_for(key: str, num_partitions: int) -> int:
    """Stable hash partitioning, identical across processes and runs"""
    return zlib.crc32(key.encode("utf-8")) % num_partitions


class MapExecutor:
    """Executes a single map task"""

    def __init__(self, task_id: int, config: JobConfig, start_offset: int,
                 end_offset: int, intermediate_dir: str,
                 supervisor: Optional[ExternalProcessSupervisor] = None,
                 abort_event: Optional[threading.Event] = None):
        """
        Initialize the map executor

        Args:
            task_id: Unique ID for this map task
            config: Job settings
            start_offset: Byte offset where this task should start reading
            end_offset: Byte offset where this task should stop reading
            intermediate_dir: Directory for this job's intermediate files
            supervisor: Runs the external program (built from config if omitted)
            abort_event: Set when the job is aborting; checked before every record
        """
        self.task_id = task_id
        self.config = config
        self.input_path = config.input_path
        self.start_offset = start_offset
        self.end_offset = end_offset
        self.num_reduce_tasks = config.num_reduce_tasks
        self.use_combiner = config.use_combiner
        self.intermediate_dir = intermediate_dir
        self.supervisor = supervisor
        self.abort_event = abort_event or threading.Event()
        self.reporter = TaskReporter(f"Map task {task_id}")

    def execute(self) -> dict:
        """
        Execute the map task

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            'intermediate_files' and 'counters' fields

        Raises:
            ProcessStartError: If the external program could not be launched
            JobAbortedError: If abort_event was set while the split was being read
        """
        start_time = time.time()

        try:
            mapper = WordCountMapper(
                self.config,
                input_file=self.input_path,
                reporter=self.reporter,
                supervisor=self.supervisor,
            )

            logger.info(f"Map task {self.task_id}: Processing bytes {self.start_offset}-{self.end_offset}")
            intermediate = defaultdict(list)
            for key, value in self._read_input_split():
                if self.abort_event.is_set():
                    raise JobAbortedError("Map", self.task_id)
                for out_key, out_value in mapper.map(key, value):
                    partition = partition_for(out_key, self.num_reduce_tasks)
                    intermediate[partition].append((out_key, out_value))

            logger.info(f"Map task {self.task_id}: Generated {sum(len(v) for v in intermediate.values())} intermediate pairs")

            if self.use_combiner:
                intermediate = self._apply_combiner(intermediate)
                combined = sum(len(v) for v in intermediate.values())
                self.reporter.incr_counter(Counters.COMBINE_OUTPUT_RECORDS, combined)
                logger.info(f"Map task {self.task_id}: After combiner: {combined} pairs")

            files = self._write_intermediate_files(intermediate)

            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Map task {self.task_id}: Completed in {execution_time}ms")

            return {
                'success': True,
                'execution_time_ms': execution_time,
                'error_message': '',
                'intermediate_files': files,
                'counters': self.reporter.snapshot(),
            }

        except ProcessStartError as e:
            self.abort_event.set()
            logger.error(f"Map task {self.task_id}: {e}")
            raise

        except JobAbortedError:
            records = self.reporter.get_counter(Counters.MAP_INPUT_RECORDS)
            logger.warning(f"Map task {self.task_id}: Aborted after {records} records")
            raise

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.exception(f"Map task {self.task_id} failed: {e}")
            return {
                'success': False,
                'execution_time_ms': execution_time,
                'error_message': str(e),
                'intermediate_files': [],
                'counters': self.reporter.snapshot(),
            }

    def _read_input_split(self) -> Iterator[Tuple[int, str]]:
        """
        Read the lines that start inside [start_offset, end_offset)

        A line crossing the end of the split belongs to this split; the next
        split skips it.

        Yields:
            (byte_offset, line) tuples, line without its trailing newline
        """
        with open(self.input_path, 'rb') as f:
            if self.start_offset > 0:
                # Step back one byte so a line starting exactly at the
                # boundary is not mistaken for a partial one
                f.seek(self.start_offset - 1)
                f.readline()

            offset = f.tell()
            while offset < self.end_offset:
                raw = f.readline()
                if not raw:
                    break
                yield offset, raw.decode('utf-8', errors='replace').rstrip('\r\n')
                offset = f.tell()

    def _apply_combiner(self, intermediate: dict) -> dict:
        """
        Sum counts per key within each partition

        Args:
            intermediate: Dictionary mapping partition_id to list of (key, value) pairs

        Returns:
            Dictionary with same structure but with combined values
        """
        return {partition: combine(pairs) for partition, pairs in intermediate.items()}

    def _write_intermediate_files(self, intermediate: dict) -> list:
        """
        Write intermediate key-value pairs to disk in JSON lines format

        Args:
            intermediate: Dictionary mapping partition_id to list of (key, value) pairs

        Returns:
            Paths of the files written, one per non-empty partition
        """
        os.makedirs(self.intermediate_dir, exist_ok=True)

        files = []
        for partition, kv_pairs in sorted(intermediate.items()):
            filename = os.path.join(self.intermediate_dir, f"map-{self.task_id}-reduce-{partition}.txt")

            with open(filename, 'w', encoding='utf-8') as f:
                for key, value in kv_pairs:
                    f.write(json.dumps({'key': key, 'value': value}) + '\n')
            files.append(filename)

        return files
