"""
Reduce Task Executor
Reads intermediate data for one partition, groups by key, sums the counts
and writes word<TAB>count lines
"""

import os
import json
import time
import logging
from collections import defaultdict

from jarcount.common.errors import IntermediateDataError
from jarcount.worker.aggregator import aggregate

logger = logging.getLogger(__name__)


class ReduceExecutor:
    """Executes a single reduce task"""

    def __init__(self, task_id: int, partition_id: int, intermediate_files: list,
                 output_path: str):
        """
        Initialize the reduce executor

        Args:
            task_id: Unique ID for this reduce task
            partition_id: Partition ID this reduce task is responsible for
            intermediate_files: List of intermediate file paths to read
            output_path: Directory path where final output should be written
        """
        self.task_id = task_id
        self.partition_id = partition_id
        self.intermediate_files = intermediate_files
        self.output_path = output_path

    def execute(self) -> dict:
        """
        Execute the reduce task

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            'output_file' and 'records_written' fields
        """
        start_time = time.time()

        try:
            key_groups = self._read_and_group_intermediate()
            logger.info(f"Reduce task {self.task_id}: Grouped {len(key_groups)} unique keys")

            # Sorted for deterministic output
            results = [aggregate(key, key_groups[key]) for key in sorted(key_groups)]

            output_file = self._write_output(results)

            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Reduce task {self.task_id}: Completed in {execution_time}ms")

            return {
                'success': True,
                'execution_time_ms': execution_time,
                'error_message': '',
                'output_file': output_file,
                'records_written': len(results),
            }

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.exception(f"Reduce task {self.task_id} failed: {e}")
            return {
                'success': False,
                'execution_time_ms': execution_time,
                'error_message': str(e),
                'output_file': None,
                'records_written': 0,
            }

    def _read_and_group_intermediate(self) -> dict:
        """
        Read all intermediate files and group by key

        Returns:
            Dictionary mapping key to list of counts

        Raises:
            IntermediateDataError: If a file is missing or holds a malformed record
        """
        key_groups = defaultdict(list)
        lines_processed = 0

        for filepath in self.intermediate_files:
            if not os.path.exists(filepath):
                raise IntermediateDataError(filepath, "file not found")

            with open(filepath, 'r', encoding='utf-8') as f:
                for line_number, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue

                    try:
                        record = json.loads(line)
                        key_groups[str(record['key'])].append(int(record['value']))
                        lines_processed += 1
                    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                        raise IntermediateDataError(filepath, f"line {line_number}: {e}") from e

        logger.info(
            f"Reduce task {self.task_id}: Read {len(self.intermediate_files)} files, "
            f"processed {lines_processed} records"
        )
        return key_groups

    def _write_output(self, results: list) -> str:
        """
        Write final reduce output

        Args:
            results: List of (word, count) tuples to write

        Returns:
            Path of the part file
        """
        os.makedirs(self.output_path, exist_ok=True)
        output_file = os.path.join(self.output_path, f"part-{self.partition_id}.txt")

        with open(output_file, 'w', encoding='utf-8') as f:
            for key, value in results:
                f.write(f"{key}\t{value}\n")

        logger.info(f"Reduce task {self.task_id}: Wrote {len(results)} records to {output_file}")
        return output_file
