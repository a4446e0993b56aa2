"""
Per-task counters and status reporting
"""

import logging
from collections import Counter
from enum import Enum
from typing import Dict

logger = logging.getLogger(__name__)


class Counters(Enum):
    """Counters a map task reports back to the runner"""
    INPUT_WORDS = "INPUT_WORDS"
    MAP_INPUT_RECORDS = "MAP_INPUT_RECORDS"
    PROCESS_NONZERO_EXITS = "PROCESS_NONZERO_EXITS"
    PROCESS_READ_ERRORS = "PROCESS_READ_ERRORS"
    COMBINE_OUTPUT_RECORDS = "COMBINE_OUTPUT_RECORDS"


class TaskReporter:
    """Counters and the latest status line for one map task"""

    def __init__(self, task_name: str):
        self.task_name = task_name
        self.counters: Counter = Counter()
        self.status = ""

    def incr_counter(self, counter: Counters, amount: int = 1):
        if amount < 0:
            raise ValueError(f"Counters only increase, got {amount} for {counter.value}")
        self.counters[counter.value] += amount

    def get_counter(self, counter: Counters) -> int:
        return self.counters[counter.value]

    def set_status(self, status: str):
        self.status = status
        logger.info(f"{self.task_name}: {status}")

    def snapshot(self) -> Dict[str, int]:
        """Copy of all counters, including ones never incremented"""
        return {counter.value: self.counters[counter.value] for counter in Counters}
