"""
Word count mapper.

For each record: normalize case, run the external program, strip skip
patterns, then emit (word, 1) for every whitespace-separated token.
"""

import logging
from typing import Iterator, Optional, Tuple

from jarcount.common.config import JobConfig
from jarcount.worker.process_supervisor import (
    ExternalProcessSupervisor,
    ProcessInvocation,
    create_policy,
)
from jarcount.worker.reporter import Counters, TaskReporter
from jarcount.worker.skip_patterns import SkipPatternSet, filter_line, load_patterns
from jarcount.worker.tokenizer import normalize, tokenize

logger = logging.getLogger(__name__)

STATUS_INTERVAL = 100


class WordCountMapper:
    """One mapper instance; owns its counters, patterns and program invocations"""

    def __init__(self, config: JobConfig, input_file: str,
                 reporter: Optional[TaskReporter] = None,
                 supervisor: Optional[ExternalProcessSupervisor] = None):
        """
        Args:
            config: Job settings
            input_file: Name of the record source, used in status messages
            reporter: Where counters and status go (a fresh one if omitted)
            supervisor: Runs the external program (built from config if omitted)
        """
        self.case_sensitive = config.case_sensitive
        self.input_file = input_file
        self.reporter = reporter or TaskReporter(input_file)
        self.num_records = 0

        # Loaded once, before the first record, and never changed afterwards
        if config.skip_patterns_enabled:
            self.patterns = load_patterns(config.skip_files)
        else:
            self.patterns = SkipPatternSet()

        supervisor = supervisor or ExternalProcessSupervisor.from_config(config)
        self.invocation = create_policy(config.invocation_policy, supervisor)

    def map(self, key: int, value: str) -> Iterator[Tuple[str, int]]:
        """
        Process one record

        Args:
            key: Byte offset of the line in the input file
            value: The line itself

        Yields:
            (word, 1) tuples

        Raises:
            ProcessStartError: If the external program could not be launched
        """
        line = normalize(value, self.case_sensitive)

        invocation = self.invocation.before_record()
        if invocation is not None:
            self._count_failures(invocation)

        line = filter_line(line, self.patterns)

        for word in tokenize(line):
            yield word, 1
            self.reporter.incr_counter(Counters.INPUT_WORDS)

        self.reporter.incr_counter(Counters.MAP_INPUT_RECORDS)
        self.num_records += 1
        if self.num_records % STATUS_INTERVAL == 0:
            self.reporter.set_status(
                f"Finished processing {self.num_records} records from the input file: {self.input_file}"
            )

    def _count_failures(self, invocation: ProcessInvocation):
        if invocation.read_failed:
            self.reporter.incr_counter(Counters.PROCESS_READ_ERRORS)
        if invocation.exit_code not in (None, 0):
            self.reporter.incr_counter(Counters.PROCESS_NONZERO_EXITS)
