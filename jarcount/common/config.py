"""
Job configuration.

A JobConfig is built once at startup (normally by the CLI) and handed to
every component. It is frozen, so nothing can change job settings once
records are being processed.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from jarcount.common.errors import ConfigurationError

# Property keys accepted through -D key=value
CASE_SENSITIVE_KEY = "wordcount.case.sensitive"
SKIP_PATTERNS_KEY = "wordcount.skip.patterns"
COMBINER_KEY = "wordcount.combiner"
INVOCATION_POLICY_KEY = "wordcount.invocation.policy"
PROGRAM_DIR_KEY = "wordcount.program.dir"
JAVA_BIN_KEY = "wordcount.java.bin"
MAP_TASKS_KEY = "mapred.map.tasks"
REDUCE_TASKS_KEY = "mapred.reduce.tasks"
MAX_WORKERS_KEY = "mapred.local.workers"

PER_RECORD = "per-record"
PER_TASK = "per-task"
INVOCATION_POLICIES = (PER_RECORD, PER_TASK)

KNOWN_PROPERTIES = (
    CASE_SENSITIVE_KEY,
    SKIP_PATTERNS_KEY,
    COMBINER_KEY,
    INVOCATION_POLICY_KEY,
    PROGRAM_DIR_KEY,
    JAVA_BIN_KEY,
    MAP_TASKS_KEY,
    REDUCE_TASKS_KEY,
    MAX_WORKERS_KEY,
)


def parse_bool(key: str, value: str) -> bool:
    """Parse a 'true'/'false' property value (case-insensitive)"""
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ConfigurationError(f"Property {key} must be 'true' or 'false', got '{value}'")


def parse_int(key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Property {key} must be an integer, got '{value}'")


@dataclass(frozen=True)
class JobConfig:
    """Immutable settings for one word count job"""

    input_path: str
    output_path: str
    executable: str
    params: Tuple[str, ...]
    skip_files: Tuple[str, ...] = ()
    case_sensitive: bool = True
    working_dir: Optional[str] = None
    java_bin: str = "java"
    num_map_tasks: int = 1
    num_reduce_tasks: int = 1
    use_combiner: bool = True
    invocation_policy: str = PER_RECORD
    max_workers: int = 4
    properties: Dict[str, str] = field(default_factory=dict, compare=False, repr=False)

    @property
    def skip_patterns_enabled(self) -> bool:
        """Filtering is on only when at least one skip file was supplied"""
        return bool(self.skip_files)

    @property
    def program_dir(self) -> str:
        """Working directory for the external program"""
        return self.working_dir or os.getcwd()

    @classmethod
    def from_properties(cls, input_path: str, output_path: str, executable: str,
                        params, skip_files=(), properties: Optional[Dict[str, str]] = None) -> "JobConfig":
        """
        Build a config from positional job arguments and -D properties

        Args:
            input_path: Input text file
            output_path: Output directory
            executable: External program (or .jar artifact) run for every record
            params: Fixed parameters passed to every invocation
            skip_files: Skip-pattern files placed in the shared cache
            properties: key=value job properties

        Raises:
            ConfigurationError: On unknown keys or unparsable values
        """
        properties = dict(properties or {})
        unknown = sorted(set(properties) - set(KNOWN_PROPERTIES))
        if unknown:
            raise ConfigurationError(f"Unknown job properties: {', '.join(unknown)}")

        skip_files = tuple(skip_files)
        if SKIP_PATTERNS_KEY in properties and not parse_bool(SKIP_PATTERNS_KEY, properties[SKIP_PATTERNS_KEY]):
            skip_files = ()

        kwargs = {}
        if CASE_SENSITIVE_KEY in properties:
            kwargs["case_sensitive"] = parse_bool(CASE_SENSITIVE_KEY, properties[CASE_SENSITIVE_KEY])
        if COMBINER_KEY in properties:
            kwargs["use_combiner"] = parse_bool(COMBINER_KEY, properties[COMBINER_KEY])
        if INVOCATION_POLICY_KEY in properties:
            kwargs["invocation_policy"] = properties[INVOCATION_POLICY_KEY].strip()
        if PROGRAM_DIR_KEY in properties:
            kwargs["working_dir"] = properties[PROGRAM_DIR_KEY]
        if JAVA_BIN_KEY in properties:
            kwargs["java_bin"] = properties[JAVA_BIN_KEY]
        if MAP_TASKS_KEY in properties:
            kwargs["num_map_tasks"] = parse_int(MAP_TASKS_KEY, properties[MAP_TASKS_KEY])
        if REDUCE_TASKS_KEY in properties:
            kwargs["num_reduce_tasks"] = parse_int(REDUCE_TASKS_KEY, properties[REDUCE_TASKS_KEY])
        if MAX_WORKERS_KEY in properties:
            kwargs["max_workers"] = parse_int(MAX_WORKERS_KEY, properties[MAX_WORKERS_KEY])

        return cls(
            input_path=input_path,
            output_path=output_path,
            executable=executable,
            params=tuple(params),
            skip_files=skip_files,
            properties=properties,
            **kwargs
        )

    def validate(self):
        """
        Check the config before any record is processed

        Raises:
            ConfigurationError: If the job cannot be started with these settings
        """
        if not self.executable:
            raise ConfigurationError("No external program given")
        if not os.path.isfile(self.input_path):
            raise ConfigurationError(f"Input file not found: {self.input_path}")
        if os.path.exists(self.output_path):
            if not os.path.isdir(self.output_path):
                raise ConfigurationError(f"Output path is not a directory: {self.output_path}")
            if os.listdir(self.output_path):
                raise ConfigurationError(f"Output directory already exists: {self.output_path}")
        if self.num_map_tasks < 1:
            raise ConfigurationError(f"Need at least one map task, got {self.num_map_tasks}")
        if self.num_reduce_tasks < 1:
            raise ConfigurationError(f"Need at least one reduce task, got {self.num_reduce_tasks}")
        if self.max_workers < 1:
            raise ConfigurationError(f"Need at least one worker thread, got {self.max_workers}")
        if self.invocation_policy not in INVOCATION_POLICIES:
            raise ConfigurationError(
                f"Unknown invocation policy '{self.invocation_policy}', "
                f"expected one of {', '.join(INVOCATION_POLICIES)}"
            )
