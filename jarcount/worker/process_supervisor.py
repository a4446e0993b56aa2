"""
External Process Supervisor
Runs the job's external program, captures its combined stdout/stderr with
consecutive duplicate lines collapsed, and reports how it finished.

Failure policy:
    - the program cannot be started: ProcessStartError is raised and the job stops
    - its output cannot be read: logged, whatever was captured is kept
    - it exits non-zero: logged, the record is still processed
"""

import logging
import subprocess
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from jarcount.common.config import JobConfig, PER_RECORD, PER_TASK
from jarcount.common.errors import (
    ConfigurationError,
    JarCountError,
    ProcessExitNonZero,
    ProcessRunError,
    ProcessStartError,
)

logger = logging.getLogger(__name__)

JAVA_HEADLESS_FLAG = "-Djava.awt.headless=false"

_NO_LINE = object()


@dataclass(frozen=True)
class CommandTemplate:
    """Program plus the fixed arguments passed to every invocation"""

    executable: str
    params: Tuple[str, ...] = ()
    java_bin: str = "java"

    @property
    def is_jar(self) -> bool:
        return self.executable.lower().endswith(".jar")

    def argv(self) -> List[str]:
        """Build the command line; .jar artifacts go through the Java launcher"""
        if self.is_jar:
            return [self.java_bin, JAVA_HEADLESS_FLAG, "-jar", self.executable, *self.params]
        return [self.executable, *self.params]


@dataclass
class ProcessInvocation:
    """Result of running the external program once"""

    command: List[str]
    working_dir: str
    output: List[str] = field(default_factory=list)
    exit_code: Optional[int] = None
    errors: List[JarCountError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.errors

    @property
    def read_failed(self) -> bool:
        return any(isinstance(e, ProcessRunError) for e in self.errors)


def collapse_consecutive(lines: Iterable[str]) -> Iterator[str]:
    """Drop any line equal to the line just before it"""
    previous = _NO_LINE
    for line in lines:
        if line != previous:
            previous = line
            yield line


def _log_output_line(line: str):
    logger.info(f"program output: {line}")


class ExternalProcessSupervisor:
    """Launches the external program and waits for it to finish"""

    def __init__(self, template: CommandTemplate, working_dir: str,
                 sink: Optional[Callable[[str], None]] = None):
        """
        Args:
            template: Command to run
            working_dir: Directory the program is started in
            sink: Called with every retained output line as it arrives
        """
        self.template = template
        self.working_dir = working_dir
        self.sink = sink or _log_output_line

    @classmethod
    def from_config(cls, config: JobConfig, sink: Optional[Callable[[str], None]] = None):
        template = CommandTemplate(config.executable, tuple(config.params), config.java_bin)
        return cls(template, config.program_dir, sink=sink)

    def invoke(self) -> ProcessInvocation:
        """
        Run the program once and block until it exits

        Returns:
            ProcessInvocation with the deduplicated output and exit code

        Raises:
            ProcessStartError: If the program could not be launched
        """
        command = self.template.argv()
        logger.info(f"Running {command} in {self.working_dir}")
        invocation = ProcessInvocation(command=command, working_dir=self.working_dir)

        try:
            process = subprocess.Popen(
                command,
                cwd=self.working_dir,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            raise ProcessStartError(command, self.working_dir, str(e)) from e

        try:
            self._drain(process, invocation)
        finally:
            # Closing the pipe before waiting keeps a writer from blocking forever
            # once we have stopped reading.
            process.stdout.close()

        invocation.exit_code = process.wait()

        if invocation.exit_code == 0:
            logger.info("Mapper successful.")
        else:
            error = ProcessExitNonZero(command, invocation.exit_code)
            invocation.errors.append(error)
            logger.warning(str(error))

        return invocation

    def _drain(self, process: subprocess.Popen, invocation: ProcessInvocation):
        lines = (line.rstrip("\r\n") for line in process.stdout)
        try:
            for line in collapse_consecutive(lines):
                invocation.output.append(line)
                self.sink(line)
        except (OSError, ValueError) as e:
            error = ProcessRunError(invocation.command, str(e), len(invocation.output))
            invocation.errors.append(error)
            logger.error(str(error))


class PerRecordInvocation:
    """Runs the program before every record"""

    name = PER_RECORD

    def __init__(self, supervisor: ExternalProcessSupervisor):
        self.supervisor = supervisor

    def before_record(self) -> Optional[ProcessInvocation]:
        return self.supervisor.invoke()


class PerTaskInvocation:
    """Runs the program once, before the first record of a map task"""

    name = PER_TASK

    def __init__(self, supervisor: ExternalProcessSupervisor):
        self.supervisor = supervisor
        self._invoked = False

    def before_record(self) -> Optional[ProcessInvocation]:
        if self._invoked:
            return None
        self._invoked = True
        return self.supervisor.invoke()


_POLICIES = {
    PER_RECORD: PerRecordInvocation,
    PER_TASK: PerTaskInvocation,
}


def create_policy(name: str, supervisor: ExternalProcessSupervisor):
    """Build the invocation policy registered under name"""
    try:
        policy_class = _POLICIES[name]
    except KeyError:
        raise ConfigurationError(f"Unknown invocation policy '{name}'")
    return policy_class(supervisor)
