"""
Error types for the word count job.

ConfigurationError and ProcessStartError stop a job, as does a task that
fails outright (TaskFailedError). Errors from the external program once it
is running are logged, counted, and dropped.
"""


class JarCountError(Exception):
    """Base class for all job errors"""


class ConfigurationError(JarCountError):
    """Startup parameters are malformed or incomplete"""


class CacheReadError(JarCountError):
    """A skip-pattern file from the shared cache could not be read"""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Caught exception while parsing the cached file '{path}': {reason}")
        self.path = path
        self.reason = reason


class ProcessStartError(JarCountError):
    """The external program could not be launched"""

    def __init__(self, command: list, working_dir: str, reason: str):
        super().__init__(f"Failed to start {command} in {working_dir}: {reason}")
        self.command = command
        self.working_dir = working_dir
        self.reason = reason


class ProcessRunError(JarCountError):
    """Output of a running external program could not be read"""

    def __init__(self, command: list, reason: str, lines_captured: int = 0):
        super().__init__(
            f"Lost output stream of {command} after {lines_captured} lines: {reason}"
        )
        self.command = command
        self.reason = reason
        self.lines_captured = lines_captured


class ProcessExitNonZero(JarCountError):
    """The external program exited with a failure status"""

    def __init__(self, command: list, exit_code: int):
        super().__init__(f"{command} exited with status {exit_code}")
        self.command = command
        self.exit_code = exit_code


class TaskFailedError(JarCountError):
    """A map or reduce task failed for a reason other than the ones above"""

    def __init__(self, phase: str, task_id: int, reason: str):
        super().__init__(f"{phase} task {task_id} failed: {reason}")
        self.phase = phase
        self.task_id = task_id
        self.reason = reason


class JobAbortedError(JarCountError):
    """A task stopped early because another task hit a fatal error"""

    def __init__(self, phase: str, task_id: int):
        super().__init__(f"{phase} task {task_id} stopped: job aborted")
        self.phase = phase
        self.task_id = task_id


class IntermediateDataError(JarCountError):
    """Map output handed to a reducer is missing or unreadable"""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Bad intermediate data in {path}: {reason}")
        self.path = path
        self.reason = reason
