"""
Local process invocation

Runs the docker CLI for the operations that are not sent to the daemon's
HTTP API directly (build, pull, run and the availability probe).
"""

import logging
import subprocess
from collections.abc import Callable
from dataclasses import dataclass

from taskdock.core.exceptions import TaskdockError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessOutput:
    """Exit code and combined stdout/stderr of a finished process"""

    exit_code: int
    output: str


class ExecutableDoesNotExistError(TaskdockError):
    """Raised when the executable for a command cannot be found"""

    def __init__(self, executable: str, cause: Exception | None = None):
        self.executable = executable
        message = f"The executable '{executable}' could not be found or is not executable."
        if cause is not None:
            message += f" {cause}"
        super().__init__(
            message,
            recovery_hint="Make sure Docker is installed and the docker command is on your PATH.",
        )


class ProcessRunner:
    """Synchronous process execution with captured or streamed output"""

    def run(self, command: list[str]) -> int:
        """
        Run a command attached to the current terminal

        Args:
            command: Command and arguments

        Returns:
            Exit code of the process
        """
        logger.info(f"Running process: {' '.join(command)}")

        try:
            result = subprocess.run(command)
        except (FileNotFoundError, PermissionError) as e:
            raise ExecutableDoesNotExistError(command[0], e) from e

        logger.info(f"Process exited with code {result.returncode}")
        return result.returncode

    def run_and_capture_output(self, command: list[str]) -> ProcessOutput:
        """
        Run a command and capture stdout and stderr together

        Args:
            command: Command and arguments

        Returns:
            ProcessOutput with exit code and captured text
        """
        logger.debug(f"Running process and capturing output: {' '.join(command)}")

        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except (FileNotFoundError, PermissionError) as e:
            raise ExecutableDoesNotExistError(command[0], e) from e

        logger.debug(f"Process exited with code {result.returncode}")
        return ProcessOutput(result.returncode, result.stdout or "")

    def run_and_stream_output(
        self,
        command: list[str],
        on_line: Callable[[str], None],
    ) -> ProcessOutput:
        """
        Run a command, passing each line of output to a callback as it arrives

        The callback runs on the calling thread, between reads from the
        process's output pipe.

        Args:
            command: Command and arguments
            on_line: Called with each output line, without its line terminator

        Returns:
            ProcessOutput with exit code and the full captured text
        """
        logger.debug(f"Running process and streaming output: {' '.join(command)}")

        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise ExecutableDoesNotExistError(command[0], e) from e

        output_lines: list[str] = []

        with process:
            for line in process.stdout:
                output_lines.append(line)
                on_line(line.rstrip("\r\n"))

            exit_code = process.wait()

        logger.debug(f"Process exited with code {exit_code}, {len(output_lines)} lines of output")
        return ProcessOutput(exit_code, "".join(output_lines))
