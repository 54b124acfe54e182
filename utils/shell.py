import shutil
import subprocess
from pathlib import Path
from typing import Optional, Sequence, Union

from utils.errors import CommandFailedError, ExecutionFailedError, TimedOutError
from utils.logger import logger

# Time a terminated child gets to exit before it is killed.
TERMINATE_GRACE_SEC = 0.1

PathLike = Union[str, Path]


def _describe(command: str, arguments: Sequence[str]) -> str:
    return " ".join([command, *arguments])


def is_available(command: str) -> bool:
    """Checks whether an executable is on PATH."""
    found = shutil.which(command) is not None
    logger.debug(f"Checking for {command}: {'found' if found else 'not found'}")
    return found


def run(
    command: str,
    arguments: Sequence[str] = (),
    working_directory: Optional[PathLike] = None,
) -> int:
    """
    Runs a command, streaming its output directly to the terminal.

    Args:
        command: The executable to run.
        arguments: Arguments passed to the executable.
        working_directory: Optional directory to run the command in.

    Returns:
        The exit code, which is always 0 on return.

    Raises:
        ExecutionFailedError: If the command could not be started.
        CommandFailedError: If the command exits with a non-zero status.
    """
    logger.debug(f"Executing: {_describe(command, arguments)}")
    if working_directory is not None:
        logger.debug(f"Working directory: {working_directory}")

    try:
        result = subprocess.run(
            [command, *arguments],
            cwd=working_directory,
        )
    except OSError as e:
        logger.error(f"Failed to execute {command}: {e}")
        raise ExecutionFailedError(command, e.strerror or str(e)) from e

    if result.returncode != 0:
        logger.debug(f"{command} exited with code {result.returncode}")
        raise CommandFailedError(command, result.returncode)

    logger.debug(f"{command} completed successfully")
    return result.returncode


def run_and_capture(
    command: str,
    arguments: Sequence[str] = (),
    working_directory: Optional[PathLike] = None,
    timeout: Optional[float] = None,
) -> str:
    """
    Runs a command and captures its stdout, discarding stderr.

    Args:
        command: The executable to run.
        arguments: Arguments passed to the executable.
        working_directory: Optional directory to run the command in.
        timeout: Optional timeout in seconds. If None, waits indefinitely.

    Returns:
        The captured stdout decoded as UTF-8.

    Raises:
        ExecutionFailedError: If the command could not be started.
        TimedOutError: If the command did not finish within the timeout.
        CommandFailedError: If the command exits with a non-zero status.
    """
    logger.debug(f"Executing (capture): {_describe(command, arguments)}")
    if working_directory is not None:
        logger.debug(f"Working directory: {working_directory}")
    if timeout is not None:
        logger.debug(f"Timeout: {timeout} seconds")

    try:
        process = subprocess.Popen(
            [command, *arguments],
            cwd=working_directory,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
        )
    except OSError as e:
        logger.error(f"Failed to execute {command}: {e}")
        raise ExecutionFailedError(command, e.strerror or str(e)) from e

    try:
        stdout, _ = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        logger.debug(f"{command} timed out after {timeout} seconds, terminating process")
        process.terminate()
        try:
            process.wait(timeout=TERMINATE_GRACE_SEC)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
        raise TimedOutError(command, timeout)

    if process.returncode != 0:
        logger.debug(f"{command} exited with code {process.returncode}")
        raise CommandFailedError(command, process.returncode)

    stdout = stdout or b""
    logger.debug(f"{command} completed, captured {len(stdout)} bytes")
    return stdout.decode("utf-8", errors="replace")
