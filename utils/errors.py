"""
Defines custom exception classes for the application.
"""

from config.settings import EXPECTED_PROJECT, MARKER_FILE_NAME


class NaryaException(Exception):
    """Base exception class for narya application."""
    pass


class ConfigError(NaryaException):
    """Raised when there is a configuration error."""
    pass


# Repository detection

class RepoDetectorError(NaryaException):
    """Raised when the current directory is not a usable narya repository."""
    pass


class MarkerNotFoundError(RepoDetectorError):
    def __init__(self):
        super().__init__(
            "Not a narya-compatible repository.\n"
            f"Expected {MARKER_FILE_NAME} in project root.\n"
            f"Are you in the {EXPECTED_PROJECT} directory?"
        )


class InvalidMarkerFileError(RepoDetectorError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid {MARKER_FILE_NAME}: {reason}")


class UnexpectedProjectError(RepoDetectorError):
    def __init__(self, expected: str, found: str):
        self.expected = expected
        self.found = found
        super().__init__(
            f"Unexpected project in {MARKER_FILE_NAME}.\n"
            f"Expected: {expected}, found: {found}"
        )


# Shell execution

class ShellRunnerError(NaryaException):
    """Raised when an external command cannot be run or does not succeed."""

    def __init__(self, message: str, command: str):
        self.command = command
        super().__init__(message)


class CommandFailedError(ShellRunnerError):
    def __init__(self, command: str, exit_code: int):
        self.exit_code = exit_code
        super().__init__(f"{command} failed with exit code {exit_code}.", command)


class ExecutionFailedError(ShellRunnerError):
    def __init__(self, command: str, reason: str):
        self.reason = reason
        super().__init__(f"Failed to execute {command}: {reason}", command)


class TimedOutError(ShellRunnerError):
    def __init__(self, command: str, timeout: float):
        self.timeout = timeout
        super().__init__(f"{command} timed out after {int(timeout)} seconds.", command)


# Commands

class SetupError(NaryaException):
    """Raised when cloning the repository fails."""
    pass


class GitNotFoundError(SetupError):
    def __init__(self):
        super().__init__("git is not available. Please install git and try again.")


class GitCloneFailedError(SetupError):
    def __init__(self, exit_code: int):
        self.exit_code = exit_code
        super().__init__(f"git clone failed with exit code {exit_code}.")


class LintError(NaryaException):
    """Raised when linting cannot run or fails in strict mode."""
    pass


class SwiftlintNotFoundError(LintError):
    def __init__(self):
        super().__init__("swiftlint not found. Install it with 'brew install swiftlint'.")


class LintFailedError(LintError):
    def __init__(self, exit_code: int):
        self.exit_code = exit_code
        super().__init__(f"Linting failed with exit code {exit_code}.")


class ProductDirectoryNotFoundError(LintError):
    def __init__(self, directory: str):
        self.directory = directory
        super().__init__(f"Directory not found: {directory}")


class NimbusError(NaryaException):
    """Raised when a Nimbus feature file cannot be edited safely."""
    pass
