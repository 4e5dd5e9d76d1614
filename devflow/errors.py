"""Exit codes and the base exception every failure class derives from."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit status, one per failure class."""

    SUCCESS = 0
    GENERAL = 1
    USAGE = 2
    UNCOMMITTED_CHANGES = 3
    PUSH_FAILED = 4
    DOWNLOAD_FAILED = 5
    COPY_FAILED = 6
    BUILD_FAILED = 7
    PR_NOT_FOUND = 8
    FAST_FORWARD_FAILED = 9
    MERGE_FAILED = 10


class DevflowError(Exception):
    """Fatal error for the current invocation."""

    exit_code: ExitCode = ExitCode.GENERAL

    def __init__(self, message: str, exit_code: ExitCode | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(DevflowError):
    """Configuration error."""


class NotARepositoryError(DevflowError):
    """Working directory is not inside a git repository."""
