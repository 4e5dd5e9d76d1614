"""Shell command execution utilities."""

import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Union

from devflow.utils.logger import get_logger

logger = get_logger(__name__)


class ShellError(Exception):
    """Shell command execution error."""

    def __init__(self, message: str, returncode: int, stdout: str = "", stderr: str = ""):
        """Initialize shell error.

        Args:
            message: Error message
            returncode: Process return code
            stdout: Standard output
            stderr: Standard error
        """
        super().__init__(message)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class ShellResult:
    """Shell command result."""

    def __init__(
        self,
        returncode: int,
        stdout: str,
        stderr: str,
        command: str,
        cwd: Optional[Path] = None,
    ):
        """Initialize shell result.

        Args:
            returncode: Process return code
            stdout: Standard output
            stderr: Standard error
            command: Executed command
            cwd: Working directory
        """
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.command = command
        self.cwd = cwd

    @property
    def success(self) -> bool:
        """Check if command succeeded."""
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr, stdout first."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    def check(self) -> "ShellResult":
        """Check result and raise error if failed.

        Returns:
            Self for chaining

        Raises:
            ShellError: If command failed
        """
        if not self.success:
            raise ShellError(
                f"Command failed: {self.command}",
                self.returncode,
                self.stdout,
                self.stderr,
            )
        return self


def _split_command(command: Union[str, List[str]]) -> tuple:
    if isinstance(command, str):
        return command, command.split()
    return " ".join(command), list(command)


def run_command(
    command: Union[str, List[str]],
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Dict[str, str]] = None,
    check: bool = False,
    capture_output: bool = True,
    timeout: Optional[float] = None,
) -> ShellResult:
    """Run shell command synchronously.

    Args:
        command: Command to execute
        cwd: Working directory
        env: Environment variables
        check: Raise exception on failure
        capture_output: Capture stdout/stderr
        timeout: Command timeout in seconds

    Returns:
        Command result

    Raises:
        ShellError: If command fails and check=True, or cannot be started
    """
    command_str, command_list = _split_command(command)
    cwd_path = Path(cwd) if cwd else None

    logger.debug(f"Running command: {command_str} (cwd: {cwd_path})")

    try:
        result = subprocess.run(
            command_list,
            cwd=cwd_path,
            env=env,
            capture_output=capture_output,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        logger.error(f"Command timed out after {timeout}s: {command_str}")
        raise ShellError(f"Command timed out: {command_str}", -1, "", str(e))
    except FileNotFoundError as e:
        logger.error(f"Command not found: {command_str}")
        raise ShellError(f"Command not found: {command_str}", -1, "", str(e))

    shell_result = ShellResult(
        returncode=result.returncode,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
        command=command_str,
        cwd=cwd_path,
    )

    if result.returncode == 0:
        logger.debug(f"Command succeeded: {command_str}")
    else:
        logger.debug(f"Command failed with code {result.returncode}: {command_str}")
        if result.stderr:
            logger.debug(f"stderr: {result.stderr}")

    if check:
        shell_result.check()

    return shell_result


def run_command_to_file(
    command: List[str],
    log_path: Path,
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Dict[str, str]] = None,
) -> ShellResult:
    """Run a long command with stdout and stderr streamed into a file.

    The returned result carries no captured output; read ``log_path``
    instead.

    Args:
        command: Command to execute
        log_path: File receiving the combined output
        cwd: Working directory
        env: Environment variables

    Returns:
        Command result

    Raises:
        ShellError: If the command cannot be started
    """
    command_str, command_list = _split_command(command)
    cwd_path = Path(cwd) if cwd else None

    logger.debug(f"Running command: {command_str} (cwd: {cwd_path}, log: {log_path})")

    try:
        with open(log_path, "w") as log_file:
            result = subprocess.run(
                command_list,
                cwd=cwd_path,
                env=env,
                stdout=log_file,
                stderr=subprocess.STDOUT,
                text=True,
            )
    except FileNotFoundError as e:
        logger.error(f"Command not found: {command_str}")
        raise ShellError(f"Command not found: {command_str}", -1, "", str(e))

    return ShellResult(
        returncode=result.returncode,
        stdout="",
        stderr="",
        command=command_str,
        cwd=cwd_path,
    )


def check_command_exists(command: str) -> bool:
    """Check if a command exists in PATH.

    Args:
        command: Command name to check

    Returns:
        True if command exists, False otherwise
    """
    try:
        result = run_command(["which", command])
        return result.success
    except ShellError:
        return False


def get_git_root(cwd: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Get git repository root directory.

    Returns:
        Git root path or None if not in a git repo
    """
    try:
        result = run_command(["git", "rev-parse", "--show-toplevel"], cwd=cwd, check=True)
        return Path(result.stdout.strip())
    except ShellError:
        return None


def get_current_branch(cwd: Optional[Union[str, Path]] = None) -> Optional[str]:
    """Get current git branch name.

    Returns:
        Current branch name or None if not in a git repo
    """
    try:
        result = run_command(["git", "branch", "--show-current"], cwd=cwd, check=True)
        return result.stdout.strip() or None
    except ShellError:
        return None
