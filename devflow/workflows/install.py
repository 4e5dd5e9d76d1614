"""GitHub CLI installation workflow."""

from devflow.errors import DevflowError
from devflow.integrations.github import get_gh_version
from devflow.utils.logger import get_logger
from devflow.utils.shell import check_command_exists, run_command

logger = get_logger(__name__)


class InstallError(DevflowError):
    """Dependency installation failed."""


def install_workflow() -> str:
    """Install gh with Homebrew unless it is already available.

    Returns:
        Installed gh version line

    Raises:
        InstallError: If Homebrew is missing or the install fails
    """
    version = get_gh_version()
    if version:
        logger.info(f"GitHub CLI already installed: {version}")
        return version

    if not check_command_exists("brew"):
        raise InstallError("Homebrew not found. Install it from https://brew.sh first.")

    logger.info("Installing GitHub CLI with Homebrew")
    result = run_command(["brew", "install", "gh"], capture_output=False)
    if not result.success:
        raise InstallError(f"brew install gh failed with exit code {result.returncode}")

    version = get_gh_version()
    if not version:
        raise InstallError("gh is still not on PATH after installation")
    return version
