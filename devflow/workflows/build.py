"""Build/test workflow."""

from pathlib import Path

from devflow.integrations.xcode import resolve_build_target, run_build
from devflow.models import BuildTarget, Config
from devflow.utils.logger import get_logger

logger = get_logger(__name__)


def build_workflow(root: Path, config: Config) -> BuildTarget:
    """Detect the build target and build or test it.

    Args:
        root: Repository root
        config: Loaded configuration

    Returns:
        The target that was built

    Raises:
        ConfigError: If no workspace, project or scheme can be determined
        BuildTestError: If the build or the tests fail
    """
    target = resolve_build_target(root, config.xcode)
    run_build(target, config.xcode)
    logger.info(f"{target.action.capitalize()} succeeded for {target.scheme}")
    return target
