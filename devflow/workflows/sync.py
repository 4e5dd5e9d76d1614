"""Main branch synchronization workflow."""

from pathlib import Path

from devflow.integrations.git import GitRepository
from devflow.models import Config
from devflow.utils.logger import get_logger

logger = get_logger(__name__)


def main_sync_workflow(root: Path, config: Config) -> None:
    """Merge the development branch into main and bring both up to date.

    Main is fast-forwarded, receives development with a merge commit and is
    pushed; development is then fast-forwarded to main and pushed.

    Args:
        root: Repository root
        config: Loaded configuration

    Raises:
        UncommittedChangesError: If tracked files are modified
        FastForwardError: If either branch has diverged from its remote
        GitMergeError: If merging development into main fails
        GitPushError: If a push is rejected
    """
    dev_branch = config.git.dev_branch
    main_branch = config.git.main_branch
    git = GitRepository(root, remote=config.git.remote)

    git.ensure_clean()
    git.fetch()

    git.checkout(main_branch)
    git.pull_ff_only(main_branch)
    logger.info(f"Merging {dev_branch} into {main_branch}")
    git.pull_no_ff(dev_branch)
    git.push(main_branch)

    git.checkout(dev_branch)
    git.pull_ff_only(dev_branch)
    git.merge_ff_only(main_branch)
    git.push(dev_branch)

    logger.info(f"{main_branch} and {dev_branch} are in sync")
