"""Agent pull request workflow.

Checks out a pull request opened by a coding agent, builds and tests it,
pushes any local fixes, merges it and fast-forwards its base branch.
"""

from pathlib import Path
from typing import List, Optional

from devflow.integrations.git import GitRepository
from devflow.integrations.github import GitHubIntegration
from devflow.models import Config, PullRequestRef
from devflow.utils.logger import get_logger
from devflow.workflows.build import build_workflow

logger = get_logger(__name__)


def resolve_pull_request(
    github: GitHubIntegration,
    label: str,
    number: Optional[int] = None,
    resume: bool = False,
) -> PullRequestRef:
    """Pick the pull request to process.

    An explicit number wins. Otherwise a resumed run uses the pull request
    of the checked-out branch and a fresh run the first open one labeled
    ``label``.

    Raises:
        PullRequestNotFoundError: If no pull request matches
    """
    if number is not None:
        return github.view_pr(number)
    if resume:
        return github.view_pr()
    return github.find_labeled_pr(label)


def remove_colliding_branches(git: GitRepository, head_branch: str) -> List[str]:
    """Delete local branches whose name starts with the PR head branch.

    The checked-out branch is never deleted.

    Returns:
        Names of deleted branches
    """
    if not head_branch:
        return []

    current = git.current_branch()
    deleted = []
    for branch in git.list_local_branches(f"{head_branch}*"):
        if branch == current or not branch.startswith(head_branch):
            continue
        git.delete_branch(branch)
        deleted.append(branch)
    return deleted


def push_local_commits(git: GitRepository) -> bool:
    """Push commits made on top of the PR branch.

    Returns:
        True if a push happened

    Raises:
        UncommittedChangesError: If tracked files are modified
        GitPushError: If the push is rejected
    """
    git.ensure_clean()

    ahead = git.commits_ahead()
    if ahead is None:
        logger.info("Branch has no upstream, pushing with --set-upstream")
        git.push(set_upstream=True)
        return True
    if ahead == 0:
        logger.debug("Branch is up to date with its upstream")
        return False

    logger.info(f"Pushing {ahead} local commit(s)")
    git.push()
    return True


def sync_base_branch(git: GitRepository, base_branch: str) -> None:
    """Fast-forward the PR's base branch to the remote after the merge.

    Raises:
        FastForwardError: If the local base branch has diverged
    """
    git.fetch()
    git.checkout(base_branch)
    git.pull_ff_only(base_branch)
    logger.info(f"{base_branch} is up to date with {git.remote}/{base_branch}")


def pull_request_workflow(
    root: Path,
    config: Config,
    number: Optional[int] = None,
    resume: bool = False,
) -> PullRequestRef:
    """Run the full pull request flow.

    Args:
        root: Repository root
        config: Loaded configuration
        number: Explicit PR number
        resume: Continue on the already checked-out PR branch

    Returns:
        The processed pull request
    """
    git = GitRepository(root, remote=config.git.remote)
    github = GitHubIntegration(root, delete_branch_on_merge=config.github.delete_branch_on_merge)

    pr = resolve_pull_request(github, config.github.pr_label, number=number, resume=resume)
    logger.info(f"Processing PR #{pr.number} ({pr.head_branch} -> {pr.base_branch})")

    if not resume:
        for branch in remove_colliding_branches(git, pr.head_branch):
            logger.debug(f"Removed stale local branch {branch}")
        github.checkout_pr(pr.number)

    build_workflow(root, config)
    push_local_commits(git)

    github.merge_pr(pr.number)

    base_branch = pr.base_branch or config.git.dev_branch
    sync_base_branch(git, base_branch)
    return pr
