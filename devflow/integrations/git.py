"""Git operations on the project repository."""

from pathlib import Path
from typing import List, Optional

from devflow.errors import DevflowError, ExitCode, NotARepositoryError
from devflow.utils.logger import get_logger
from devflow.utils.shell import ShellError, ShellResult, get_git_root, run_command

logger = get_logger(__name__)


class GitError(DevflowError):
    """Git command error."""


class UncommittedChangesError(GitError):
    """Tracked files have uncommitted changes."""

    exit_code = ExitCode.UNCOMMITTED_CHANGES


class GitPushError(GitError):
    """Push to the remote failed."""

    exit_code = ExitCode.PUSH_FAILED


class FastForwardError(GitError):
    """Branch could not be fast-forwarded."""

    exit_code = ExitCode.FAST_FORWARD_FAILED


class GitMergeError(GitError):
    """Non fast-forward merge failed."""

    exit_code = ExitCode.MERGE_FAILED


def resolve_repository_root(cwd: Optional[Path] = None) -> Path:
    """Resolve the repository root once at startup.

    Raises:
        NotARepositoryError: If ``cwd`` is not inside a git repository
    """
    root = get_git_root(cwd)
    if root is None:
        raise NotARepositoryError(
            f"Not a git repository: {cwd or Path.cwd()}. Run devflow from inside a project."
        )
    return root


class GitRepository:
    """Git client bound to a repository root."""

    def __init__(self, root: Path, remote: str = "origin"):
        """Initialize git client.

        Args:
            root: Repository root, every command runs there
            remote: Remote used for fetch, pull and push
        """
        self.root = root
        self.remote = remote

    def _git(self, *args: str) -> ShellResult:
        try:
            return run_command(["git", *args], cwd=self.root)
        except ShellError as e:
            raise GitError(f"Could not run git: {e.stderr or e}")

    @staticmethod
    def _detail(result: ShellResult) -> str:
        return result.stderr.strip() or result.stdout.strip()

    def current_branch(self) -> Optional[str]:
        """Current branch name, None on a detached HEAD."""
        result = self._git("branch", "--show-current")
        if not result.success:
            raise GitError(f"Could not determine current branch: {self._detail(result)}")
        return result.stdout.strip() or None

    def has_uncommitted_changes(self) -> bool:
        """Check tracked files for staged or unstaged changes."""
        result = self._git("status", "--porcelain", "--untracked-files=no")
        if not result.success:
            raise GitError(f"git status failed: {self._detail(result)}")
        return bool(result.stdout.strip())

    def ensure_clean(self) -> None:
        """Raise if tracked files have uncommitted changes.

        Raises:
            UncommittedChangesError: If the working tree is dirty
        """
        if self.has_uncommitted_changes():
            diff = self._git("diff", "--stat", "HEAD")
            if diff.success and diff.stdout.strip():
                logger.info(f"Uncommitted changes:\n{diff.stdout.rstrip()}")
            raise UncommittedChangesError(
                "Uncommitted changes in tracked files. Commit or stash them first."
            )

    def commits_ahead(self) -> Optional[int]:
        """Number of local commits not on the upstream branch.

        Returns:
            Commit count, or None when the branch has no upstream
        """
        result = self._git("rev-list", "--count", "@{upstream}..HEAD")
        if not result.success:
            logger.debug(f"No upstream for current branch: {self._detail(result)}")
            return None
        return int(result.stdout.strip() or 0)

    def fetch(self) -> None:
        """Fetch from the remote, pruning deleted branches."""
        result = self._git("fetch", self.remote, "--prune")
        if not result.success:
            raise GitError(f"git fetch failed: {self._detail(result)}")

    def checkout(self, branch: str) -> None:
        """Check out an existing branch."""
        result = self._git("checkout", branch)
        if not result.success:
            raise GitError(f"Could not check out {branch}: {self._detail(result)}")

    def list_local_branches(self, pattern: Optional[str] = None) -> List[str]:
        """List local branch names, optionally filtered by a glob pattern."""
        args = ["branch", "--list", "--format=%(refname:short)"]
        if pattern:
            args.append(pattern)
        result = self._git(*args)
        if not result.success:
            raise GitError(f"Could not list branches: {self._detail(result)}")
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def delete_branch(self, branch: str) -> None:
        """Force-delete a local branch."""
        result = self._git("branch", "-D", branch)
        if not result.success:
            raise GitError(f"Could not delete branch {branch}: {self._detail(result)}")
        logger.info(f"Deleted local branch {branch}")

    def push(self, branch: Optional[str] = None, set_upstream: bool = False) -> None:
        """Push the current branch, or ``branch`` to the remote.

        Raises:
            GitPushError: If the push is rejected
        """
        if set_upstream:
            args = ["push", "--set-upstream", self.remote, branch or "HEAD"]
        elif branch:
            args = ["push", self.remote, branch]
        else:
            args = ["push"]

        result = self._git(*args)
        if not result.success:
            raise GitPushError(f"git push failed: {self._detail(result)}")

    def pull_ff_only(self, branch: str) -> None:
        """Fast-forward the current branch to ``remote/branch``.

        Raises:
            FastForwardError: If histories have diverged
        """
        result = self._git("pull", "--ff-only", self.remote, branch)
        if not result.success:
            raise FastForwardError(
                f"Could not fast-forward to {self.remote}/{branch}: {self._detail(result)}"
            )

    def pull_no_ff(self, branch: str) -> None:
        """Merge ``remote/branch`` into the current branch with a merge commit.

        Raises:
            GitMergeError: If the merge fails or conflicts
        """
        result = self._git("pull", "--no-ff", "--no-edit", self.remote, branch)
        if not result.success:
            raise GitMergeError(
                f"Could not merge {self.remote}/{branch}: {self._detail(result)}"
            )

    def merge_ff_only(self, branch: str) -> None:
        """Fast-forward the current branch to a local branch.

        Raises:
            FastForwardError: If histories have diverged
        """
        result = self._git("merge", "--ff-only", branch)
        if not result.success:
            raise FastForwardError(f"Could not fast-forward to {branch}: {self._detail(result)}")
