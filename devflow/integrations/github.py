"""GitHub integration via gh CLI."""

import json
from pathlib import Path
from typing import List, Optional

from devflow.errors import DevflowError, ExitCode
from devflow.models import PullRequestRef
from devflow.utils.logger import get_logger
from devflow.utils.shell import ShellError, ShellResult, run_command

logger = get_logger(__name__)

PR_FIELDS = "number,headRefName,baseRefName,url"


class GitHubIntegrationError(DevflowError):
    """GitHub integration error."""


class PullRequestNotFoundError(GitHubIntegrationError):
    """No pull request matched the lookup."""

    exit_code = ExitCode.PR_NOT_FOUND


class PullRequestMergeError(GitHubIntegrationError):
    """Pull request could not be merged."""

    exit_code = ExitCode.MERGE_FAILED


class GitHubIntegration:
    """Pull request operations using gh CLI."""

    def __init__(self, root: Path, delete_branch_on_merge: bool = True):
        """Initialize GitHub integration.

        Args:
            root: Repository root, gh resolves the repository from it
            delete_branch_on_merge: Pass --delete-branch when merging
        """
        self.root = root
        self.delete_branch_on_merge = delete_branch_on_merge

    def _gh(self, *args: str) -> ShellResult:
        try:
            return run_command(["gh", *args], cwd=self.root)
        except ShellError as e:
            raise GitHubIntegrationError(
                f"Could not run gh: {e.stderr or e}. Install it with 'devflow --install'."
            )

    @staticmethod
    def _parse_json(result: ShellResult):
        try:
            return json.loads(result.stdout or "null")
        except json.JSONDecodeError as e:
            raise GitHubIntegrationError(f"Failed to parse gh output: {e}")

    def list_open_prs(self, label: str, limit: int = 1) -> List[PullRequestRef]:
        """List open pull requests carrying ``label``, newest first."""
        result = self._gh(
            "pr", "list",
            "--state", "open",
            "--label", label,
            "--json", PR_FIELDS,
            "--limit", str(limit),
        )
        if not result.success:
            raise GitHubIntegrationError(f"gh pr list failed: {result.stderr.strip()}")
        return [PullRequestRef.from_gh(item) for item in self._parse_json(result) or []]

    def find_labeled_pr(self, label: str) -> PullRequestRef:
        """First open pull request carrying ``label``.

        Raises:
            PullRequestNotFoundError: If there is none
        """
        prs = self.list_open_prs(label)
        if not prs:
            raise PullRequestNotFoundError(f"No open pull request labeled '{label}'")
        return prs[0]

    def view_pr(self, number: Optional[int] = None) -> PullRequestRef:
        """Look up a pull request by number, or the one for the current branch.

        Raises:
            PullRequestNotFoundError: If gh cannot resolve it
        """
        args = ["pr", "view"]
        if number is not None:
            args.append(str(number))
        args.extend(["--json", PR_FIELDS])

        result = self._gh(*args)
        if not result.success:
            target = f"#{number}" if number is not None else "for the current branch"
            raise PullRequestNotFoundError(
                f"Pull request {target} not found: {result.stderr.strip()}"
            )
        return PullRequestRef.from_gh(self._parse_json(result))

    def checkout_pr(self, number: int) -> None:
        """Check out the head branch of a pull request."""
        result = self._gh("pr", "checkout", str(number))
        if not result.success:
            raise GitHubIntegrationError(
                f"Could not check out PR #{number}: {result.stderr.strip()}"
            )

    def _merge_args(self, number: int, auto: bool) -> List[str]:
        args = ["pr", "merge", str(number), "--merge"]
        if auto:
            args.append("--auto")
        if self.delete_branch_on_merge:
            args.append("--delete-branch")
        return args

    def merge_pr(self, number: int) -> bool:
        """Merge a pull request, preferring host-side auto-merge.

        Returns:
            True if auto-merge was accepted, False if merged directly

        Raises:
            PullRequestMergeError: If both attempts are rejected
        """
        result = self._gh(*self._merge_args(number, auto=True))
        if result.success:
            logger.info(f"Auto-merge enabled for PR #{number}")
            return True

        logger.warning(f"Auto-merge rejected for PR #{number}: {result.stderr.strip()}")

        result = self._gh(*self._merge_args(number, auto=False))
        if not result.success:
            raise PullRequestMergeError(f"Could not merge PR #{number}: {result.stderr.strip()}")

        logger.info(f"Merged PR #{number}")
        return False


def get_gh_version() -> Optional[str]:
    """First line of ``gh --version``, None if gh is not installed."""
    try:
        result = run_command(["gh", "--version"])
    except ShellError:
        return None
    if not result.success:
        return None
    return result.stdout.splitlines()[0] if result.stdout else None
