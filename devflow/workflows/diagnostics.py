"""Diagnostics for the --debug action."""

from pathlib import Path
from typing import Dict, Optional

from devflow.errors import DevflowError
from devflow.integrations.github import get_gh_version
from devflow.integrations.xcode import resolve_build_target
from devflow.models import Config
from devflow.utils.shell import check_command_exists, get_current_branch


def collect_diagnostics(
    root: Optional[Path],
    config: Config,
    config_files: Optional[Dict[str, Optional[Path]]] = None,
) -> Dict[str, str]:
    """Describe the resolved environment.

    Detection failures are reported as values instead of being raised.
    """
    rows: Dict[str, str] = {
        "Repository root": str(root) if root else "not a git repository",
    }

    if root:
        rows["Current branch"] = get_current_branch(root) or "detached HEAD"
    rows["Development branch"] = config.git.dev_branch
    rows["Main branch"] = config.git.main_branch
    rows["PR label"] = config.github.pr_label

    for layer, path in (config_files or {}).items():
        rows[f"{layer.capitalize()} config"] = str(path) if path else "none"

    if root:
        try:
            target = resolve_build_target(root, config.xcode)
        except DevflowError as e:
            rows["Build target"] = f"error: {e}"
        else:
            rows["Container"] = f"{target.container.name} ({target.container_kind.value})"
            rows["Scheme"] = target.scheme
            rows["Destination"] = target.destination
            rows["Test targets"] = "yes" if target.has_tests else "no"

    rows["Update URL"] = config.update.url or "not configured"
    rows["Install path"] = str(config.update.install_path_obj)
    rows["gh"] = get_gh_version() or "not installed"
    for tool in ("xcodebuild", "brew"):
        rows[tool] = "available" if check_command_exists(tool) else "not found"

    return rows
