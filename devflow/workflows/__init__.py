"""Workflow modules, one per command-line action."""

from devflow.workflows.build import build_workflow
from devflow.workflows.diagnostics import collect_diagnostics
from devflow.workflows.install import InstallError, install_workflow
from devflow.workflows.pull_request import (
    pull_request_workflow,
    push_local_commits,
    remove_colliding_branches,
    resolve_pull_request,
    sync_base_branch,
)
from devflow.workflows.sync import main_sync_workflow
from devflow.workflows.update import CopyError, DownloadError, update_workflow

__all__ = [
    "build_workflow",
    "collect_diagnostics",
    "install_workflow",
    "InstallError",
    "pull_request_workflow",
    "push_local_commits",
    "remove_colliding_branches",
    "resolve_pull_request",
    "sync_base_branch",
    "main_sync_workflow",
    "update_workflow",
    "DownloadError",
    "CopyError",
]
