"""Click CLI interface for the devflow tool."""

import sys
from typing import Callable, Dict, Optional

import click
from rich.console import Console
from rich.table import Table

from devflow import __version__
from devflow.config import get_config, list_config_files
from devflow.errors import DevflowError
from devflow.integrations.git import resolve_repository_root
from devflow.utils.logger import enable_verbose_logging, get_logger
from devflow.utils.shell import get_git_root
from devflow.workflows import (
    build_workflow,
    collect_diagnostics,
    install_workflow,
    main_sync_workflow,
    pull_request_workflow,
    update_workflow,
)

logger = get_logger(__name__)
console = Console()
err_console = Console(stderr=True)


def run_build(pr_number: Optional[int], resume: bool, local: bool) -> None:
    root = resolve_repository_root()
    target = build_workflow(root, get_config())
    console.print(f"[green]✓[/green] {target.scheme}: {target.action} succeeded")


def run_codex(pr_number: Optional[int], resume: bool, local: bool) -> None:
    root = resolve_repository_root()
    pr = pull_request_workflow(root, get_config(), number=pr_number, resume=resume)
    console.print(f"[green]✓[/green] PR #{pr.number} merged into {pr.base_branch}")


def run_debug(pr_number: Optional[int], resume: bool, local: bool) -> None:
    enable_verbose_logging()
    root = get_git_root()

    table = Table(title=f"devflow {__version__}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    config = get_config()
    for key, value in collect_diagnostics(root, config, list_config_files()).items():
        table.add_row(key, value)
    console.print(table)


def run_install(pr_number: Optional[int], resume: bool, local: bool) -> None:
    version = install_workflow()
    console.print(f"[green]✓[/green] {version}")


def run_main_sync(pr_number: Optional[int], resume: bool, local: bool) -> None:
    root = resolve_repository_root()
    config = get_config()
    main_sync_workflow(root, config)
    console.print(
        f"[green]✓[/green] {config.git.main_branch} and {config.git.dev_branch} synchronized"
    )


def run_update(pr_number: Optional[int], resume: bool, local: bool) -> None:
    path = update_workflow(get_config().update, local=local)
    console.print(f"[green]✓[/green] Updated {path}")


ACTIONS: Dict[str, Callable[[Optional[int], bool, bool], None]] = {
    "build": run_build,
    "codex": run_codex,
    "debug": run_debug,
    "install": run_install,
    "main_sync": run_main_sync,
    "update": run_update,
}


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--build", "-b", is_flag=True, help="Build the project, or test it if it has tests")
@click.option("--codex", "-c", is_flag=True, help="Check out, verify and merge an agent PR")
@click.option("--debug", "-d", is_flag=True, help="Show detected settings and tools")
@click.option("--install", "-i", is_flag=True, help="Install the GitHub CLI with Homebrew")
@click.option("--main-sync", "-m", is_flag=True, help="Merge the development branch into main")
@click.option("--update", "-u", is_flag=True, help="Update devflow itself")
@click.option("--resume", "-r", is_flag=True, help="With --codex: continue on the checked-out PR")
@click.option("--local", "-l", is_flag=True, help="With --update: copy from update.local_source")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--version", is_flag=True, help="Show version and exit")
@click.argument("pr_number", required=False, type=int)
@click.pass_context
def cli(
    ctx: click.Context,
    build: bool,
    codex: bool,
    debug: bool,
    install: bool,
    main_sync: bool,
    update: bool,
    resume: bool,
    local: bool,
    verbose: bool,
    version: bool,
    pr_number: Optional[int],
) -> None:
    """Devflow - personal Xcode and GitHub workflow helper.

    Give exactly one action flag.

    \b
    Environment overrides:
      SCHEME       scheme to build
      DEV_BRANCH   development branch (default: develop)
      MAIN_BRANCH  main branch (default: main)

    \b
    Exit codes:
      3  uncommitted changes     7  build or tests failed
      4  push failed             8  pull request not found
      5  download failed         9  fast-forward failed
      6  copy failed            10  merge failed
    """
    if version:
        click.echo(f"devflow version {__version__}")
        sys.exit(0)

    selected = [
        name for name, enabled in (
            ("build", build),
            ("codex", codex),
            ("debug", debug),
            ("install", install),
            ("main_sync", main_sync),
            ("update", update),
        )
        if enabled
    ]

    if len(selected) > 1:
        raise click.UsageError("Action flags are mutually exclusive: give only one.")
    if resume and not codex:
        raise click.UsageError("--resume can only be used with --codex.")
    if local and not update:
        raise click.UsageError("--local can only be used with --update.")
    if pr_number is not None and not codex:
        raise click.UsageError("A PR number can only be given with --codex.")

    if not selected:
        click.echo(ctx.get_help())
        return

    if verbose:
        enable_verbose_logging()

    action = selected[0]
    logger.debug(f"Dispatching action: {action}")

    try:
        ACTIONS[action](pr_number, resume, local)
    except DevflowError as e:
        err_console.print(f"[red]✗[/red] {e}")
        sys.exit(int(e.exit_code))
