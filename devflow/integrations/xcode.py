"""Xcode build tool integration via xcodebuild.

Listing and log parsing are plain functions over captured text. Everything
that shells out takes an explicit ``BuildTarget`` or repository root.
"""

import re
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from devflow.errors import ConfigError, DevflowError, ExitCode
from devflow.models import BuildTarget, ContainerKind, FailureKind, XcodeConfig
from devflow.utils.logger import get_logger
from devflow.utils.shell import ShellError, run_command, run_command_to_file

logger = get_logger(__name__)

GENERIC_SIMULATOR = "generic/platform=iOS Simulator"

BUILD_FAILURE_MARKERS = (
    "** BUILD FAILED **",
    "The following build commands failed:",
    "Testing cancelled because the build failed",
)

COMPILER_ERROR_PATTERN = re.compile(r"^.+?\.(swift|m|mm|h|c|cc|cpp):\d+:\d+: error:", re.MULTILINE)

DESTINATION_PATTERN = re.compile(r"\{\s*(.+?)\s*\}")


class XcodeError(DevflowError):
    """xcodebuild invocation error."""


class BuildTestError(XcodeError):
    """Build or test run failed."""

    exit_code = ExitCode.BUILD_FAILED

    def __init__(self, message: str, failure_kind: FailureKind, log_path: Path):
        super().__init__(message)
        self.failure_kind = failure_kind
        self.log_path = log_path


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def parse_listing_section(listing: str, header: str) -> List[str]:
    """Entries of one section (``Targets:``, ``Schemes:``...) of ``xcodebuild -list``."""
    entries: List[str] = []
    section_indent: Optional[int] = None

    for line in listing.splitlines():
        stripped = line.strip()
        if section_indent is None:
            if stripped == header:
                section_indent = _indent(line)
            continue
        if not stripped:
            if entries:
                break
            continue
        if _indent(line) <= section_indent:
            break
        entries.append(stripped)

    return entries


def parse_schemes(listing: str) -> List[str]:
    return parse_listing_section(listing, "Schemes:")


def parse_targets(listing: str) -> List[str]:
    return parse_listing_section(listing, "Targets:")


def has_test_targets(listing: str) -> bool:
    """Check an ``xcodebuild -list`` listing for test targets.

    Project listings name their targets; workspace listings only carry
    schemes, so scheme names are checked when no target is a test bundle.
    """
    if any(target.endswith("Tests") for target in parse_targets(listing)):
        return True
    return any(scheme.endswith("Tests") for scheme in parse_schemes(listing))


def classify_failure(log_text: str, tail_lines: int = 200) -> FailureKind:
    """Decide whether a failed run broke while building or while testing."""
    tail = "\n".join(log_text.splitlines()[-tail_lines:])

    if any(marker in tail for marker in BUILD_FAILURE_MARKERS):
        return FailureKind.BUILD
    if COMPILER_ERROR_PATTERN.search(tail):
        return FailureKind.BUILD
    return FailureKind.TEST


def parse_destinations(output: str) -> List[Dict[str, str]]:
    """Parse the available destinations of ``xcodebuild -showdestinations``."""
    destinations = []

    for line in output.splitlines():
        if "Ineligible destinations" in line:
            break
        match = DESTINATION_PATTERN.search(line)
        if not match:
            continue
        fields = {}
        for part in match.group(1).split(", "):
            key, sep, value = part.partition(":")
            if sep:
                fields[key.strip()] = value.strip()
        if fields:
            destinations.append(fields)

    return destinations


def select_destination(destinations: List[Dict[str, str]], preferred_device: str) -> str:
    """Pick a simulator destination, preferring devices named ``preferred_device``."""
    simulators = [
        d for d in destinations
        if d.get("platform") == "iOS Simulator"
        and d.get("id")
        and "placeholder" not in d["id"]
    ]
    if not simulators:
        return GENERIC_SIMULATOR

    for simulator in simulators:
        if preferred_device and preferred_device in simulator.get("name", ""):
            return f"platform=iOS Simulator,id={simulator['id']}"
    return f"platform=iOS Simulator,id={simulators[0]['id']}"


def find_container(root: Path) -> Tuple[Path, ContainerKind]:
    """Locate the workspace or project to build under ``root``.

    Workspaces win over projects; within a kind the descriptor named after
    the root directory wins over the alphabetically first one.

    Raises:
        ConfigError: If neither a workspace nor a project exists
    """
    for kind in (ContainerKind.WORKSPACE, ContainerKind.PROJECT):
        candidates = sorted(root.glob(f"*{kind.suffix}"))
        if not candidates:
            continue
        for candidate in candidates:
            if candidate.stem == root.name:
                return candidate, kind
        return candidates[0], kind

    raise ConfigError(f"No Xcode workspace or project found in {root}")


def _xcodebuild(args: List[str], root: Path) -> str:
    try:
        result = run_command(["xcodebuild", *args], cwd=root)
    except ShellError as e:
        raise XcodeError(f"Could not run xcodebuild: {e.stderr or e}")
    if not result.success:
        raise XcodeError(f"xcodebuild {' '.join(args)} failed: {result.output.strip()}")
    return result.stdout


def list_container(container: Path, kind: ContainerKind, root: Path) -> str:
    """Raw ``xcodebuild -list`` output for a container."""
    return _xcodebuild(["-list", kind.flag, str(container)], root)


def show_destinations(container: Path, kind: ContainerKind, scheme: str, root: Path) -> str:
    return _xcodebuild(["-showdestinations", kind.flag, str(container), "-scheme", scheme], root)


def resolve_build_target(root: Path, config: XcodeConfig) -> BuildTarget:
    """Detect container, scheme, destination and test presence.

    Args:
        root: Repository root
        config: Build settings, including scheme and destination overrides

    Returns:
        Immutable build selection

    Raises:
        ConfigError: If no container or scheme can be determined
    """
    container, kind = find_container(root)
    logger.debug(f"Using {kind.value} {container.name}")

    listing = list_container(container, kind, root)

    scheme = config.scheme
    if not scheme:
        schemes = parse_schemes(listing)
        if not schemes:
            raise ConfigError(f"No schemes found in {container.name}. Set SCHEME to choose one.")
        scheme = schemes[0]
    logger.debug(f"Using scheme {scheme}")

    destination = config.destination
    if not destination:
        output = show_destinations(container, kind, scheme, root)
        destination = select_destination(parse_destinations(output), config.preferred_device)
    logger.debug(f"Using destination {destination}")

    return BuildTarget(
        root=root,
        container=container,
        container_kind=kind,
        scheme=scheme,
        destination=destination,
        has_tests=has_test_targets(listing),
    )


def open_in_ide(path: Path, ide_command: str = "open") -> None:
    """Open a workspace or project for manual inspection."""
    try:
        result = run_command([ide_command, str(path)])
    except ShellError as e:
        logger.warning(f"Could not open {path.name}: {e}")
        return
    if not result.success:
        logger.warning(f"Could not open {path.name}: {result.stderr.strip()}")


def run_build(target: BuildTarget, config: XcodeConfig) -> None:
    """Build, or test when the scheme has tests, logging to a temporary file.

    The log is removed on success and kept for inspection on failure.

    Raises:
        BuildTestError: If xcodebuild fails
    """
    safe_scheme = re.sub(r"[^\w.-]", "_", target.scheme)
    log_file = tempfile.NamedTemporaryFile(
        prefix=f"devflow-{safe_scheme}-", suffix=".log", delete=False
    )
    log_file.close()
    log_path = Path(log_file.name)

    command = ["xcodebuild", target.action, *target.xcodebuild_args()]
    logger.info(f"Running xcodebuild {target.action} for {target.scheme} (log: {log_path})")

    try:
        result = run_command_to_file(command, log_path, cwd=target.root)
    except ShellError as e:
        log_path.unlink(missing_ok=True)
        raise XcodeError(f"Could not run xcodebuild: {e.stderr or e}")

    if result.success:
        log_path.unlink(missing_ok=True)
        logger.debug(f"Removed build log {log_path}")
        return

    log_text = log_path.read_text(errors="replace")
    failure_kind = classify_failure(log_text, config.log_tail_lines)
    label = "Build failed" if failure_kind is FailureKind.BUILD else "Tests failed"

    open_in_ide(target.container, config.ide_command)
    raise BuildTestError(f"{label} for {target.scheme}. Log: {log_path}", failure_kind, log_path)
