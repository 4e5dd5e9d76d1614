"""Data models for the devflow tool."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class ContainerKind(str, Enum):
    """Kind of Xcode project descriptor."""

    WORKSPACE = "workspace"
    PROJECT = "project"

    @property
    def suffix(self) -> str:
        return ".xcworkspace" if self is ContainerKind.WORKSPACE else ".xcodeproj"

    @property
    def flag(self) -> str:
        """xcodebuild option selecting this kind of container."""
        return f"-{self.value}"


class FailureKind(str, Enum):
    """Category of a failed build/test run."""

    BUILD = "build"
    TEST = "test"


class BuildTarget(BaseModel):
    """Resolved build selection for one invocation."""

    root: Path = Field(description="Repository root")
    container: Path = Field(description="Workspace or project path")
    container_kind: ContainerKind = Field(description="Workspace or project")
    scheme: str = Field(description="Scheme to build")
    destination: str = Field(description="xcodebuild -destination value")
    has_tests: bool = Field(default=False, description="Scheme has test targets")

    model_config = {"frozen": True}

    @property
    def action(self) -> str:
        """xcodebuild action to run."""
        return "test" if self.has_tests else "build"

    def xcodebuild_args(self) -> list[str]:
        """Container, scheme and destination arguments for xcodebuild."""
        return [
            self.container_kind.flag,
            str(self.container),
            "-scheme",
            self.scheme,
            "-destination",
            self.destination,
        ]


class PullRequestRef(BaseModel):
    """Pull request selected for the merge flow."""

    number: int = Field(description="PR number")
    head_branch: str = Field(default="", description="Head (source) branch")
    base_branch: str = Field(default="", description="Base (target) branch")
    url: str | None = Field(default=None, description="PR URL")

    model_config = {"frozen": True}

    @classmethod
    def from_gh(cls, data: dict) -> "PullRequestRef":
        """Build from a ``gh pr ... --json`` object."""
        return cls(
            number=data["number"],
            head_branch=data.get("headRefName", ""),
            base_branch=data.get("baseRefName", ""),
            url=data.get("url"),
        )


class GitConfig(BaseModel):
    """Branch settings."""

    dev_branch: str = Field(default="develop", description="Development branch")
    main_branch: str = Field(default="main", description="Main branch")
    remote: str = Field(default="origin", description="Remote name")

    @field_validator("dev_branch", "main_branch", "remote")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate branch and remote names are not empty."""
        if not v or not v.strip():
            raise ValueError("Branch and remote names cannot be empty")
        return v.strip()


class GitHubConfig(BaseModel):
    """GitHub settings."""

    pr_label: str = Field(default="codex", description="Label marking agent PRs")
    delete_branch_on_merge: bool = Field(default=True, description="Delete branch after merge")


class XcodeConfig(BaseModel):
    """Build tool settings."""

    scheme: str | None = Field(default=None, description="Scheme override")
    destination: str | None = Field(default=None, description="Destination override")
    preferred_device: str = Field(default="iPhone", description="Preferred simulator name")
    log_tail_lines: int = Field(default=200, description="Log lines scanned on failure")
    ide_command: str = Field(default="open", description="Command opening the IDE")

    @field_validator("log_tail_lines")
    @classmethod
    def validate_log_tail_lines(cls, v: int) -> int:
        """Validate log tail length is positive."""
        if v < 1:
            raise ValueError("log_tail_lines must be at least 1")
        return v


class UpdateConfig(BaseModel):
    """Self-update settings."""

    url: str | None = Field(default=None, description="Download URL of the released executable")
    install_path: str = Field(
        default="~/.local/bin/devflow", description="Installed executable path"
    )
    local_source: str | None = Field(default=None, description="Local copy source for --local")
    timeout: int = Field(default=60, description="Download timeout (seconds)")

    @property
    def install_path_obj(self) -> Path:
        return Path(self.install_path).expanduser()


class Config(BaseModel):
    """Main configuration model."""

    version: str = Field(default="1.0", description="Config version")
    git: GitConfig = Field(default_factory=GitConfig, description="Branch settings")
    github: GitHubConfig = Field(default_factory=GitHubConfig, description="GitHub settings")
    xcode: XcodeConfig = Field(default_factory=XcodeConfig, description="Build settings")
    update: UpdateConfig = Field(default_factory=UpdateConfig, description="Self-update settings")

    model_config = {"extra": "allow"}
