"""
Configuration constants and defaults for the patchrebase solution.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import os


# Upstream mainline repository whose release tags are tracked
DEFAULT_UPSTREAM_URL = "https://github.com/torvalds/linux"

# Pattern handed to `git ls-remote --tags`
REMOTE_TAG_PATTERN = "v[0-9]*.[0-9]*"

# Patch-set directories at the repository root (v6.13, v6.14, ...)
VERSION_DIR_GLOB = "v[0-9]*.[0-9]*"

PATCH_GLOB = "*.patch"


@dataclass
class RebaseConfig:
    """Global configuration for patch-set update runs."""

    # Repository holding the vX.Y patch-set directories
    repo_dir: Path = field(default_factory=Path.cwd)
    log_dir: Optional[Path] = None

    # Upstream
    upstream_url: str = DEFAULT_UPSTREAM_URL
    remote_name: str = "origin"

    # Network settings
    network_timeout: int = 30
    network_retries: int = 3
    network_hosts: list = field(default_factory=lambda: ["github.com"])

    # Shallow clone of a full kernel tree can take a while
    clone_timeout: int = 3600

    # Branch naming
    branch_prefix: str = "update/"
    scratch_branch_prefix: str = "pcie65-"

    patch_glob: str = PATCH_GLOB

    # Identity used for commits in the scratch tree
    commit_name: str = "patchrebase"
    commit_email: str = "patchrebase@localhost"

    # GitHub Actions style key=value output file
    github_output: Optional[Path] = None

    def __post_init__(self):
        """Ensure directories exist."""
        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_env(cls) -> "RebaseConfig":
        """Create configuration from environment variables."""
        log_dir = os.getenv("PATCHREBASE_LOG_DIR")
        github_output = os.getenv("GITHUB_OUTPUT")
        return cls(
            repo_dir=Path(os.getenv("PATCHREBASE_REPO_DIR", os.getcwd())),
            log_dir=Path(log_dir) if log_dir else None,
            upstream_url=os.getenv("PATCHREBASE_UPSTREAM_URL", DEFAULT_UPSTREAM_URL),
            network_timeout=int(os.getenv("PATCHREBASE_TIMEOUT", "30")),
            network_retries=int(os.getenv("PATCHREBASE_RETRIES", "3")),
            clone_timeout=int(os.getenv("PATCHREBASE_CLONE_TIMEOUT", "3600")),
            github_output=Path(github_output) if github_output else None,
        )

    def next_dir_for(self, next_tag) -> str:
        """Directory name for the patch set of a tag (e.g. 'v6.14')."""
        return str(next_tag)

    def branch_name_for(self, next_tag) -> str:
        """Update branch name for a tag (e.g. 'update/v6.14')."""
        return f"{self.branch_prefix}{self.next_dir_for(next_tag)}"

    def scratch_branch_for(self, next_tag) -> str:
        """Work branch created inside the scratch clone."""
        return f"{self.scratch_branch_prefix}{self.next_dir_for(next_tag)}"


# Default global configuration instance
DEFAULT_CONFIG = RebaseConfig()
