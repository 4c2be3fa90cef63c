"""
Local patch repository bookkeeping.

The repository holds one directory per upstream release (``v6.13``,
``v6.14``, ...), each containing the ``*.patch`` files validated against it.
A new release directory starts as symlinks into the previous one; patches
that needed fuzzy application are later replaced by regenerated files.
"""

from pathlib import Path
from typing import Iterable, List, Optional

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from patchrebase.common import RebaseError, logger
from patchrebase.config import DEFAULT_CONFIG, VERSION_DIR_GLOB, RebaseConfig
from patchrebase.models import PatchSet, RegeneratedPatch, VersionTag


class ConfigurationError(RebaseError):
    """The local repository is not in the expected state."""
    pass


def find_version_dirs(root: Path) -> List[Path]:
    """Return the vX.Y directories directly under ``root``, oldest first."""
    candidates = []
    for path in root.glob(VERSION_DIR_GLOB):
        if not path.is_dir():
            continue
        try:
            candidates.append((VersionTag.parse(path.name), path))
        except ValueError:
            continue

    if not candidates:
        raise ConfigurationError(f"No version directories found (vX.Y) in {root}")

    return [path for _, path in sorted(candidates, key=lambda item: item[0].key)]


class PatchWorkspace:
    """Git repository containing the per-release patch directories."""

    def __init__(self, root: Path, config: Optional[RebaseConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.root = Path(root)
        try:
            self.repo = Repo(self.root, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise ConfigurationError(f"Not inside a git repository: {self.root}") from e

    def current_dir(self) -> Path:
        """Highest version directory in the workspace."""
        return find_version_dirs(self.root)[-1]

    def current_tag(self) -> VersionTag:
        return VersionTag.parse(self.current_dir().name)

    def load_patch_set(self, directory: Path) -> PatchSet:
        return PatchSet.load(
            directory,
            VersionTag.parse(directory.name),
            pattern=self.config.patch_glob,
        )

    def _git(self, command: str, *args) -> str:
        try:
            return getattr(self.repo.git, command)(*args)
        except GitCommandError as e:
            raise ConfigurationError(f"git {command} failed in {self.root}: {e}") from e

    def local_branch_exists(self, name: str) -> bool:
        return any(head.name == name for head in self.repo.heads)

    def remote_branch_exists(self, name: str, remote: Optional[str] = None) -> bool:
        """True if ``remote`` has a head named ``name``; unreachable remotes count as no."""
        remote = remote or self.config.remote_name
        try:
            self.repo.git.ls_remote("--exit-code", "--heads", remote, name)
        except GitCommandError:
            return False
        return True

    def create_branch(self, name: str) -> None:
        logger.info(f"Creating {name}")
        self._git("checkout", "-b", name)

    def create_symlinked_set(self, current: Path, next_name: str) -> PatchSet:
        """
        Create ``next_name`` with one relative symlink per patch in ``current``.

        Raises:
            ConfigurationError: the target exists or the current set is empty
        """
        next_dir = self.root / next_name
        if next_dir.exists() or next_dir.is_symlink():
            raise ConfigurationError(f"Target directory {next_name} already exists")

        current_set = self.load_patch_set(current)
        if not current_set.patches:
            raise ConfigurationError(
                f"No {self.config.patch_glob} files found in {current.name}"
            )

        next_dir.mkdir()
        for patch in current_set.patches:
            (next_dir / patch.name).symlink_to(f"../{current.name}/{patch.name}")

        self._git("add", str(next_dir))
        self._git(
            "commit", "-m", f"Add symlink patch set for {next_name} based on {current.name}"
        )
        logger.info(f"Created {next_name} with {len(current_set)} symlinked patches")
        return current_set

    def install_regenerated(self, next_name: str, regenerated: Iterable[RegeneratedPatch]) -> int:
        """Replace symlinks with regenerated patch files and commit them."""
        next_dir = self.root / next_name
        replaced = 0
        for patch in regenerated:
            dest = next_dir / patch.name
            logger.info(f"Replacing symlink {next_name}/{patch.name} with regenerated patch file")
            if dest.is_symlink() or dest.exists():
                dest.unlink()
            dest.write_bytes(patch.content)
            replaced += 1

        if replaced > 0:
            self._git("add", str(next_dir))
            self._git("commit", "-m", f"Regenerate fuzzy patches for {next_name}")
        return replaced
