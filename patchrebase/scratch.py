"""
Disposable upstream working copy used to probe patch applicability.

The scratch tree is cloned into a temporary directory and removed again on
every exit path of the ``with`` block that owns it.
"""

import tempfile
from pathlib import Path
from typing import List, Optional

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from patchrebase.common import RebaseError, logger, run_command, safe_remove_dir
from patchrebase.config import DEFAULT_CONFIG, RebaseConfig
from patchrebase.models import PatchFile, VersionTag


class ScratchTreeError(RebaseError):
    """Scratch tree could not be created or used."""
    pass


class ScratchTree:
    """
    A git working copy exclusively owned by one update run.

    Exposes the primitives the patch engine needs: apply in clean or
    reject-tolerant mode, reset to a marker, commit, and export a commit
    range as a patch stream.
    """

    def __init__(
        self,
        path: Path,
        config: Optional[RebaseConfig] = None,
        temp_dir: Optional[Path] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.path = Path(path)
        self._temp_dir = temp_dir
        try:
            self.repo = Repo(self.path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            self.cleanup()
            raise ScratchTreeError(f"Not a git repository: {self.path}") from e
        try:
            self._configure()
        except (OSError, GitCommandError) as e:
            self.repo.close()
            self.cleanup()
            raise ScratchTreeError(f"Failed to configure {self.path}: {e}") from e

    @classmethod
    def open(cls, path: Path, config: Optional[RebaseConfig] = None) -> "ScratchTree":
        """Wrap an existing repository; it is left on disk afterwards."""
        return cls(path, config)

    @classmethod
    def clone(
        cls,
        url: str,
        tag: VersionTag,
        config: Optional[RebaseConfig] = None,
    ) -> "ScratchTree":
        """Shallow-clone ``url`` at ``tag`` into a fresh temporary directory."""
        config = config or DEFAULT_CONFIG
        temp_dir = Path(tempfile.mkdtemp(prefix="patchrebase_"))
        clone_dir = temp_dir / f"linux-{tag}"

        logger.info(f"Cloning {url} at tag {tag} into {clone_dir}")
        returncode, _, stderr = run_command(
            ["git", "clone", "--depth", "1", "--branch", str(tag), url, str(clone_dir)],
            timeout=config.clone_timeout,
        )
        if returncode != 0:
            safe_remove_dir(temp_dir)
            raise ScratchTreeError(f"Failed to clone {url} at {tag}: {stderr.strip()}")

        tree = cls(clone_dir, config, temp_dir=temp_dir)
        try:
            tree._git("checkout", "-b", config.scratch_branch_for(tag))
        except ScratchTreeError:
            tree.cleanup()
            raise
        return tree

    def _configure(self) -> None:
        """Disable auto gc and set a commit identity local to this tree."""
        with self.repo.config_writer() as writer:
            writer.set_value("gc", "auto", "0")
            writer.set_value("user", "name", self.config.commit_name)
            writer.set_value("user", "email", self.config.commit_email)

    def head(self) -> str:
        """Commit sha of the current tree state."""
        return self.repo.head.commit.hexsha

    def _apply(self, patch: PatchFile, *options: str) -> bool:
        returncode, _, stderr = run_command(
            ["git", "apply", *options, str(patch.path)],
            cwd=self.path,
        )
        if returncode != 0:
            logger.debug(f"git apply {' '.join(options)} {patch.name}: {stderr.strip()}")
        return returncode == 0

    def check_clean(self, patch: PatchFile) -> bool:
        """Dry run: does the patch apply with exact context?"""
        return self._apply(patch, "--check")

    def apply_clean(self, patch: PatchFile) -> bool:
        return self._apply(patch)

    def apply_tolerant(self, patch: PatchFile) -> bool:
        """Apply what can be placed, leaving .rej files for the rest."""
        return self._apply(patch, "--reject", "--whitespace=fix")

    def reject_files(self) -> List[Path]:
        return sorted(p for p in self.path.rglob("*.rej") if ".git" not in p.parts)

    def _git(self, command: str, *args, **kwargs):
        try:
            return getattr(self.repo.git, command)(*args, **kwargs)
        except GitCommandError as e:
            raise ScratchTreeError(f"git {command} failed in {self.path}: {e}") from e

    def reset(self, marker: str) -> None:
        """Restore the working tree to ``marker`` exactly."""
        self._git("reset", "--hard", marker)
        self._git("clean", "-fd")
        for reject in self.reject_files():
            reject.unlink()

    def commit_all(self, message: str) -> str:
        """Stage every change, including new files, as exactly one commit."""
        self._git("add", "-A")
        self._git("commit", "--allow-empty", "--no-verify", "-m", message)
        return self.head()

    def export_patch(self, base: str, result: str) -> bytes:
        """Format the ``base..result`` range as a patch stream, byte for byte."""
        return self._git(
            "format_patch",
            "--stdout",
            f"{base}..{result}",
            stdout_as_string=False,
            strip_newline_in_stdout=False,
        )

    def cleanup(self) -> None:
        """Remove the temporary directory if this tree created one."""
        if self._temp_dir is not None:
            logger.debug(f"Removing scratch directory {self._temp_dir}")
            safe_remove_dir(self._temp_dir)
            self._temp_dir = None

    def __enter__(self) -> "ScratchTree":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.repo.close()
        self.cleanup()
