"""
Data models for the patchrebase solution using Pydantic for validation.
"""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
import re


RELEASE_TAG_RE = re.compile(r"^v(\d+)\.(\d+)$")
SERIES_RE = re.compile(r"^v?(\d+)\.(\d+)$")


class PatchStatus(str, Enum):
    """Outcome of applying one patch to the scratch tree."""
    NOT_ATTEMPTED = "not_attempted"
    CLEAN = "clean"
    FUZZY = "fuzzy"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not PatchStatus.NOT_ATTEMPTED


class UpdateMode(str, Enum):
    """Run disposition reported to the orchestrator."""
    NONE = "none"
    BRANCH_EXISTS = "branch_exists"
    UPDATED = "updated"


class VersionTag(BaseModel):
    """A major.minor release tag with numeric ordering (v6.9 < v6.10)."""
    model_config = ConfigDict(frozen=True)

    major: int
    minor: int

    @classmethod
    def parse(cls, version_str: str) -> "VersionTag":
        """Parse 'v6.13' or '6.13' into a VersionTag."""
        match = SERIES_RE.match(version_str.strip())
        if not match:
            raise ValueError(f"Invalid version tag: {version_str!r}")
        return cls(major=int(match.group(1)), minor=int(match.group(2)))

    @staticmethod
    def is_release_tag(text: str) -> bool:
        """True for 'vX.Y' tags; release candidates and stable tags are excluded."""
        return RELEASE_TAG_RE.match(text) is not None

    def __str__(self) -> str:
        return f"v{self.major}.{self.minor}"

    @property
    def key(self):
        return (self.major, self.minor)

    def __lt__(self, other: "VersionTag") -> bool:
        return self.key < other.key

    def __le__(self, other: "VersionTag") -> bool:
        return self.key <= other.key

    def __gt__(self, other: "VersionTag") -> bool:
        return self.key > other.key

    def __ge__(self, other: "VersionTag") -> bool:
        return self.key >= other.key

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionTag):
            return False
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    @property
    def series(self) -> str:
        """Get the series without the 'v' prefix (e.g., '6.13')."""
        return f"{self.major}.{self.minor}"


class PatchFile(BaseModel):
    """A named patch file in a patch set."""
    model_config = ConfigDict(frozen=True)

    name: str
    path: Path

    @property
    def content(self) -> bytes:
        return self.path.read_bytes()


class PatchSet(BaseModel):
    """Ordered patch files belonging to one version directory."""
    tag: VersionTag
    directory: Path
    patches: List[PatchFile] = Field(default_factory=list)

    @classmethod
    def load(cls, directory: Path, tag: VersionTag, pattern: str = "*.patch") -> "PatchSet":
        """Collect patch files from a directory in name order."""
        patches = [
            PatchFile(name=path.name, path=path.resolve())
            for path in sorted(directory.glob(pattern))
            if path.is_file()
        ]
        return cls(tag=tag, directory=directory, patches=patches)

    @property
    def names(self) -> List[str]:
        return [p.name for p in self.patches]

    def __len__(self) -> int:
        return len(self.patches)


class ApplicationResult(BaseModel):
    """Outcome of one patch attempt. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    name: str
    status: PatchStatus
    base_marker: str
    result_marker: Optional[str] = None

    @model_validator(mode="after")
    def check_markers(self) -> "ApplicationResult":
        if not self.status.is_terminal:
            raise ValueError(f"Result for {self.name} has non-terminal status")
        if self.status is PatchStatus.FAILED and self.result_marker is not None:
            raise ValueError(f"Failed result for {self.name} cannot carry a result marker")
        if self.status is not PatchStatus.FAILED and not self.result_marker:
            raise ValueError(f"{self.status.value} result for {self.name} needs a result marker")
        return self

    @property
    def is_clean(self) -> bool:
        return self.status is PatchStatus.CLEAN

    @property
    def is_fuzzy(self) -> bool:
        return self.status is PatchStatus.FUZZY

    @property
    def is_failed(self) -> bool:
        return self.status is PatchStatus.FAILED


class RegeneratedPatch(BaseModel):
    """New patch content exported for a fuzzy-applied patch."""
    name: str
    content: bytes
    base_marker: str
    result_marker: str


class MigrationReport(BaseModel):
    """Terminal output of one update run."""
    mode: UpdateMode
    current_dir: str
    current_tag: str
    next_dir: Optional[str] = None
    next_tag: Optional[str] = None
    branch_name: Optional[str] = None
    results: List[ApplicationResult] = Field(default_factory=list)
    regenerated: List[str] = Field(default_factory=list)

    @property
    def failed_patches(self) -> List[str]:
        return [r.name for r in self.results if r.is_failed]

    @property
    def has_errors(self) -> bool:
        return any(r.is_failed for r in self.results)

    @property
    def clean_count(self) -> int:
        return sum(1 for r in self.results if r.is_clean)

    @property
    def fuzzy_count(self) -> int:
        return sum(1 for r in self.results if r.is_fuzzy)

    @property
    def failed_count(self) -> int:
        return len(self.failed_patches)

    def to_outputs(self) -> Dict[str, str]:
        """Flat key/value fields for the CI orchestrator."""
        outputs = {"update_mode": self.mode.value}
        if self.mode is not UpdateMode.NONE:
            outputs["branch_name"] = self.branch_name or ""
            outputs["next_dir"] = self.next_dir or ""
            outputs["next_tag"] = self.next_tag or ""
        outputs["current_dir"] = self.current_dir
        outputs["current_tag"] = self.current_tag
        if self.mode is UpdateMode.UPDATED:
            outputs["has_errors"] = "true" if self.has_errors else "false"
            outputs["failed_patches"] = ",".join(self.failed_patches)
        return outputs
