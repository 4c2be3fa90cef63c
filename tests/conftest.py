"""Shared fixtures: throwaway git repositories and patch files."""

import shutil
from pathlib import Path

import pytest
from git import Repo

from patchrebase.config import RebaseConfig


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git binary not available")


BASE_LINES = [f"line {i}" for i in range(1, 21)]
BASE_CONTENT = "\n".join(BASE_LINES) + "\n"

CLEAN_PATCH = """\
diff --git a/src/foo.c b/src/foo.c
--- a/src/foo.c
+++ b/src/foo.c
@@ -2,7 +2,7 @@
 line 2
 line 3
 line 4
-line 5
+line five
 line 6
 line 7
 line 8
"""

# Builds on CLEAN_PATCH: only applies once "line five" exists
FOLLOWUP_PATCH = """\
diff --git a/src/foo.c b/src/foo.c
--- a/src/foo.c
+++ b/src/foo.c
@@ -3,5 +3,5 @@
 line 3
 line 4
-line five
+line FIVE
 line 6
 line 7
"""

# Context line "line 13 " carries trailing whitespace the tree does not have
FUZZY_PATCH = (
    "diff --git a/src/foo.c b/src/foo.c\n"
    "--- a/src/foo.c\n"
    "+++ b/src/foo.c\n"
    "@@ -12,7 +12,7 @@\n"
    " line 12\n"
    " line 13 \n"
    " line 14\n"
    "-line 15\n"
    "+line fifteen\n"
    " line 16\n"
    " line 17\n"
    " line 18\n"
)

# First hunk places, second hunk has no matching context anywhere
REJECT_PATCH = """\
diff --git a/src/foo.c b/src/foo.c
--- a/src/foo.c
+++ b/src/foo.c
@@ -8,5 +8,5 @@
 line 8
 line 9
-line 10
+line ten
 line 11
 line 12
@@ -17,4 +17,4 @@
 no such line a
 no such line b
-no such line c
+replacement c
 no such line d
"""

MISSING_FILE_PATCH = """\
diff --git a/src/missing.c b/src/missing.c
--- a/src/missing.c
+++ b/src/missing.c
@@ -1,3 +1,3 @@
 alpha
-beta
+gamma
 delta
"""

NEW_FILE_PATCH = """\
diff --git a/src/new.c b/src/new.c
new file mode 100644
--- /dev/null
+++ b/src/new.c
@@ -0,0 +1,2 @@
+int x;
+int y;
"""


def init_repo(path: Path) -> Repo:
    """Create a git repository with a local commit identity."""
    path.mkdir(parents=True, exist_ok=True)
    repo = Repo.init(path)
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")
    return repo


def write_patch(directory: Path, name: str, content: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(content)
    return path


@pytest.fixture
def upstream_repo(tmp_path):
    """Stand-in for an upstream checkout: one commit with src/foo.c."""
    path = tmp_path / "upstream"
    repo = init_repo(path)
    (path / "src").mkdir()
    (path / "src" / "foo.c").write_text(BASE_CONTENT)
    (path / "README").write_text("upstream\n")
    repo.git.add("-A")
    repo.git.commit("-m", "Initial upstream tree")
    return repo


@pytest.fixture
def patch_repo(tmp_path):
    """Patch repository with v6.9 and v6.13 patch-set directories."""
    path = tmp_path / "patches"
    repo = init_repo(path)
    write_patch(path / "v6.9", "0001-old.patch", CLEAN_PATCH)
    write_patch(path / "v6.13", "0001-clean.patch", CLEAN_PATCH)
    write_patch(path / "v6.13", "0002-fuzzy.patch", FUZZY_PATCH)
    write_patch(path / "v6.13", "0003-reject.patch", REJECT_PATCH)
    (path / "README.md").write_text("patches\n")
    repo.git.add("-A")
    repo.git.commit("-m", "Initial patch sets")
    return repo


@pytest.fixture
def config(tmp_path):
    return RebaseConfig(repo_dir=tmp_path / "patches")
