"""
Upstream release tag discovery and next-version resolution.
"""

from typing import Iterable, List, Optional

from git import Git
from git.exc import GitCommandError

from patchrebase.common import RebaseError, logger
from patchrebase.config import DEFAULT_UPSTREAM_URL, REMOTE_TAG_PATTERN
from patchrebase.models import VersionTag


class UpstreamError(RebaseError):
    """Remote tag listing failed."""
    pass


def sort_tags(tags: Iterable[str]) -> List[VersionTag]:
    """
    Sort tag strings in numeric version order.

    Duplicates and strings that are not major.minor versions are dropped.
    """
    parsed = set()
    for tag in tags:
        try:
            parsed.add(VersionTag.parse(tag))
        except ValueError:
            continue
    return sorted(parsed)


def parse_remote_tags(ls_remote_output: str) -> List[VersionTag]:
    """
    Normalize `git ls-remote --tags` output into ordered release tags.

    Lines look like ``<sha>\\trefs/tags/v6.13`` or ``<sha>\\trefs/tags/v6.13^{}``.
    Release candidates and anything that is not ``vX.Y`` are ignored.
    """
    names = []
    for line in ls_remote_output.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        name = parts[1]
        if name.startswith("refs/tags/"):
            name = name[len("refs/tags/"):]
        if name.endswith("^{}"):
            name = name[:-3]
        if VersionTag.is_release_tag(name):
            names.append(name)
    return sort_tags(names)


def find_next_tag(current: VersionTag, ordered_tags: List[VersionTag]) -> Optional[VersionTag]:
    """
    Return the tag immediately following ``current``.

    A current tag missing from the list yields None, the same as being last:
    nothing to do rather than an error.
    """
    for index, tag in enumerate(ordered_tags):
        if tag == current:
            if index + 1 < len(ordered_tags):
                return ordered_tags[index + 1]
            return None
    return None


def list_remote_tags(url: str = DEFAULT_UPSTREAM_URL, timeout: Optional[int] = None) -> List[VersionTag]:
    """List release tags of a remote repository in version order."""
    logger.debug(f"Listing remote tags from {url}")
    try:
        output = Git().ls_remote("--tags", url, REMOTE_TAG_PATTERN, kill_after_timeout=timeout)
    except GitCommandError as e:
        raise UpstreamError(f"Failed to list remote tags from {url}: {e}") from e
    return parse_remote_tags(output)


def resolve_next_tag(
    current: VersionTag,
    url: str = DEFAULT_UPSTREAM_URL,
    timeout: Optional[int] = None,
) -> Optional[VersionTag]:
    """Discover the next release after ``current`` on the remote."""
    logger.info(f"Discovering next stable tag after {current} from {url}...")
    tags = list_remote_tags(url, timeout=timeout)
    next_tag = find_next_tag(current, tags)
    if next_tag is None:
        logger.info(f"No newer stable tag found after {current}.")
    else:
        logger.info(f"Next stable tag: {next_tag}")
    return next_tag
