"""
Patch application engine.

Each patch moves through a small state machine::

    NOT_ATTEMPTED -> CLEAN | FUZZY | FAILED

Patches are applied cumulatively: the base of a patch is the result of the
last patch that did not fail. The base marker is passed explicitly from one
attempt to the next instead of being read back from the working tree.
"""

from typing import List

from patchrebase.common import logger
from patchrebase.models import (
    ApplicationResult,
    PatchFile,
    PatchSet,
    PatchStatus,
    VersionTag,
)
from patchrebase.scratch import ScratchTree


class PatchApplier:
    """Apply a patch set to a scratch tree and record one result per patch."""

    def __init__(self, tree: ScratchTree, target_tag: VersionTag):
        self.tree = tree
        self.target_tag = target_tag

    def _try_clean(self, patch: PatchFile) -> PatchStatus:
        if not self.tree.apply_clean(patch):
            logger.warning(f"  {patch.name}: passed --check but failed to apply")
            return PatchStatus.FAILED
        return PatchStatus.CLEAN

    def _try_tolerant(self, patch: PatchFile) -> PatchStatus:
        if not self.tree.apply_tolerant(patch):
            return PatchStatus.FAILED
        rejects = self.tree.reject_files()
        if rejects:
            logger.debug(f"  {patch.name}: {len(rejects)} reject file(s) left behind")
            return PatchStatus.FAILED
        return PatchStatus.FUZZY

    def _classify(self, patch: PatchFile) -> PatchStatus:
        if self.tree.check_clean(patch):
            return self._try_clean(patch)
        return self._try_tolerant(patch)

    def attempt(self, patch: PatchFile, base: str) -> ApplicationResult:
        """
        Apply one patch on top of ``base``.

        Failed attempts leave the tree exactly at ``base``. Clean and fuzzy
        attempts produce exactly one commit whose sha is the result marker.
        """
        logger.info(f"Applying patch {patch.name}...")
        status = self._classify(patch)

        if status is PatchStatus.FAILED:
            self.tree.reset(base)
            logger.warning(f"Patch {patch.name} FAILED (even with fuzzy).")
            return ApplicationResult(name=patch.name, status=status, base_marker=base)

        result = self.tree.commit_all(
            f"Apply {patch.name} for {self.target_tag} (mode: {status.value})"
        )
        logger.info(f"Patch {patch.name} applied ({status.value}) as {result[:12]}")
        return ApplicationResult(
            name=patch.name,
            status=status,
            base_marker=base,
            result_marker=result,
        )

    def apply_all(self, patch_set: PatchSet) -> List[ApplicationResult]:
        """Attempt every patch in order; failures never stop the run."""
        base = self.tree.head()
        results = []
        for patch in patch_set.patches:
            result = self.attempt(patch, base)
            results.append(result)
            if result.result_marker is not None:
                base = result.result_marker

        failed = sum(1 for r in results if r.is_failed)
        logger.info(
            f"Applied {len(results) - failed}/{len(results)} patches to {self.target_tag}"
            f" ({failed} failed)"
        )
        return results
