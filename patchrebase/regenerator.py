"""
Regenerate patch files for patches that only applied in fuzzy mode.
"""

from pathlib import Path
from typing import Iterable, List

from patchrebase.common import logger
from patchrebase.models import ApplicationResult, RegeneratedPatch
from patchrebase.scratch import ScratchTree


def regenerate(tree: ScratchTree, results: Iterable[ApplicationResult]) -> List[RegeneratedPatch]:
    """
    Export the literal diff applied for every fuzzy result.

    Clean and failed results are skipped: clean patches keep their original
    file and failed patches are only reported by name.
    """
    regenerated = []
    for result in results:
        if not result.is_fuzzy:
            continue
        logger.info(
            f"Generating updated patch for {result.name} (fuzzy) from "
            f"{result.base_marker[:12]}..{result.result_marker[:12]}"
        )
        content = tree.export_patch(result.base_marker, result.result_marker)
        regenerated.append(
            RegeneratedPatch(
                name=result.name,
                content=content,
                base_marker=result.base_marker,
                result_marker=result.result_marker,
            )
        )
    return regenerated


def write_regenerated(regenerated: Iterable[RegeneratedPatch], out_dir: Path) -> List[Path]:
    """Write each regenerated patch to ``out_dir/<name>``."""
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for patch in regenerated:
        dest = out_dir / patch.name
        dest.write_bytes(patch.content)
        written.append(dest)
    return written
