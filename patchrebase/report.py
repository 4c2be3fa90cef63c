"""
Aggregate per-patch results into a migration report and publish it.
"""

from pathlib import Path
from typing import Iterable, List, Optional

from rich.table import Table

from patchrebase.common import console, logger
from patchrebase.models import (
    ApplicationResult,
    MigrationReport,
    PatchStatus,
    RegeneratedPatch,
    UpdateMode,
)


STATUS_STYLES = {
    PatchStatus.CLEAN: "green",
    PatchStatus.FUZZY: "yellow",
    PatchStatus.FAILED: "red",
}


def no_update_report(current_dir: str, current_tag: str) -> MigrationReport:
    return MigrationReport(
        mode=UpdateMode.NONE,
        current_dir=current_dir,
        current_tag=current_tag,
    )


def branch_exists_report(
    current_dir: str,
    current_tag: str,
    next_dir: str,
    next_tag: str,
    branch_name: str,
) -> MigrationReport:
    return MigrationReport(
        mode=UpdateMode.BRANCH_EXISTS,
        current_dir=current_dir,
        current_tag=current_tag,
        next_dir=next_dir,
        next_tag=next_tag,
        branch_name=branch_name,
    )


def build_report(
    current_dir: str,
    current_tag: str,
    next_dir: str,
    next_tag: str,
    branch_name: str,
    results: Iterable[ApplicationResult],
    regenerated: Iterable[RegeneratedPatch] = (),
) -> MigrationReport:
    """Combine per-patch results into the final report of an update run."""
    report = MigrationReport(
        mode=UpdateMode.UPDATED,
        current_dir=current_dir,
        current_tag=current_tag,
        next_dir=next_dir,
        next_tag=next_tag,
        branch_name=branch_name,
        results=list(results),
        regenerated=[p.name for p in regenerated],
    )
    if report.has_errors:
        logger.warning(f"Some patches failed: {','.join(report.failed_patches)}")
    return report


def format_outputs(report: MigrationReport) -> List[str]:
    return [f"{key}={value}" for key, value in report.to_outputs().items()]


def write_outputs(report: MigrationReport, output_file: Optional[Path]) -> None:
    """
    Append the report as key=value lines to a GitHub Actions output file.

    Nothing is written when no output file is configured.
    """
    if not output_file:
        return
    with open(output_file, "a") as f:
        for line in format_outputs(report):
            f.write(line + "\n")
    logger.debug(f"Wrote {report.mode.value} outputs to {output_file}")


def print_summary(report: MigrationReport) -> None:
    """Print a per-patch table for the report."""
    title = f"{report.current_tag} -> {report.next_tag or 'none'} ({report.mode.value})"
    table = Table(title=title)
    table.add_column("Patch")
    table.add_column("Status")
    table.add_column("Base", style="dim")
    table.add_column("Result", style="dim")

    for result in report.results:
        style = STATUS_STYLES.get(result.status, "")
        table.add_row(
            result.name,
            f"[{style}]{result.status.value}[/{style}]",
            result.base_marker[:12],
            (result.result_marker or "-")[:12],
        )

    console.print(table)
    console.print(
        f"Clean: {report.clean_count}  Fuzzy: {report.fuzzy_count}  "
        f"Failed: {report.failed_count}"
    )
