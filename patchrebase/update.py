"""
Main update workflow orchestration.
"""

import time
from datetime import datetime
from typing import Optional

from patchrebase.common import check_network, logger, setup_logging
from patchrebase.config import DEFAULT_CONFIG, RebaseConfig
from patchrebase.engine import PatchApplier
from patchrebase.models import MigrationReport
from patchrebase.regenerator import regenerate
from patchrebase.report import (
    branch_exists_report,
    build_report,
    no_update_report,
    write_outputs,
)
from patchrebase.scratch import ScratchTree
from patchrebase.versions import UpstreamError, resolve_next_tag
from patchrebase.workspace import PatchWorkspace


def run_update(
    config: Optional[RebaseConfig] = None,
    skip_network_check: bool = False,
) -> MigrationReport:
    """
    Run the complete update workflow.

    Args:
        config: Configuration object
        skip_network_check: Do not probe connectivity before remote access

    Returns:
        The migration report; it is also written to ``config.github_output``

    Raises:
        RebaseError: on configuration, upstream or scratch tree failures
    """
    config = config or DEFAULT_CONFIG
    started = time.monotonic()

    if config.log_dir:
        log_file = config.log_dir / f"update_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        setup_logging("patchrebase", level=logger.level, log_file=log_file)

    # Step 1: Locate current patch set
    workspace = PatchWorkspace(config.repo_dir, config)
    current_dir = workspace.current_dir()
    current_tag = workspace.current_tag()
    logger.info(f"Current highest version directory: {current_dir.name} (tag {current_tag})")

    # Step 2: Determine next release
    if not skip_network_check and not check_network(
        config.network_hosts, config.network_timeout, config.network_retries
    ):
        raise UpstreamError("Network is not available")

    next_tag = resolve_next_tag(current_tag, config.upstream_url, timeout=config.network_timeout)
    if next_tag is None:
        report = no_update_report(current_dir.name, str(current_tag))
        write_outputs(report, config.github_output)
        return report

    next_dir = config.next_dir_for(next_tag)
    branch_name = config.branch_name_for(next_tag)
    logger.info(f"Next stable tag: {next_tag}, new directory: {next_dir}, branch: {branch_name}")

    # Step 3: Skip if the update is already in progress
    if workspace.local_branch_exists(branch_name):
        logger.info(f"Local branch {branch_name} already exists. Aborting.")
        exists = True
    elif workspace.remote_branch_exists(branch_name):
        logger.info(f"Remote branch {branch_name} already exists on {config.remote_name}. Aborting.")
        exists = True
    else:
        exists = False

    if exists:
        report = branch_exists_report(
            current_dir.name, str(current_tag), next_dir, str(next_tag), branch_name
        )
        write_outputs(report, config.github_output)
        return report

    # Step 4: New branch with symlinked patch set
    workspace.create_branch(branch_name)
    patch_set = workspace.create_symlinked_set(current_dir, next_dir)

    # Step 5: Probe patches against the new release
    with ScratchTree.clone(config.upstream_url, next_tag, config) as tree:
        applier = PatchApplier(tree, next_tag)
        results = applier.apply_all(patch_set)
        regenerated = regenerate(tree, results)

    # Step 6: Replace symlinks of fuzzy patches
    workspace.install_regenerated(next_dir, regenerated)

    report = build_report(
        current_dir.name,
        str(current_tag),
        next_dir,
        str(next_tag),
        branch_name,
        results,
        regenerated,
    )
    write_outputs(report, config.github_output)

    logger.info(
        f"Finished update. Branch {branch_name}, directory {next_dir}, "
        f"has_errors={str(report.has_errors).lower()} "
        f"in {time.monotonic() - started:.0f}s"
    )
    return report
