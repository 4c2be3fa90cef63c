"""
Command-line interface for the patchrebase solution.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.panel import Panel

from patchrebase import __version__
from patchrebase.common import RebaseError, console, err_console, setup_logging
from patchrebase.config import RebaseConfig
from patchrebase.models import MigrationReport, UpdateMode, VersionTag


def print_banner():
    """Print application banner."""
    err_console.print(Panel.fit(
        f"[bold blue]Patch Rebase[/bold blue] v{__version__}\n"
        "[dim]Carry a kernel patch set forward to the next upstream release[/dim]",
        border_style="blue",
    ))


def fail(ctx, error: Exception):
    """Report a fatal error and exit non-zero."""
    err_console.print(f"[red]Error: {error}[/red]")
    if ctx.obj.get("verbose"):
        err_console.print_exception()
    sys.exit(1)


def load_config(repo_dir: Optional[str], upstream_url: Optional[str]) -> RebaseConfig:
    config = RebaseConfig.from_env()
    if repo_dir:
        config.repo_dir = Path(repo_dir)
    if upstream_url:
        config.upstream_url = upstream_url
    return config


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.pass_context
def main(ctx, verbose: bool, quiet: bool):
    """
    Kernel patch set rebase tool.

    Tracks upstream release tags and re-applies the newest local patch set
    to the next release.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    if verbose:
        setup_logging(level=logging.DEBUG)

    if not quiet:
        print_banner()


@main.command()
@click.option("--repo-dir", type=click.Path(exists=True, file_okay=False),
              help="Repository holding the vX.Y patch directories (default: cwd)")
@click.option("--upstream-url", help="Upstream repository to track")
@click.option("--github-output", type=click.Path(dir_okay=False),
              help="File receiving key=value outputs (default: $GITHUB_OUTPUT)")
@click.option("--skip-network-check", is_flag=True, help="Skip connectivity probe")
@click.pass_context
def update(
    ctx,
    repo_dir: Optional[str],
    upstream_url: Optional[str],
    github_output: Optional[str],
    skip_network_check: bool,
):
    """
    Create the patch set for the next upstream release.

    Exits 0 even when some patches fail; check the has_errors output.

    Examples:

        # Run from the patch repository root
        patchrebase update

        # Write outputs to a specific file
        patchrebase update --github-output /tmp/outputs
    """
    from patchrebase.report import print_summary
    from patchrebase.update import run_update

    config = load_config(repo_dir, upstream_url)
    if github_output:
        config.github_output = Path(github_output)

    try:
        report = run_update(config, skip_network_check=skip_network_check)
    except RebaseError as e:
        fail(ctx, e)

    if report.mode is UpdateMode.UPDATED:
        print_summary(report)
        if report.has_errors:
            console.print(f"[yellow]Failed patches: {', '.join(report.failed_patches)}[/yellow]")
        else:
            console.print("[green]All patches carried forward[/green]")
    elif report.mode is UpdateMode.BRANCH_EXISTS:
        console.print(f"[yellow]Branch {report.branch_name} already exists[/yellow]")
    else:
        console.print(f"[green]No release after {report.current_tag}[/green]")


@main.command(name="next-tag")
@click.option("--current", "-c", help="Current tag (default: newest vX.Y directory)")
@click.option("--repo-dir", type=click.Path(exists=True, file_okay=False),
              help="Repository holding the vX.Y patch directories (default: cwd)")
@click.option("--upstream-url", help="Upstream repository to track")
@click.pass_context
def next_tag(ctx, current: Optional[str], repo_dir: Optional[str], upstream_url: Optional[str]):
    """
    Print the release tag following the current one, or 'none'.
    """
    from patchrebase.versions import resolve_next_tag
    from patchrebase.workspace import PatchWorkspace

    config = load_config(repo_dir, upstream_url)

    try:
        if current:
            current_tag = VersionTag.parse(current)
        else:
            current_tag = PatchWorkspace(config.repo_dir, config).current_tag()
        found = resolve_next_tag(current_tag, config.upstream_url, timeout=config.network_timeout)
    except (RebaseError, ValueError) as e:
        fail(ctx, e)

    click.echo(str(found) if found else "none")


@main.command()
@click.option("--tree", "-t", required=True, type=click.Path(exists=True, file_okay=False),
              help="Git working tree to apply patches to (commits are added, untracked files removed)")
@click.option("--patches", "-p", required=True, type=click.Path(exists=True, file_okay=False),
              help="Directory of patch files")
@click.option("--tag", required=True, help="Release the tree is checked out at (e.g. v6.14)")
@click.option("--output", "-o", type=click.Path(file_okay=False),
              help="Directory for regenerated fuzzy patches")
@click.pass_context
def probe(ctx, tree: str, patches: str, tag: str, output: Optional[str]):
    """
    Apply a patch directory to an existing tree and report each outcome.

    No branches or patch directories are created in the patch repository.
    """
    from patchrebase.engine import PatchApplier
    from patchrebase.models import PatchSet
    from patchrebase.regenerator import regenerate, write_regenerated
    from patchrebase.report import print_summary
    from patchrebase.scratch import ScratchTree

    config = RebaseConfig.from_env()
    patch_dir = Path(patches)

    try:
        target_tag = VersionTag.parse(tag)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--tag")

    # Patch directories are normally named after the release they target
    try:
        source_tag = VersionTag.parse(patch_dir.name)
    except ValueError:
        source_tag = target_tag

    patch_set = PatchSet.load(patch_dir, source_tag, pattern=config.patch_glob)
    if not patch_set.patches:
        raise click.UsageError(f"No {config.patch_glob} files found in {patch_dir}")

    try:
        with ScratchTree.open(Path(tree), config) as scratch:
            results = PatchApplier(scratch, target_tag).apply_all(patch_set)
            regenerated = regenerate(scratch, results)
    except RebaseError as e:
        fail(ctx, e)

    if output:
        for path in write_regenerated(regenerated, Path(output)):
            console.print(f"  Regenerated: {path}")

    print_summary(MigrationReport(
        mode=UpdateMode.UPDATED,
        current_dir=patch_dir.name,
        current_tag=str(source_tag),
        next_dir=str(target_tag),
        next_tag=str(target_tag),
        results=results,
        regenerated=[p.name for p in regenerated],
    ))


@main.command()
@click.option("--repo-dir", type=click.Path(exists=True, file_okay=False),
              help="Repository holding the vX.Y patch directories (default: cwd)")
@click.pass_context
def status(ctx, repo_dir: Optional[str]):
    """
    Show the current patch set.
    """
    from patchrebase.workspace import PatchWorkspace, find_version_dirs

    config = load_config(repo_dir, None)

    try:
        workspace = PatchWorkspace(config.repo_dir, config)
        current = workspace.current_dir()
        patch_set = workspace.load_patch_set(current)
        versions = find_version_dirs(config.repo_dir)
    except RebaseError as e:
        fail(ctx, e)

    console.print(f"\n[bold]Patch set status[/bold]\n")
    console.print(f"  Current directory: [cyan]{current.name}[/cyan]")
    console.print(f"  Current tag:       [cyan]{patch_set.tag}[/cyan]")
    console.print(f"  Patches:           {len(patch_set)}")
    console.print(f"  Known versions:    {', '.join(v.name for v in versions)}")


if __name__ == "__main__":
    main()
