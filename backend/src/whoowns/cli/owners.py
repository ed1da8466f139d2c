"""CLI commands for looking up code owners.

Usage:
    whoowns match OWNER REPO PATH [--timeout S] [--concurrency N] [--json]
    whoowns rules OWNER REPO
    whoowns local MANIFEST_FILE PATH
"""

import asyncio
import json
import sys
from pathlib import Path

import click

from ..config import get_settings
from ..directory.github import GitHubDirectory
from ..errors import NoMatchingRuleError, OwnershipError
from ..manifest import Manifest, load_rules, parse_manifest
from ..models import ResolutionOutcome
from ..resolution.matcher import select_rule
from ..resolution.resolver import OwnerResolver


def build_directory(token: str | None = None) -> GitHubDirectory:
    """Create the directory client used by the commands."""
    return GitHubDirectory(token=token)


def _error_payload(error: Exception) -> dict[str, str]:
    return {
        "type": type(error).__name__,
        "code": getattr(error, "error_code", "REMOTE_ERROR"),
        "message": str(error),
    }


def _echo_outcome(outcome: ResolutionOutcome, path: str) -> None:
    if outcome.rule is not None:
        click.echo(f"\nOwners of {path}")
        click.echo(f"  Rule: {outcome.rule}")
        if outcome.rule.line:
            click.echo(f"  Line: {outcome.rule.line}")
    click.echo("=" * 70)

    for identity in outcome.sorted_identities():
        click.echo(f"  {identity.display}", nl=False)
        if identity.name and identity.login:
            click.echo(f"  ({identity.name})")
        else:
            click.echo("")

    if outcome.errors:
        click.echo("\nErrors:")
        for error in outcome.errors:
            click.secho(f"  {type(error).__name__}: {error}", fg="red")

    if outcome.timed_out:
        click.secho("\nTimed out before every lookup finished", fg="yellow")
    elif outcome.cancelled:
        click.secho("\nCancelled before every lookup finished", fg="yellow")

    click.echo("=" * 70)
    click.echo(f"{len(outcome.identities)} identities, {len(outcome.errors)} errors")


@click.command(name="match")
@click.argument("owner")
@click.argument("repo")
@click.argument("path")
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Seconds to wait for lookups (default from settings)",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum directory lookups in flight",
)
@click.option(
    "--token",
    envvar="GITHUB_TOKEN",
    default=None,
    help="GitHub API token",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print the result as JSON",
)
def match_cmd(
    owner: str,
    repo: str,
    path: str,
    timeout: float | None,
    concurrency: int | None,
    token: str | None,
    as_json: bool,
):
    """Resolve the owners of PATH in OWNER/REPO.

    Reads the repository's CODEOWNERS file, picks the last rule matching
    PATH and expands its teams, handles and emails into people.

    Examples:

        whoowns match octo widgets src/app/main.py

        whoowns match octo widgets docs/index.md --json --timeout 5
    """
    settings = get_settings()
    if timeout is None:
        timeout = settings.resolve_timeout_seconds

    async def _match() -> ResolutionOutcome:
        async with build_directory(token) as directory:
            manifest = await load_rules(directory, owner, repo)
            resolver = OwnerResolver(directory, max_concurrency=concurrency)
            return await resolver.match(manifest.rules, path, timeout=timeout)

    try:
        outcome = asyncio.run(_match())
    except OwnershipError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        payload = {
            "path": path,
            "rule": str(outcome.rule) if outcome.rule else None,
            "identities": [i.model_dump() for i in outcome.sorted_identities()],
            "errors": [_error_payload(e) for e in outcome.errors],
            "timed_out": outcome.timed_out,
            "cancelled": outcome.cancelled,
        }
        click.echo(json.dumps(payload, indent=2))
    else:
        _echo_outcome(outcome, path)

    if not outcome.identities and (outcome.errors or outcome.timed_out or outcome.cancelled):
        sys.exit(1)


@click.command(name="rules")
@click.argument("owner")
@click.argument("repo")
@click.option(
    "--token",
    envvar="GITHUB_TOKEN",
    default=None,
    help="GitHub API token",
)
def rules_cmd(owner: str, repo: str, token: str | None):
    """Print the CODEOWNERS rules of OWNER/REPO in file order."""

    async def _load() -> Manifest:
        async with build_directory(token) as directory:
            return await load_rules(directory, owner, repo)

    try:
        manifest = asyncio.run(_load())
    except OwnershipError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"\n{manifest.full_name}:{manifest.source_path} ({len(manifest.rules)} rules)")
    click.echo("=" * 70)
    for rule in manifest.rules:
        click.echo(f"{rule.line:>5}  {rule}")


@click.command(name="local")
@click.argument(
    "manifest_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument("path")
def local_cmd(manifest_file: Path, path: str):
    """Show which rule of a local MANIFEST_FILE owns PATH.

    No network access; owners are printed as written.
    """
    rules = parse_manifest(manifest_file.read_text(encoding="utf-8"))
    try:
        rule = select_rule(rules, path)
    except NoMatchingRuleError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Rule: {rule}")
    if rule.line:
        click.echo(f"Line: {rule.line}")
    for owner in rule.owners:
        click.echo(f"  {owner}")
