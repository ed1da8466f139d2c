"""CLI entry points for whoowns.

Provides command-line tools for:
- Resolving the owners of a path
- Listing CODEOWNERS rules
- Checking rules in a local manifest
"""

import click

from .. import __version__
from ..logging import setup_logging
from .owners import local_cmd, match_cmd, rules_cmd


@click.group()
@click.version_option(version=__version__, prog_name="whoowns")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """whoowns - resolve CODEOWNERS entries into people."""
    setup_logging("DEBUG" if verbose else None)


main.add_command(match_cmd, name="match")
main.add_command(rules_cmd, name="rules")
main.add_command(local_cmd, name="local")


if __name__ == "__main__":
    main()
