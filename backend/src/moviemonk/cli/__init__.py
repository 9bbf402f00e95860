"""CLI entry points for MovieMonk.

Provides command-line tools for:
- Asking for a brief
- Resolving a query to candidate entities
- Cache maintenance
- Provider configuration and health
"""

import click

from .. import __version__
from .ask import ask, resolve
from .cache import cli as cache_cli
from .providers import providers


@click.group()
@click.version_option(version=__version__, prog_name="moviemonk")
def main():
    """MovieMonk - movie, show and person briefs.

    Command-line tools for querying the multi-provider brief
    pipeline and maintaining its cache.
    """
    pass


main.add_command(ask, name="ask")
main.add_command(resolve, name="resolve")
main.add_command(cache_cli, name="cache")
main.add_command(providers, name="providers")


if __name__ == "__main__":
    main()
