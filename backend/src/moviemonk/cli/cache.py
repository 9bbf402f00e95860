"""CLI commands for response cache maintenance.

Usage:
    moviemonk cache clear
    moviemonk cache evict
    moviemonk cache stats
"""

import asyncio

import click


def _run(action: str):
    from ..cache import close_cache, get_cache

    async def _go():
        cache = await get_cache()
        try:
            if action == "clear":
                return await cache.clear()
            if action == "evict":
                return await cache.evict_expired()
            return await cache.stats()
        finally:
            await close_cache()

    return asyncio.run(_go())


@click.group(name="cache")
def cli():
    """Response cache commands."""
    pass


@cli.command(name="clear")
def clear_cache():
    """Delete every cached brief."""
    count = _run("clear")
    click.echo(f"Cleared {count} cache entries.")


@cli.command(name="evict")
def evict_cache():
    """Delete cached briefs older than the TTL."""
    count = _run("evict")
    click.echo(f"Evicted {count} expired cache entries.")


@cli.command(name="stats")
def cache_stats():
    """Show cache entry count and TTL."""
    stats = _run("stats")
    for key, value in stats.items():
        click.echo(f"{key}: {value}")
