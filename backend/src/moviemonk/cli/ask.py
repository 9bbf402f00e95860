"""CLI commands for briefs and entity resolution.

Usage:
    moviemonk ask QUERY [--complex] [--provider P] [--budget-ms N] [--json]
    moviemonk resolve QUERY [--json]
"""

import asyncio
import json
import sys

import click

from ..models import (
    AmbiguousResult,
    BriefResult,
    FailureReport,
    ProviderId,
    QueryComplexity,
)

CONFIDENCE_COLORS = ((0.8, "green"), (0.5, "yellow"), (0.0, "red"))


def _confidence_color(confidence: float) -> str:
    for threshold, color in CONFIDENCE_COLORS:
        if confidence >= threshold:
            return color
    return "red"


def _print_candidates(candidates) -> None:
    for index, candidate in enumerate(candidates, start=1):
        year = f" ({candidate.year})" if candidate.year else ""
        click.echo(f"  {index}. {candidate.title}{year} [{candidate.type.value}] ", nl=False)
        click.secho(f"{candidate.confidence:.2f}", fg=_confidence_color(candidate.confidence))


def _print_brief(outcome: BriefResult) -> None:
    brief = outcome.result
    click.secho(f"\n{brief.title} ({brief.year})", bold=True)
    click.echo("=" * 70)
    if brief.genres:
        click.echo(f"Genres: {', '.join(brief.genres)}")
    if brief.crew.director:
        click.echo(f"Director: {brief.crew.director}")
    if brief.cast:
        click.echo("Cast: " + ", ".join(member.name for member in brief.cast[:6]))
    for rating in brief.ratings:
        click.echo(f"{rating.source}: {rating.score}")
    click.echo(f"\n{brief.summary_short}")
    if brief.summary_medium:
        click.echo(f"\n{brief.summary_medium}")
    for source in outcome.sources:
        click.echo(f"  - {source.title or source.uri}")

    cached = " (cached)" if outcome.from_cache else ""
    click.echo("\n" + "=" * 70)
    click.echo(f"Answered by {outcome.provider.value}{cached}")


@click.command(name="ask")
@click.argument("query")
@click.option("--complex", "use_complex", is_flag=True, help="Use each provider's larger model")
@click.option(
    "--provider",
    type=click.Choice([p.value for p in ProviderId]),
    default=None,
    help="Provider to try first",
)
@click.option("--budget-ms", type=int, default=None, help="Total time budget in milliseconds")
@click.option("--json", "as_json", is_flag=True, help="Print the raw outcome as JSON")
def ask(
    query: str,
    use_complex: bool,
    provider: str | None,
    budget_ms: int | None,
    as_json: bool,
):
    """Generate a brief for a movie, show or person.

    Examples:

        # Quick brief
        moviemonk ask "Interstellar 2014"

        # Start with Perplexity and allow 15 seconds
        moviemonk ask "Dune Part Two" --provider perplexity --budget-ms 15000
    """
    from ..cache import close_cache, get_cache
    from ..pipeline import build_pipeline

    async def _ask():
        cache = await get_cache()
        pipeline = build_pipeline(cache=cache)
        try:
            return await pipeline.resolve(
                query,
                complexity=QueryComplexity.COMPLEX if use_complex else QueryComplexity.SIMPLE,
                preferred_provider=ProviderId(provider) if provider else None,
                total_budget_ms=budget_ms,
            )
        finally:
            await pipeline.close()
            await close_cache()

    outcome = asyncio.run(_ask())

    if as_json:
        click.echo(json.dumps(outcome.model_dump(mode="json"), indent=2))
    elif isinstance(outcome, BriefResult):
        _print_brief(outcome)
    elif isinstance(outcome, AmbiguousResult):
        click.echo(f"\n\"{outcome.query}\" matches several titles:")
        _print_candidates(outcome.candidates)
        click.echo("\nRe-run with a more specific query, e.g. including the year.")

    if isinstance(outcome, FailureReport):
        if not as_json:
            click.secho(f"Error: {outcome.message}", fg="red", err=True)
            if outcome.attempted:
                tried = ", ".join(p.value for p in outcome.attempted)
                click.echo(f"Providers tried: {tried}", err=True)
        sys.exit(1)


@click.command(name="resolve")
@click.argument("query")
@click.option("--json", "as_json", is_flag=True, help="Print the raw outcome as JSON")
def resolve(query: str, as_json: bool):
    """Resolve a query to candidate entities without generating a brief.

    Examples:

        moviemonk resolve "Dune"
    """
    from ..config import get_settings
    from ..resolution import EntityResolver, TMDBSearch

    async def _resolve():
        search = TMDBSearch(get_settings())
        try:
            return await EntityResolver(search).resolve(query)
        finally:
            await search.close()

    outcome = asyncio.run(_resolve())

    if as_json:
        click.echo(json.dumps(outcome.model_dump(mode="json"), indent=2))
        return

    if outcome.kind == "none":
        message = outcome.error or f'No results found for "{query}".'
        click.secho(message, fg="red", err=True)
        sys.exit(1)

    if outcome.kind == "single":
        click.echo("Single match:")
        _print_candidates([outcome.candidate])
    else:
        click.echo(f"Ambiguous ({len(outcome.candidates)} candidates):")
        _print_candidates(outcome.candidates)
