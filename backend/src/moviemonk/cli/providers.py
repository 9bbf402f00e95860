"""CLI command listing provider configuration."""

import click


@click.command(name="providers")
def providers():
    """List providers in fallback order with their models and key status."""
    from ..config import get_settings
    from ..providers import build_adapters

    settings = get_settings()
    adapters = build_adapters(settings)

    click.echo(f"\nProviders (fallback order, budget {settings.total_budget_ms} ms)")
    click.echo("=" * 70)
    for index, (provider, adapter) in enumerate(adapters.items(), start=1):
        click.echo(f"{index}. {provider.value:<12}", nl=False)
        if adapter.is_configured:
            click.secho("configured", fg="green", nl=False)
        else:
            click.secho("no API key", fg="red", nl=False)
        click.echo(f"  simple={adapter.simple_model}  complex={adapter.complex_model}")
