#!/usr/bin/env python
"""Command-line interface for Brandscape."""

import asyncio
import click
import json
import sys

from brandscape.config.settings import settings
from brandscape.errors import BrandscapeError, GenerationFailed
from brandscape.models.brand import BusinessBrief


def _pipeline():
    from brandscape.workflows.brand_pipeline import BrandPipeline
    return BrandPipeline()


def _echo_candidates(candidates):
    for i, candidate in enumerate(candidates, 1):
        marker = " (recovered)" if candidate.salvaged else ""
        click.echo(f"\n{i}. {candidate.title}{marker}")
        if candidate.description:
            click.echo(f"   {candidate.description}")
        if candidate.domains:
            domains = ", ".join(f"{d}: {s.value}" for d, s in candidate.domains.items())
            click.echo(f"   Domains: {domains}")
        if candidate.trademark_notes:
            for line in candidate.trademark_notes.splitlines():
                click.echo(f"   {line}")


def _echo_palettes(palettes):
    if palettes and palettes[0].fallback:
        click.echo("Color generation failed; showing default palettes.")
    for i, palette in enumerate(palettes, 1):
        click.echo(f"{i}. {palette.as_line()}")


def _choose(prompt: str, count: int, allow_refresh: bool = True):
    """Return a 0-based index, or None when the user asks for a refresh."""
    hint = f"1-{count}" + (" or r to refresh" if allow_refresh else "")
    while True:
        answer = click.prompt(f"{prompt} ({hint})").strip().lower()
        if allow_refresh and answer == "r":
            return None
        if answer.isdigit() and 1 <= int(answer) <= count:
            return int(answer) - 1
        click.echo("Please choose one of the listed options.")


async def _wizard(pipeline, brief: BusinessBrief):
    click.echo("\nGenerating name suggestions...")
    candidates = await pipeline.start_naming(brief)
    while True:
        _echo_candidates(candidates)
        choice = _choose("\nPick a name", len(candidates))
        if choice is not None:
            break
        click.echo("\nGenerating fresh suggestions...")
        candidates = await pipeline.refresh_names()
    name = pipeline.select_name(choice)
    click.echo(f"\n✓ Selected: {name.title}")

    click.echo("\nRecommending colors...")
    palettes = await pipeline.start_colors()
    while True:
        _echo_palettes(palettes)
        choice = _choose("\nPick a palette", len(palettes))
        if choice is not None:
            break
        palettes = await pipeline.refresh_colors()
    palette = pipeline.select_color(choice)
    click.echo(f"\n✓ Selected: {palette.name_pair or palette.hex1 + ' & ' + palette.hex2}")

    prompt = await pipeline.build_logo_prompt()
    if not prompt.includes_hex_codes:
        click.echo("Note: the logo prompt does not mention both hex codes.")
    final_prompt = click.prompt("\nLogo prompt (edit or press Enter to keep)", default=prompt.text)

    while True:
        try:
            logo = await pipeline.generate_logo_image(final_prompt)
        except GenerationFailed as e:
            click.echo(f"Error: {e}", err=True)
            if not click.confirm("Retry with the same prompt?", default=True):
                return
            final_prompt = e.prompt or final_prompt
            continue
        click.echo(f"\n✓ Logo saved: {logo.locator}")
        if not click.confirm("Generate another logo?", default=False):
            break

    click.echo("\nChecking the logo against existing marks...")
    screening = await pipeline.wait_for_logo_screening()
    if screening is not None:
        click.echo(screening.notes)


@click.group()
def cli():
    """Brandscape - names, colors and a logo for your business."""
    pass


@cli.command()
def run():
    """Interactive wizard: brief, names, colors, logo."""
    description = click.prompt("Describe your business in a few words")
    visuals = click.prompt("Visual elements that represent it (comma-separated, optional)", default="", show_default=False)
    values = click.prompt("Brand values (optional)", default="", show_default=False)

    try:
        brief = BusinessBrief.from_answers(description, visuals, values)
        asyncio.run(_wizard(_pipeline(), brief))
    except (BrandscapeError, ValueError) as e:
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("description", required=True)
@click.option("--visuals", default="", help="Comma-separated visual elements")
@click.option("--values", "brand_values", default="", help="Brand values")
@click.option("--output", "-o", type=click.Path(), help="Save candidates to a JSON file")
def names(description, visuals, brand_values, output):
    """Generate screened name suggestions for DESCRIPTION."""
    try:
        brief = BusinessBrief.from_answers(description, visuals, brand_values)
        candidates = asyncio.run(_pipeline().start_naming(brief))
    except (BrandscapeError, ValueError) as e:
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)

    _echo_candidates(candidates)
    if output:
        with open(output, 'w') as f:
            json.dump([c.model_dump(mode="json") for c in candidates], f, indent=2)
        click.echo(f"\nFull results saved to: {output}")


@cli.command()
@click.argument("name", required=True)
def domains(name):
    """Check domain availability for NAME."""
    statuses = asyncio.run(_pipeline().check_domain_for(name))
    if not statuses:
        click.echo("Name has no usable characters for a domain.")
    for domain, status in statuses.items():
        click.echo(f"  {domain}: {status.value}")


@cli.command()
@click.argument("name", required=True)
@click.option("--context", default=None, help="Business description used for similarity checks")
def trademark(name, context):
    """Screen NAME against trademark registries and web search."""
    report = asyncio.run(_pipeline().check_trademark_for(name, context))
    click.echo(report.notes)
    for warning in report.warnings:
        click.echo(f"  warning: {warning}", err=True)


@cli.command("screen-logo")
@click.argument("locator", required=True)
def screen_logo(locator):
    """Reverse-image screen a logo by URL or artifact path."""
    screening = asyncio.run(_pipeline().screen_logo(locator))
    click.echo(screening.notes)


@cli.command()
@click.option("--host", default="0.0.0.0")
@click.option("--port", default=8000, type=int)
def serve(host, port):
    """Run the HTTP API."""
    import uvicorn
    from brandscape.server import get_server_config, init_app
    server_config = get_server_config()
    server_config.update(host=host, port=port)
    server_config.pop("workers")
    uvicorn.run(init_app(), **server_config)


@cli.command()
def config():
    """Show current configuration settings."""
    click.echo("Brandscape Configuration:")
    click.echo(f"  Model: {settings.model_name}")
    click.echo(f"  Embedding Model: {settings.embedding_model}")
    click.echo(f"  Web Search: {'configured' if settings.serpapi_key else 'not configured'}")
    click.echo(f"  WhoisXML Trademarks: {'configured' if settings.whoisxmlapi_key else 'not configured'}")
    click.echo(f"  UK IPO Scraping: {settings.uk_ipo_web_scraping}")
    click.echo(f"  Image Space: {settings.image_space}")
    click.echo(f"  Artifact Storage: {'supabase' if settings.supabase_enabled else settings.artifact_dir}")
    click.echo(f"  LangSmith Tracing: {settings.langchain_tracing_v2}")
    if settings.langchain_tracing_v2:
        click.echo(f"  LangSmith Project: {settings.langchain_project}")
    click.echo(f"  Max Retries: {settings.max_retries}")


if __name__ == "__main__":
    cli()
