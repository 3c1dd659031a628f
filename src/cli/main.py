"""CLI commands for the grain orchestrator."""

import asyncio
import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from assistant.errors import GenerationFailure
from cli.config import load_config_model
from cli.logging_config import setup_logging
from llm import LLMError, create_llm_provider
from marketplace.store import MarketplaceStore
from shared_types import Actor, Confidence, Task

console = Console()

_CONFIDENCE_STYLE = {
    Confidence.LOW: "red",
    Confidence.MEDIUM: "yellow",
    Confidence.HIGH: "green",
}


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None):
    """Grain orchestrator - marketplace ingestion and AI listing assistant."""
    try:
        config = load_config_model(config_path)
    except ValueError as e:
        raise click.ClickException(str(e))
    setup_logging(
        json_mode=config.logging.json_mode,
        level="DEBUG" if verbose else config.logging.level,
    )
    ctx.obj = config


@cli.command("init-db")
@click.pass_obj
def init_db(config):
    """Create database tables."""
    store = MarketplaceStore(config.storage.db_path)
    console.print(f"[green]Database ready:[/] {store.db_path}")


@cli.command()
@click.argument("data_file", type=click.Path(exists=True, path_type=Path))
@click.pass_obj
def seed(config, data_file: Path):
    """Load listings and transactions from a JSON file.

    The file holds {"listings": [...], "transactions": [...]}; every item needs an "id".
    """
    try:
        data = json.loads(data_file.read_text())
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {data_file}: {e}")

    store = MarketplaceStore(config.storage.db_path)
    listings = data.get("listings", [])
    transactions = data.get("transactions", [])
    for listing in listings:
        store.upsert_listing(listing)
    for tx in transactions:
        store.upsert_transaction(tx)
    console.print(f"Seeded {len(listings)} listings, {len(transactions)} transactions")


@cli.command()
@click.option("--host", default=None, help="Bind address (default from config)")
@click.option("--port", type=int, default=None, help="Port (default from config)")
@click.pass_obj
def serve(config, host: str | None, port: int | None):
    """Run the HTTP server."""
    import uvicorn

    from web.app import create_app

    if not config.server.shared_secret:
        raise click.ClickException("AGENT_ORCHESTRATOR_SECRET is not set")

    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
        log_config=None,
    )


@cli.command()
@click.option("--category", required=True)
@click.option("--commodity", required=True)
@click.option("--region", default=None)
@click.option("--quantity", type=float, default=None)
@click.option("--currency", default="PLN", show_default=True)
@click.option("--unit", default="t", show_default=True)
@click.option("--language", default="pl", show_default=True)
@click.option("--spec", "specs", multiple=True, help="key=value, repeatable")
@click.option("--notes", default="", help="Seller draft; long drafts are rewritten")
@click.option("--user-id", default=None)
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON result")
@click.pass_obj
def suggest(
    config,
    category,
    commodity,
    region,
    quantity,
    currency,
    unit,
    language,
    specs,
    notes,
    user_id,
    as_json,
):
    """Generate a listing description and price suggestion."""
    from web.app import build_pipeline

    spec_map = {}
    for item in specs:
        key, sep, value = item.partition("=")
        if not sep:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="--spec")
        spec_map[key.strip()] = value.strip()

    try:
        provider = create_llm_provider(
            provider=config.llm.provider, api_key=config.llm.api_key, model=config.llm.model
        )
    except LLMError as e:
        raise click.ClickException(str(e))

    store = MarketplaceStore(config.storage.db_path)
    pipeline = build_pipeline(config, store, provider)
    facts = {
        "category": category,
        "commodity": commodity,
        "region": region,
        "currency": currency,
        "quantity": quantity,
        "unit": unit,
        "language": language,
        "specs": spec_map,
        "notes": notes,
    }

    try:
        outcome = asyncio.run(
            pipeline.run(
                Task.LISTING_SUGGEST, facts, actor=Actor.CLI, user_id=user_id, locale=language
            )
        )
    except GenerationFailure as e:
        raise click.ClickException(f"Listing suggestion failed: {e}")

    result = outcome.result
    if as_json:
        click.echo(json.dumps({**result.to_dict(), "interactionId": outcome.interaction_id}))
        return

    style = _CONFIDENCE_STYLE[result.confidence]
    console.print(Panel(result.description or "[dim](empty)[/]", title=f"{commodity} ({outcome.mode})"))
    table = Table(show_header=False)
    price = result.price_suggestion
    table.add_row("Price", f"{price.value} {price.currency}/{price.unit}")
    table.add_row("Confidence", f"[{style}]{result.confidence}[/]")
    table.add_row("Missing", ", ".join(result.missing_fields) or "-")
    if outcome.interaction_id:
        table.add_row("Interaction", outcome.interaction_id)
    console.print(table)


@cli.command()
@click.option("--user-id", default=None)
@click.option("--limit", type=int, default=10, show_default=True)
@click.pass_obj
def interactions(config, user_id: str | None, limit: int):
    """List recent recorded interactions."""
    store = MarketplaceStore(config.storage.db_path)
    rows = store.get_interactions(user_id=user_id, limit=limit)
    if not rows:
        console.print("[dim]No interactions recorded.[/]")
        return
    table = Table("Created", "Task", "Actor", "User", "Confidence")
    for row in rows:
        table.add_row(
            row["created_at"][:19],
            row["task"],
            row["actor"],
            row["user_id"] or "-",
            row["output"].get("confidence", "-"),
        )
    console.print(table)


if __name__ == "__main__":
    cli()
