"""CLI entrypoint for storeforge."""

import json
import logging
import sys

import click

from storeforge import __version__
from storeforge.config import Settings, load_dotenv_file
from storeforge.gate.confirmation import ConfirmationGate
from storeforge.store.duckdb_store import DuckDBStore
from storeforge.tools.contracts import SideEffect, ToolContext, ToolResult
from storeforge.tools.dispatcher import ToolDispatcher


def _settings(db_path: str | None) -> Settings:
    settings = Settings.from_env()
    if db_path:
        settings.db_path = db_path
    return settings


def _echo_result(result: ToolResult) -> None:
    payload = result.to_wire()
    if result.success:
        click.echo(f"✅ {result.message or 'Done'}")
    else:
        click.echo(f"❌ {result.error}", err=True)
        if result.suggestion:
            click.echo(f"   {result.suggestion}", err=True)
    if result.data is not None:
        click.echo(json.dumps(payload.get("data"), indent=2, default=str, ensure_ascii=False))


db_path_option = click.option(
    "--db-path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Path to DuckDB database file (default: $SF_DB_PATH or ./data/storeforge.duckdb)",
)


@click.group()
@click.version_option(__version__)
def main():
    """storeforge - Tool-calling store assistant core."""
    load_dotenv_file()
    logging.basicConfig(
        level=Settings.from_env().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command("init-db")
@db_path_option
def init_db(db_path: str | None):
    """Create the data-store tables."""
    settings = _settings(db_path)
    with DuckDBStore(settings.db_path):
        pass
    click.echo(f"✅ Database ready at {settings.db_path}")


@main.command("seed-demo")
@db_path_option
@click.option("--name", default="Demo Crafts", help="Store name")
@click.option("--orders", default=60, type=click.IntRange(1, 5000), help="Number of orders to generate")
def seed_demo(db_path: str | None, name: str, orders: int):
    """Create a demo store with products, orders and marketing data."""
    from storeforge.demo import seed_demo_store

    settings = _settings(db_path)
    with DuckDBStore(settings.db_path) as store:
        store_id = seed_demo_store(store, name=name, orders=orders)
    click.echo(f"✅ Seeded store '{name}'")
    click.echo(f"Store ID: {store_id}")


@main.command()
@click.option(
    "--side-effect",
    type=click.Choice([s.value for s in SideEffect]),
    default=None,
    help="Only list tools with this side-effect class",
)
@click.option("--json", "as_json", is_flag=True, help="Print the full catalogue as JSON")
def tools(side_effect: str | None, as_json: bool):
    """List the tool catalogue."""
    from storeforge.tools.registry import build_default_registry

    registry = build_default_registry()
    entries = [
        t for t in registry.catalogue()
        if side_effect is None or t["sideEffect"] == side_effect
    ]
    if as_json:
        click.echo(json.dumps(entries, indent=2))
        return
    for entry in entries:
        click.echo(f"{entry['name']:<26} {entry['sideEffect']:<12} {entry['description']}")
    click.echo(f"\n{len(entries)} tools")


@main.command()
@click.argument("tool_name")
@click.option("--store", "store_id", required=True, help="Store ID the call is scoped to")
@click.option("--args", "args_json", default="{}", help="Tool arguments as a JSON object")
@click.option("--yes", is_flag=True, help="Confirm destructive calls without prompting")
@db_path_option
def dispatch(tool_name: str, store_id: str, args_json: str, yes: bool, db_path: str | None):
    """Run one tool call. Destructive calls ask for confirmation first."""
    try:
        args = json.loads(args_json)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--args")
    if not isinstance(args, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--args")

    settings = _settings(db_path)
    with DuckDBStore(settings.db_path) as store:
        dispatcher = ToolDispatcher(store, settings=settings)
        gate = ConfirmationGate(dispatcher, ToolContext(store_id=store_id, conversation_id="cli"))
        result = gate.submit(tool_name, args)

        pending = gate.pending
        if result.requires_confirmation and pending is not None:
            click.echo(f"⚠️  {pending.title}")
            click.echo(f"   {pending.description}")
            gate.mark_surfaced(pending.id)
            if yes or click.confirm("Proceed?", default=False):
                result = gate.confirm(pending.id)
            else:
                result = gate.cancel(pending.id)

    _echo_result(result)
    if not result.success:
        sys.exit(1)


@main.command()
@click.option("--store", "store_id", required=True, help="Store ID")
@db_path_option
def insights(store_id: str, db_path: str | None):
    """Show the prioritized action items for a store."""
    settings = _settings(db_path)
    with DuckDBStore(settings.db_path) as store:
        result = ToolDispatcher(store, settings=settings).dispatch(
            "getActionableInsights", {}, ToolContext(store_id=store_id)
        )
    if not result.success:
        _echo_result(result)
        sys.exit(1)

    items = result.data["insights"]
    if not items:
        click.echo("✅ Nothing needs attention right now.")
        return
    click.echo(f"\n{len(items)} action items\n")
    click.echo("=" * 70)
    for item in items:
        click.echo(f"\n[{item['priority'].upper()}] {item['title']}")
        click.echo(f"  {item['detail']}")
        if item.get("suggestedAction"):
            click.echo(f"  → {item['suggestedAction']}")
    if result.data.get("degraded"):
        click.echo(f"\n⚠️  Some reads failed: {', '.join(result.data['degraded'])}", err=True)


@main.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=8000, type=int, help="Bind port")
@db_path_option
def serve(host: str, port: int, db_path: str | None):
    """Run the HTTP API."""
    import uvicorn

    from storeforge.api.server import create_app

    settings = _settings(db_path)
    uvicorn.run(create_app(settings=settings), host=host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
