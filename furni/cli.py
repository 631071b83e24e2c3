"""Browse the storefront catalog and social graph from a terminal.

Usage:
    furni collections
    furni collection living-room
    furni favorites us-east-1:1234
    furni friends us-east-1:1234 --contacts contacts.json
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.table import Table

from furni.context import AppContext
from furni.monitoring import configure_logging
from furni.schemas.catalog import Collection, Product
from furni.schemas.user import ContactCard, User
from furni.services.contacts import InMemoryContactBook
from furni.services.session_service import UserSessionClient
from furni.settings import AppSettings, get_settings

console = Console()

_CONTACT_CARDS = TypeAdapter(list[ContactCard])


def _load_contacts(path: Path | None) -> InMemoryContactBook | None:
    if path is None:
        return None
    try:
        cards = _CONTACT_CARDS.validate_python(json.loads(path.read_text()))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise click.BadParameter(f"Invalid contacts file {path}: {exc}") from exc
    return InMemoryContactBook(cards)


def _build_context(settings: AppSettings, contacts: InMemoryContactBook | None) -> AppContext:
    return AppContext(settings, contacts=contacts)


def _money(amount: object) -> str:
    return f"{amount:.2f}" if amount is not None else "-"


def _products_table(title: str, products: list[Product] | tuple[Product, ...]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Price", justify="right")
    table.add_column("Retail", justify="right")
    table.add_column("Off", justify="right", style="green")
    table.add_column("Collection", style="dim")

    for product in products:
        table.add_row(
            str(product.id),
            product.name,
            _money(product.price),
            _money(product.retail_price),
            f"{product.percent_off}%" if product.percent_off is not None else "",
            product.collection_permalink,
        )
    return table


async def _latest_collections(context: AppContext) -> list[Collection] | None:
    latest = None
    async for collections in context.catalog.list_collections():
        latest = collections
    return latest


async def _latest_collection(context: AppContext, permalink: str) -> Collection | None:
    latest = None
    async for collection in context.catalog.get_collection(permalink):
        latest = collection
    return latest


@click.group()
@click.option(
    "--base-url",
    default=None,
    help="Override FURNI_API_BASE_URL for this invocation.",
)
@click.option(
    "--contacts",
    "contacts_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON list of contact cards used to enrich users.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level.")
@click.pass_context
def main(
    ctx: click.Context,
    base_url: str | None,
    contacts_path: Path | None,
    verbose: bool,
) -> None:
    """Furni storefront client."""

    settings = get_settings()
    if base_url:
        settings = settings.model_copy(update={"api_base_url": base_url})
    configure_logging("DEBUG" if verbose else settings.log_level_numeric)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["contacts"] = _load_contacts(contacts_path)


@main.command("collections")
@click.pass_context
def list_collections(ctx: click.Context) -> None:
    """List the catalog collections."""

    async def run() -> list[Collection] | None:
        async with _build_context(ctx.obj["settings"], ctx.obj["contacts"]) as context:
            return await _latest_collections(context)

    collections = asyncio.run(run())
    if collections is None:
        console.print("[red]Could not fetch collections[/red]")
        sys.exit(1)

    table = Table(title="Collections")
    table.add_column("Permalink", style="cyan")
    table.add_column("Title")
    table.add_column("Description", style="dim")
    for collection in collections:
        table.add_row(collection.permalink, collection.title, collection.description or "")
    console.print(table)


@main.command("collection")
@click.argument("permalink")
@click.pass_context
def show_collection(ctx: click.Context, permalink: str) -> None:
    """Show the products of the collection PERMALINK."""

    async def run() -> Collection | None:
        async with _build_context(ctx.obj["settings"], ctx.obj["contacts"]) as context:
            return await _latest_collection(context, permalink)

    collection = asyncio.run(run())
    if collection is None:
        console.print(f"[red]Could not fetch collection {permalink}[/red]")
        sys.exit(1)

    console.print(_products_table(collection.title or collection.permalink, collection.products))


@main.command("favorites")
@click.argument("cognito_id")
@click.pass_context
def show_favorites(ctx: click.Context, cognito_id: str) -> None:
    """Show the favorite products of COGNITO_ID, newest first."""

    async def run() -> list[Product]:
        async with _build_context(ctx.obj["settings"], ctx.obj["contacts"]) as context:
            session = UserSessionClient(cognito_id, context.gateway)
            return await session.list_favorites()

    products = asyncio.run(run())
    if not products:
        console.print(f"[yellow]No favorites for {cognito_id}[/yellow]")
        return
    console.print(_products_table(f"Favorites of {cognito_id}", products))


@main.command("friends")
@click.argument("cognito_id")
@click.pass_context
def show_friends(ctx: click.Context, cognito_id: str) -> None:
    """Show the friends of COGNITO_ID and what they favorited."""

    async def run() -> list[User] | None:
        contacts = ctx.obj["contacts"]
        async with _build_context(ctx.obj["settings"], contacts) as context:
            session = UserSessionClient(cognito_id, context.gateway, contacts=contacts)
            return await session.list_friends()

    friends = asyncio.run(run())
    if friends is None:
        console.print(f"[red]Could not fetch friends of {cognito_id}[/red]")
        sys.exit(1)

    table = Table(title=f"Friends of {cognito_id}")
    table.add_column("Identity", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Phone")
    table.add_column("Favorites")
    for friend in friends:
        table.add_row(
            friend.cognito_id or "",
            friend.full_name or "",
            friend.digits_phone_number or "",
            ", ".join(product.name or str(product.id) for product in friend.favorites),
        )
    console.print(table)


if __name__ == "__main__":
    main()
