"""Command-line entry point.

Operator tool for inspecting the Russian Post catalog and pricing a shipment
with the configured settings::

    python -m rp_shipping catalog --exclude 400 700 800
    python -m rp_shipping service 27030
    python -m rp_shipping quote --weight 1200 --value 3500 --to 664000 \\
        --selection '[{"id": 27030, "add_on_ids": [2]}]'

Configures logging and wires components through the DI container.
"""

import argparse
import asyncio
import logging
from decimal import Decimal

from .config import config
from .core.container import Container, create_container
from .exceptions import RussianPostError
from .models import Address, Money, Shipment
from .services.cache_service import CacheService
from .services.selection import load_selection

logger = logging.getLogger(__name__)


async def initialize_resources(container: Container) -> None:
    """Initialize application resources."""
    cache = container.cache_store()
    if isinstance(cache, CacheService):
        if await cache.connect():
            logger.info("Redis cache connected")
        else:
            logger.info("Redis cache unavailable, running without caching")


async def cleanup_resources(container: Container) -> None:
    """Cleanup application resources."""
    try:
        cache = container.cache_store()
        if isinstance(cache, CacheService):
            await cache.close()

        if await container.http_session().close():
            logger.info("HTTP session closed")

    except Exception as e:
        logger.warning(f"Error during cleanup: {e}")


async def _show_catalog(container: Container, args: argparse.Namespace) -> int:
    entries = await container.catalog_provider().list_entries(args.exclude)
    for entry in entries:
        add_ons = ", ".join(f"{a.id} {a.name}" for a in entry.service.add_ons)
        print(f"{entry.service.id:>6}  {' / '.join(entry.path)}")
        if add_ons:
            print(f"        add-ons: {add_ons}")
    return 0


async def _show_service(container: Container, args: argparse.Namespace) -> int:
    details = await container.catalog_provider().get_service_by_id(args.service_id)
    if details is None:
        print(f"Not found {args.service_id}")
        return 1

    print(f"{details.id} {details.name}")
    print(f"  {details.category_name} / {details.subcategory_name}")
    if details.subcategory_description:
        print(f"  {details.subcategory_description}")
    for add_on in details.service.add_ons:
        print(f"  add-on {add_on.id}: {add_on.name}")
    return 0


async def _quote(container: Container, args: argparse.Namespace) -> int:
    selection = load_selection(args.selection)
    shipment = Shipment(
        weight_grams=args.weight,
        declared_value=Money(amount=Decimal(args.value), currency=args.currency),
        destination=Address(postal_code=args.to),
        item_count=args.items,
        package_type=args.pack,
    )

    gateway = container.gateway()
    for details, description in await gateway.describe_services(selection):
        print(f"{details.name}: {description}")

    result = await gateway.compute_quotes(shipment, selection)
    for quote in result.quotes:
        print(f"{quote.service_name}: {quote.amount.amount} {quote.amount.currency}")
    for warning in result.warnings:
        print(f"warning: {warning}")
    return 0 if result.quotes else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rp_shipping", description="Russian Post shipping rates")
    commands = parser.add_subparsers(dest="command", required=True)

    catalog_cmd = commands.add_parser("catalog", help="list selectable services")
    catalog_cmd.add_argument("--exclude", type=int, nargs="*", help="category codes to exclude")
    catalog_cmd.set_defaults(handler=_show_catalog)

    service_cmd = commands.add_parser("service", help="show one service")
    service_cmd.add_argument("service_id", type=int)
    service_cmd.set_defaults(handler=_show_service)

    quote_cmd = commands.add_parser("quote", help="price a shipment")
    quote_cmd.add_argument("--weight", type=int, required=True, help="weight in grams")
    quote_cmd.add_argument("--value", required=True, help="declared value")
    quote_cmd.add_argument("--currency", default="RUB")
    quote_cmd.add_argument("--to", required=True, help="destination postal index")
    quote_cmd.add_argument("--items", type=int, default=1)
    quote_cmd.add_argument("--pack", type=int, default=None, help="package code")
    quote_cmd.add_argument("--selection", required=True, help="selected services as JSON")
    quote_cmd.set_defaults(handler=_quote)

    return parser


async def run(args: argparse.Namespace) -> int:
    container = create_container(config)
    await initialize_resources(container)
    try:
        return await args.handler(container, args)
    except RussianPostError as e:
        logger.error(f"{e}")
        return 2
    finally:
        await cleanup_resources(container)


def main(argv: list[str] | None = None) -> int:
    """Main application entry point.

    Returns:
        Process exit code.
    """
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, config.app.log_level.upper(), logging.INFO),
    )

    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
