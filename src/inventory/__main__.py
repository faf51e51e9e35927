"""Inventory command line. Use --help for usage."""

import argparse
import asyncio
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from config.config import load_config
from core.errors.exceptions import GatewayError
from core.logging.context_managers import LogContext
from core.logging.setup import setup_logging
from core.logging.utilities import log_exception
from core.utils.json_serializers import json_serializer
from inventory.api_client import InventoryApiClient, summarize_item

# Project root directory (where .env file is located)
# __main__.py is at src/inventory/__main__.py, so root is 3 levels up
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Placeholder logger until setup_logging() is called in main()
logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="inventory-gateway",
        description="Call the inventory API through the resilient gateway",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # List the first 5 items
    python -m inventory items --limit 5

    # Search by name or SKU
    python -m inventory search widget

    # Show one item
    python -m inventory item 4815162342

    # Change a price
    python -m inventory update-price 4815162342 19.99

    # Create an item
    python -m inventory create "Blue widget" 9.5 --sku BW-1
        """,
    )

    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Console logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Also write JSON logs to this directory",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print full item payloads instead of summaries",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    items = subparsers.add_parser("items", help="List items")
    items.add_argument("--limit", type=int, default=10)
    items.add_argument("--page", type=int, default=1)

    search = subparsers.add_parser("search", help="Search items")
    search.add_argument("search_text")
    search.add_argument("--limit", type=int, default=10)

    item = subparsers.add_parser("item", help="Show one item")
    item.add_argument("item_id")

    update = subparsers.add_parser("update-price", help="Update an item's rate")
    update.add_argument("item_id")
    update.add_argument("rate", type=float)

    create = subparsers.add_parser("create", help="Create an item")
    create.add_argument("name")
    create.add_argument("rate", type=float)
    create.add_argument("--sku", default=None)
    create.add_argument("--description", default=None)

    return parser.parse_args(argv)


def _present(item: dict[str, Any] | None, raw: bool, include_description: bool = False) -> Any:
    if item is None or raw:
        return item
    return summarize_item(item, include_description=include_description)


async def run_command(client: InventoryApiClient, args: argparse.Namespace) -> Any:
    """Run the selected subcommand and return a JSON-serializable result."""
    if args.command == "items":
        items = await client.list_items(limit=args.limit, page=args.page)
        return [_present(item, args.raw) for item in items]

    if args.command == "search":
        items = await client.search_items(args.search_text, limit=args.limit)
        return {
            "search_text": args.search_text,
            "count": len(items),
            "items": [_present(item, args.raw) for item in items],
        }

    if args.command == "item":
        item = await client.get_item(args.item_id)
        return _present(item, args.raw, include_description=True)

    if args.command == "update-price":
        item = await client.update_item_price(args.item_id, args.rate)
        return _present(item, args.raw)

    if args.command == "create":
        item = await client.create_item(
            args.name, args.rate, sku=args.sku, description=args.description
        )
        return _present(item, args.raw)

    raise ValueError(f"Unknown command: {args.command}")


async def _run(args: argparse.Namespace) -> Any:
    config = load_config(args.config)
    async with InventoryApiClient.from_config(config) as client:
        with LogContext(tool=args.command):
            return await run_command(client, args)


def main(argv: list[str] | None = None) -> int:
    global logger

    load_dotenv(PROJECT_ROOT / ".env")
    args = parse_args(argv)

    setup_logging(
        name="inventory",
        log_dir=args.log_dir,
        log_to_file=args.log_dir is not None,
        console_level=getattr(logging, args.log_level),
        trace_id=uuid.uuid4().hex,
    )
    logger = logging.getLogger(__name__)

    try:
        result = asyncio.run(_run(args))
    except GatewayError as e:
        log_exception(logger, e, "Inventory call failed", include_traceback=False)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        logger.error("Invalid configuration or arguments", extra={"error": str(e)})
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(json.dumps(result, indent=2, default=json_serializer, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
