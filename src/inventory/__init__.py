"""
Inventory API access through the resilient gateway.

Usage:
    from config import load_config
    from inventory import InventoryApiClient

    async with InventoryApiClient.from_config(load_config()) as client:
        items = await client.list_items(limit=5)
"""

from inventory.api_client import InventoryApiClient, summarize_item
from inventory.gateway import AttemptKind, ResilientApiGateway

__all__ = [
    "InventoryApiClient",
    "ResilientApiGateway",
    "AttemptKind",
    "summarize_item",
]
