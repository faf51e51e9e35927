"""Inventory REST API client built on the resilient gateway."""

import logging
from typing import Any

from config.config import GatewayConfig
from inventory.gateway import ResilientApiGateway

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
NOT_AVAILABLE = "N/A"

# Fields reported for an item, in display order
SUMMARY_FIELDS = ("name", "sku", "rate", "stock_on_hand", "status")


def summarize_item(item: dict[str, Any], include_description: bool = False) -> dict[str, Any]:
    """
    Reduce an item payload to the fields shown to users.

    Missing or empty values are reported as "N/A". A rate or stock of 0 is
    kept as 0.
    """
    fields = SUMMARY_FIELDS + ("description",) if include_description else SUMMARY_FIELDS
    summary = {}
    for name in fields:
        value = item.get(name)
        summary[name] = NOT_AVAILABLE if value in (None, "") else value
    return summary


class InventoryApiClient:
    """
    Async client for the inventory item endpoints.

    Every call carries organization_id and goes through the gateway, so
    pacing, credential refresh and rate-limit recovery apply uniformly.
    """

    def __init__(self, gateway: ResilientApiGateway, organization_id: str):
        if not organization_id:
            raise ValueError(
                "InventoryApiClient requires 'organization_id'. "
                "Set ZOHO_ORGANIZATION_ID environment variable or configure "
                "gateway.api.organization_id in config."
            )
        self._gateway = gateway
        self.organization_id = str(organization_id)

    @classmethod
    def from_config(cls, config: GatewayConfig, **gateway_kwargs: Any) -> "InventoryApiClient":
        return cls(ResilientApiGateway.from_config(config, **gateway_kwargs), config.organization_id)

    async def __aenter__(self) -> "InventoryApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._gateway.close()

    @property
    def gateway(self) -> ResilientApiGateway:
        return self._gateway

    def _params(self, **extra: Any) -> dict[str, Any]:
        params: dict[str, Any] = {"organization_id": self.organization_id}
        params.update({k: v for k, v in extra.items() if v is not None})
        return params

    async def list_items(
        self, limit: int = DEFAULT_PAGE_SIZE, page: int = 1
    ) -> list[dict[str, Any]]:
        """List items, one page at a time."""
        data = await self._gateway.get("/items", params=self._params(per_page=limit, page=page))
        items = _items_from(data)
        logger.debug(f"Listed {len(items)} items", extra={"api_endpoint": "/items"})
        return items

    async def search_items(
        self, search_text: str, limit: int = DEFAULT_PAGE_SIZE
    ) -> list[dict[str, Any]]:
        if not search_text:
            raise ValueError("search_text must not be empty")
        data = await self._gateway.get(
            "/items",
            params=self._params(search_text=search_text, per_page=limit, page=1),
        )
        return _items_from(data)

    async def get_item(self, item_id: str) -> dict[str, Any] | None:
        """
        Get one item.

        Args:
            item_id: Item identifier

        Returns:
            The item payload, or None if the response carries no item
        """
        data = await self._gateway.get(f"/items/{item_id}", params=self._params())
        return _item_from(data)

    async def update_item_price(self, item_id: str, rate: float) -> dict[str, Any] | None:
        """Set an item's rate. Returns the updated item, or None if none came back."""
        data = await self._gateway.put(
            f"/items/{item_id}", json_body={"rate": rate}, params=self._params()
        )
        return _item_from(data)

    async def create_item(
        self,
        name: str,
        rate: float,
        sku: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any] | None:
        """Create an item. Optional fields are only sent when given."""
        if not name:
            raise ValueError("name must not be empty")

        body: dict[str, Any] = {"name": name, "rate": rate}
        if sku:
            body["sku"] = sku
        if description:
            body["description"] = description

        data = await self._gateway.post("/items", json_body=body, params=self._params())
        item = _item_from(data)
        if item is not None:
            logger.info("Item created", extra={"api_endpoint": "/items", "api_method": "POST"})
        return item

    def get_diagnostics(self) -> dict[str, Any]:
        return self._gateway.get_diagnostics()


def _items_from(data: Any) -> list[dict[str, Any]]:
    if isinstance(data, dict) and isinstance(data.get("items"), list):
        return data["items"]
    return []


def _item_from(data: Any) -> dict[str, Any] | None:
    if isinstance(data, dict) and isinstance(data.get("item"), dict):
        return data["item"]
    return None


__all__ = [
    "InventoryApiClient",
    "summarize_item",
    "DEFAULT_PAGE_SIZE",
]
