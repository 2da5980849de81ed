"""Product and auction listings backed by the injected document store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..storage import DocumentStorage

PRODUCTS_COLLECTION = "products"
AUCTIONS_COLLECTION = "auctions"

PRODUCT_FIELDS = ("name", "price", "stock", "status")
AUCTION_FIELDS = ("productName", "startingPrice", "status")


@dataclass
class ListingService:
    storage: DocumentStorage

    async def list_products(self) -> list[dict[str, Any]]:
        return await self.storage.list_records(PRODUCTS_COLLECTION)

    async def list_auctions(self) -> list[dict[str, Any]]:
        return await self.storage.list_records(AUCTIONS_COLLECTION)

    async def get_auction(self, auction_id: str) -> dict[str, Any]:
        return await self.storage.get_record(AUCTIONS_COLLECTION, auction_id)

    async def create_product(self, payload: dict[str, Any]) -> dict[str, Any]:
        # missing fields are stored as null
        record = {key: payload.get(key) for key in PRODUCT_FIELDS}
        return await self.storage.create_record(PRODUCTS_COLLECTION, record)

    async def create_auction(self, payload: dict[str, Any]) -> dict[str, Any]:
        record = {key: payload.get(key) for key in AUCTION_FIELDS}
        record["currentPrice"] = record["startingPrice"]
        return await self.storage.create_record(AUCTIONS_COLLECTION, record)
