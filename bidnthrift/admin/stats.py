"""Operational stats endpoint."""

from __future__ import annotations

from collections import Counter
from typing import Any

from fastapi import APIRouter, Depends, Request

from ..catalog.service import ListingService

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_listings(request: Request) -> ListingService:
    return request.app.state.listings


def _stock_units(product: dict[str, Any]) -> int | float:
    stock = product.get("stock")
    # listings are stored unvalidated, so stock may hold anything
    if isinstance(stock, bool) or not isinstance(stock, (int, float)):
        return 0
    return stock


@router.get("/stats")
async def stats(listings: ListingService = Depends(_get_listings)) -> dict[str, Any]:
    products = await listings.list_products()
    auctions = await listings.list_auctions()

    auctions_by_status: Counter[str] = Counter()
    products_by_status: Counter[str] = Counter()
    for auction in auctions:
        auctions_by_status[auction.get("status") or "unknown"] += 1
    for product in products:
        products_by_status[product.get("status") or "unknown"] += 1

    return {
        "total_products": len(products),
        "total_auctions": len(auctions),
        "products_by_status": dict(products_by_status),
        "auctions_by_status": dict(auctions_by_status),
        "total_stock": sum(_stock_units(product) for product in products),
    }
