"""Seller listing endpoints for products and auctions."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from .service import ListingService

router = APIRouter(prefix="/seller", tags=["seller"])


def _get_listings(request: Request) -> ListingService:
    return request.app.state.listings


@router.get("/products")
async def list_products(listings: ListingService = Depends(_get_listings)) -> list[dict[str, Any]]:
    return await listings.list_products()


@router.get("/auctions")
async def list_auctions(listings: ListingService = Depends(_get_listings)) -> list[dict[str, Any]]:
    return await listings.list_auctions()


@router.post("/products")
async def add_product(
    payload: dict[str, Any] = Body(...),
    listings: ListingService = Depends(_get_listings),
) -> dict[str, Any]:
    product = await listings.create_product(payload)
    return {"message": "Product added successfully", "product": product}


@router.post("/auctions")
async def add_auction(
    payload: dict[str, Any] = Body(...),
    listings: ListingService = Depends(_get_listings),
) -> dict[str, Any]:
    auction = await listings.create_auction(payload)
    return {"message": "Auction created successfully", "auction": auction}
