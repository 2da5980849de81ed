"""Tests for listing, bid and meta endpoints against the in-memory store."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from bidnthrift.catalog.service import ListingService


class TestListingEndpoints:
    def test_list_products_returns_seed_catalog(self, client):
        response = client.get("/seller/products")
        assert response.status_code == 200
        names = [product["name"] for product in response.json()]
        assert names == ["Laptop", "Phone"]

    def test_list_auctions_returns_seed_catalog(self, client):
        response = client.get("/seller/auctions")
        assert response.status_code == 200
        assert response.json()[0]["productName"] == "Vintage Watch"

    def test_create_product_assigns_next_id(self, client):
        response = client.post(
            "/seller/products",
            json={"name": "Camera", "price": 450, "stock": 2, "status": "available"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Product added successfully"
        assert body["product"]["id"] == "3"
        assert len(client.get("/seller/products").json()) == 3

    def test_create_product_with_missing_fields_is_still_stored(self, client):
        response = client.post("/seller/products", json={"name": "Mystery box"})
        assert response.status_code == 200
        product = response.json()["product"]
        assert product["price"] is None
        assert product["stock"] is None
        stored = client.get("/seller/products").json()
        assert any(item["id"] == product["id"] for item in stored)

    def test_create_auction_starts_at_starting_price(self, client):
        response = client.post(
            "/seller/auctions",
            json={"productName": "Film camera", "startingPrice": 80, "status": "active"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Auction created successfully"
        assert body["auction"]["id"] == "2"
        assert body["auction"]["currentPrice"] == 80


class TestConcurrentCreates:
    @pytest.mark.asyncio
    async def test_ids_stay_unique(self, storage):
        listings = ListingService(storage)

        created = await asyncio.gather(
            *(listings.create_product({"name": f"item-{n}"}) for n in range(5))
        )

        ids = [product["id"] for product in created]
        assert len(set(ids)) == 5


class TestBidEndpoints:
    def test_bids_update_current_price(self, client):
        first = client.post("/auctions/1/bids", json={"amount": 100, "bidderId": "buyer-1"})
        second = client.post("/auctions/1/bids", json={"amount": 150, "bidderId": "buyer-2"})

        assert first.status_code == 201
        assert second.status_code == 201
        assert second.json()["auctionId"] == "1"
        auction = client.get("/auctions/1").json()
        assert auction["currentPrice"] == 150

    def test_list_bids_in_creation_order(self, client):
        client.post("/auctions/1/bids", json={"amount": 210, "bidderId": "a"})
        client.post("/auctions/1/bids", json={"amount": 220, "bidderId": "b"})

        response = client.get("/auctions/1/bids")

        assert response.status_code == 200
        assert [bid["amount"] for bid in response.json()] == [210, 220]

    def test_bid_on_unknown_auction(self, client):
        response = client.post("/auctions/404/bids", json={"amount": 10, "bidderId": "a"})
        assert response.status_code == 404

    def test_bid_requires_amount(self, client):
        response = client.post("/auctions/1/bids", json={"bidderId": "a"})
        assert response.status_code == 422

    def test_unknown_auction_lookup(self, client):
        assert client.get("/auctions/nope").status_code == 404


class TestMetaEndpoints:
    def test_client_config(self, client):
        body = client.get("/config").json()
        assert body["apiUrl"]
        assert body["currency"] == {"code": "NPR", "symbol": "Rs.", "nprToInrRate": 0.625}

    def test_health(self, client):
        body = client.get("/admin/health").json()
        assert body["status"] == "healthy"
        assert body["storage"] == {"backend": "in_memory", "status": "ok", "auctions": 1}
        assert body["bid_trigger"] == {"binding": "local", "price_update": "last_write_wins"}
        assert body["auth_enabled"] is False

    def test_health_reports_unreachable_store(self, client):
        with patch.object(
            client.app.state.storage, "list_records", AsyncMock(side_effect=RuntimeError("down"))
        ):
            body = client.get("/admin/health").json()

        assert body["status"] == "degraded"
        assert body["storage"]["status"] == "unreachable"
        assert body["storage"]["auctions"] is None

    def test_stats(self, client):
        body = client.get("/admin/stats").json()
        assert body["total_products"] == 2
        assert body["total_auctions"] == 1
        assert body["auctions_by_status"] == {"active": 1}
        assert body["total_stock"] == 15

    def test_stats_skips_non_numeric_stock(self, client):
        client.post("/seller/products", json={"name": "Box", "stock": "lots"})
        client.post("/seller/products", json={"name": "Crate", "stock": True})

        response = client.get("/admin/stats")

        assert response.status_code == 200
        assert response.json()["total_products"] == 4
        assert response.json()["total_stock"] == 15
