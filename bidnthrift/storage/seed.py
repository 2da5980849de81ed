"""Sample catalog loaded into the in-memory backend at startup."""

from __future__ import annotations

SAMPLE_COLLECTIONS: dict[str, list[dict]] = {
    "products": [
        {"id": "1", "name": "Laptop", "price": 1200, "stock": 10, "status": "available"},
        {"id": "2", "name": "Phone", "price": 800, "stock": 5, "status": "pending"},
    ],
    "auctions": [
        {
            "id": "1",
            "productName": "Vintage Watch",
            "startingPrice": 200,
            "currentPrice": 200,
            "status": "active",
        },
    ],
}
