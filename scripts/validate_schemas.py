"""Checks the request schemas and that each accepts a known-good request body."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from jsonschema import ValidationError

from bidnthrift.logging import configure_logging
from bidnthrift.validation.validator import SchemaRegistry

logger = logging.getLogger("validate_schemas")

SCHEMA_DIR = Path(__file__).resolve().parent.parent / "bidnthrift" / "schemas"

# one body per endpoint that validates against the named schema
SAMPLE_REQUESTS = {
    "bid": {"amount": 250, "bidderId": "buyer-1"},
    "chat_message": {"senderId": "buyer-1", "receiverId": "seller-1", "content": "Is it still available?"},
    "checkout_session": {"items": [{"name": "Laptop", "price": 1200, "quantity": 1}], "userId": "buyer-1"},
    "order": {"userId": "buyer-1", "cartItems": [{"id": "1", "price": 1200, "quantity": 1}], "total": 1200},
    "order_chat": {
        "orderId": "order-1",
        "buyerId": "buyer-1",
        "sellerId": "seller-1",
        "productId": "1",
        "productName": "Laptop",
    },
    "payment_intent": {"amount": 120000, "currency": "usd"},
}


def validate(schema_dir: Path = SCHEMA_DIR) -> list[str]:
    """Return one problem line per schema that is missing or rejects its sample."""
    registry = SchemaRegistry(schema_dir)
    problems = []
    for name, payload in SAMPLE_REQUESTS.items():
        try:
            registry.validate(name, payload)
        except ValueError as exc:
            problems.append(str(exc))
        except ValidationError as exc:
            problems.append(f"{name}: {exc.message}")
        else:
            logger.info("Schema %s accepts its sample request", name)
    return problems


if __name__ == "__main__":
    configure_logging("INFO")
    failures = validate()
    for failure in failures:
        logger.error("%s", failure)
    sys.exit(1 if failures else 0)
