"""Order and payment records around the checkout flow."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..storage import DocumentStorage
from ..utils.dates import utc_now_iso

logger = logging.getLogger(__name__)

ORDERS_COLLECTION = "orders"
PAYMENTS_COLLECTION = "payments"


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"


@dataclass
class OrderService:
    storage: DocumentStorage

    async def create_order(
        self, user_id: str, cart_items: list[dict[str, Any]], total: float
    ) -> dict[str, Any]:
        now = utc_now_iso()
        record = {
            "userId": user_id,
            "cartItems": cart_items,
            "total": total,
            "status": OrderStatus.PENDING.value,
            "paymentIntentId": None,
            "createdAt": now,
            "updatedAt": now,
        }
        order = await self.storage.create_record(ORDERS_COLLECTION, record)
        logger.info("Order %s created for user %s", order["id"], user_id)
        return order

    async def get_order(self, order_id: str) -> dict[str, Any]:
        return await self.storage.get_record(ORDERS_COLLECTION, order_id)

    async def find_order(self, order_id: str | None) -> dict[str, Any] | None:
        if not order_id:
            return None
        try:
            return await self.get_order(order_id)
        except KeyError:
            return None

    async def mark_paid(self, order_id: str, payment_intent_id: str) -> dict[str, Any] | None:
        if await self.find_order(order_id) is None:
            return None
        order = await self.storage.update_record(
            ORDERS_COLLECTION,
            order_id,
            {
                "status": OrderStatus.PAID.value,
                "paymentIntentId": payment_intent_id,
                "updatedAt": utc_now_iso(),
            },
        )
        logger.info("Order %s marked paid", order_id)
        return order

    async def record_payment(
        self,
        order_id: str,
        payment_intent_id: str,
        amount: int,
        currency: str,
        status: str,
    ) -> dict[str, Any]:
        now = utc_now_iso()
        # keyed by intent id so verification can find it without a query
        record = {
            "id": payment_intent_id,
            "orderId": order_id,
            "paymentIntentId": payment_intent_id,
            "amount": amount,
            "currency": currency,
            "status": status,
            "createdAt": now,
            "updatedAt": now,
        }
        return await self.storage.create_record(PAYMENTS_COLLECTION, record)

    async def update_payment_status(self, payment_intent_id: str, status: str) -> dict[str, Any] | None:
        try:
            return await self.storage.update_record(
                PAYMENTS_COLLECTION,
                payment_intent_id,
                {"status": status, "updatedAt": utc_now_iso()},
            )
        except KeyError:
            return None
