"""Stripe Checkout and PaymentIntent adapter."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable

import stripe

from ..config import PaymentsConfig
from ..orders.service import OrderService

logger = logging.getLogger(__name__)


class PaymentError(Exception):
    """Raised when a payment operation cannot be completed."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PaymentRequestError(PaymentError):
    status_code = 400


class PaymentService:
    def __init__(self, config: PaymentsConfig, orders: OrderService) -> None:
        self._config = config
        self._orders = orders

    async def _call(self, func: Callable, *args, **kwargs) -> Any:
        try:
            return await asyncio.to_thread(func, *args, api_key=self._config.secret_key, **kwargs)
        except stripe.StripeError as exc:
            logger.error("Stripe request failed: %s", exc)
            raise PaymentError(exc.user_message or str(exc)) from exc

    async def create_checkout_session(
        self, items: list[dict[str, Any]], user_id: str | None
    ) -> dict[str, str]:
        line_items = [
            {
                "price_data": {
                    "currency": self._config.checkout_currency,
                    "product_data": {"name": item["name"]},
                    "unit_amount": int(round(item["price"] * 100)),
                },
                "quantity": item["quantity"],
            }
            for item in items
        ]
        session = await self._call(
            stripe.checkout.Session.create,
            payment_method_types=["card"],
            line_items=line_items,
            mode="payment",
            success_url=self._config.success_url,
            cancel_url=self._config.cancel_url,
            metadata={"userId": user_id or ""},
        )
        logger.info("Checkout session %s created for user %s", session.id, user_id)
        return {"id": session.id}

    async def create_payment_intent(
        self,
        amount: int | None,
        *,
        currency: str | None = None,
        bid_id: str | None = None,
        order_id: str | None = None,
        auction_id: str | None = None,
    ) -> dict[str, str]:
        if not amount:
            raise PaymentRequestError("Amount is required")
        currency = (currency or self._config.currency).lower()
        logger.info(
            "Creating payment intent for amount %s %s (bid=%s order=%s auction=%s)",
            amount,
            currency,
            bid_id,
            order_id,
            auction_id,
        )
        intent = await self._call(
            stripe.PaymentIntent.create,
            amount=amount,
            currency=currency,
            automatic_payment_methods={"enabled": True},
            metadata={
                "bidId": bid_id or "",
                "orderId": order_id or "",
                "auctionId": auction_id or "",
            },
        )
        if await self._orders.find_order(order_id) is not None:
            await self._orders.record_payment(order_id, intent.id, amount, currency, intent.status)
        return {"clientSecret": intent.client_secret, "paymentIntentId": intent.id}

    async def verify_payment(self, payment_intent_id: str) -> dict[str, Any]:
        if not payment_intent_id:
            raise PaymentRequestError("Payment intent ID is required")
        intent = await self._call(stripe.PaymentIntent.retrieve, payment_intent_id)
        logger.info("Payment intent %s status %s", payment_intent_id, intent.status)
        metadata = intent.metadata or {}
        order_id = metadata.get("orderId") or ""
        await self._orders.update_payment_status(payment_intent_id, intent.status)
        if intent.status == "succeeded" and order_id:
            await self._orders.mark_paid(order_id, payment_intent_id)
        return {
            "status": intent.status,
            "orderId": order_id,
            "auctionId": metadata.get("auctionId") or "",
            "amount": intent.amount,
            "paymentMethod": list(intent.payment_method_types or []),
            "created": datetime.fromtimestamp(intent.created, tz=timezone.utc).isoformat(),
        }

    def handle_webhook(self, payload: bytes, signature: str | None) -> str:
        try:
            event = stripe.Webhook.construct_event(
                payload, signature or "", self._config.webhook_secret
            )
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("Webhook rejected: %s", exc)
            raise PaymentRequestError(f"Webhook Error: {exc}") from exc
        event_type = event["type"]
        intent = event["data"]["object"]
        if event_type == "payment_intent.succeeded":
            logger.info("PaymentIntent for %s was successful", intent.get("amount"))
        elif event_type == "payment_intent.payment_failed":
            error = intent.get("last_payment_error") or {}
            logger.warning("Payment failed: %s", error.get("message"))
        else:
            logger.info("Unhandled event type %s", event_type)
        return event_type
