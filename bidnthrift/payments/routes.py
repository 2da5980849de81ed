"""Stripe-facing payment endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from jsonschema import ValidationError

from ..auth import get_current_user
from ..validation.validator import SchemaRegistry
from .service import PaymentService

router = APIRouter(tags=["payments"])


def _get_payments(request: Request) -> PaymentService:
    return request.app.state.payments


def _get_schemas(request: Request) -> SchemaRegistry:
    return request.app.state.schema_registry


@router.post("/create-checkout-session")
async def create_checkout_session(
    payload: dict[str, Any] = Body(...),
    payments: PaymentService = Depends(_get_payments),
    schemas: SchemaRegistry = Depends(_get_schemas),
) -> dict[str, str]:
    try:
        schemas.validate("checkout_session", payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc.message)) from exc
    return await payments.create_checkout_session(payload["items"], payload.get("userId"))


@router.post("/create-payment-intent")
async def create_payment_intent(
    payload: dict[str, Any] = Body(...),
    payments: PaymentService = Depends(_get_payments),
    schemas: SchemaRegistry = Depends(_get_schemas),
    user: dict[str, Any] | None = Depends(get_current_user),
) -> dict[str, str]:
    try:
        schemas.validate("payment_intent", payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc.message)) from exc
    user_id = payload.get("userId")
    if user is not None and user_id and user.get("uid") != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized: userId does not match authenticated user",
        )
    return await payments.create_payment_intent(
        payload.get("amount"),
        currency=payload.get("currency"),
        bid_id=payload.get("bidId"),
        order_id=payload.get("orderId"),
        auction_id=payload.get("auctionId"),
    )


@router.get("/verify-payment/{payment_intent_id}")
async def verify_payment(
    payment_intent_id: str,
    payments: PaymentService = Depends(_get_payments),
) -> dict[str, Any]:
    return await payments.verify_payment(payment_intent_id)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    payments: PaymentService = Depends(_get_payments),
) -> dict[str, Any]:
    payload = await request.body()
    event_type = payments.handle_webhook(payload, request.headers.get("stripe-signature"))
    return {"received": True, "type": event_type}
