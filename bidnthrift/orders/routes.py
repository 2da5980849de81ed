"""Order endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from jsonschema import ValidationError

from ..validation.validator import SchemaRegistry
from .service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def _get_orders(request: Request) -> OrderService:
    return request.app.state.orders


def _get_schemas(request: Request) -> SchemaRegistry:
    return request.app.state.schema_registry


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: dict[str, Any] = Body(...),
    orders: OrderService = Depends(_get_orders),
    schemas: SchemaRegistry = Depends(_get_schemas),
) -> dict[str, Any]:
    try:
        schemas.validate("order", payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc.message)) from exc
    return await orders.create_order(payload["userId"], payload["cartItems"], payload["total"])


@router.get("/{order_id}")
async def get_order(order_id: str, orders: OrderService = Depends(_get_orders)) -> dict[str, Any]:
    try:
        return await orders.get_order(order_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Order not found") from exc
