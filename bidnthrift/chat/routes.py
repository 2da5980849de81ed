"""Chat bootstrap and message endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from jsonschema import ValidationError

from ..validation.validator import SchemaRegistry
from .service import ChatPermissionError, ChatService

router = APIRouter(prefix="/chats", tags=["chat"])


def _get_chat(request: Request) -> ChatService:
    return request.app.state.chat


def _get_schemas(request: Request) -> SchemaRegistry:
    return request.app.state.schema_registry


def _validate(schemas: SchemaRegistry, name: str, payload: dict[str, Any]) -> None:
    try:
        schemas.validate(name, payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc.message)) from exc


@router.post("/order", status_code=status.HTTP_201_CREATED)
async def initialize_order_chat(
    payload: dict[str, Any] = Body(...),
    chat: ChatService = Depends(_get_chat),
    schemas: SchemaRegistry = Depends(_get_schemas),
) -> dict[str, str]:
    _validate(schemas, "order_chat", payload)
    try:
        conversation_id = await chat.initialize_order_chat(
            payload["buyerId"],
            payload["sellerId"],
            payload["productId"],
            payload["productName"],
            payload["orderId"],
        )
    except ChatPermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"conversationId": conversation_id}


@router.get("/users/{user_id}")
async def list_conversations(
    user_id: str,
    chat: ChatService = Depends(_get_chat),
) -> list[dict[str, Any]]:
    return await chat.list_conversations(user_id)


@router.get("/users/{user_id}/unread")
async def unread_count(
    user_id: str,
    chat: ChatService = Depends(_get_chat),
) -> dict[str, Any]:
    return {"userId": user_id, "unread": await chat.unread_count(user_id)}


@router.post("/{conversation_id}/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: str,
    payload: dict[str, Any] = Body(...),
    chat: ChatService = Depends(_get_chat),
    schemas: SchemaRegistry = Depends(_get_schemas),
) -> dict[str, Any]:
    _validate(schemas, "chat_message", payload)
    try:
        return await chat.send_message(
            conversation_id, payload["senderId"], payload["receiverId"], payload["content"]
        )
    except ChatPermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Conversation not found") from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/{conversation_id}/messages")
async def list_messages(
    conversation_id: str,
    chat: ChatService = Depends(_get_chat),
) -> list[dict[str, Any]]:
    try:
        return await chat.list_messages(conversation_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Conversation not found") from exc


@router.post("/{conversation_id}/read")
async def mark_read(
    conversation_id: str,
    payload: dict[str, Any] = Body(...),
    chat: ChatService = Depends(_get_chat),
) -> dict[str, Any]:
    user_id = payload.get("userId")
    if not user_id:
        raise HTTPException(status_code=400, detail="userId is required")
    try:
        marked = await chat.mark_read(conversation_id, user_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Conversation not found") from exc
    return {"conversationId": conversation_id, "marked": marked}
