"""Tests for order chat bootstrap and messaging."""

from __future__ import annotations

import pytest

from bidnthrift.chat.service import ChatPermissionError, ChatService, messages_collection


@pytest.fixture
def chat(storage):
    return ChatService(storage)


class TestOrderChatBootstrap:
    @pytest.mark.asyncio
    async def test_new_conversation_gets_welcome_messages(self, chat, storage):
        conversation_id = await chat.initialize_order_chat(
            "buyer-1", "seller-1", "product-9", "Vintage Watch", "abcdef1234567890"
        )

        messages = await chat.list_messages(conversation_id)
        assert len(messages) == 4
        assert messages[0]["content"] == (
            "Thank you for purchasing Vintage Watch! This chat is now active for order #abcdef12."
        )
        assert messages[0]["receiverId"] == "buyer-1"
        assert messages[1]["receiverId"] == "seller-1"
        assert all(message["senderId"] == "system" for message in messages)
        assert all("displayTime" in message for message in messages)

        conversation = await storage.get_record("conversations", conversation_id)
        assert conversation["productId"] == "product-9"
        assert conversation["unreadCount"] == {"buyer-1": 2, "seller-1": 1, "system": 1}

    @pytest.mark.asyncio
    async def test_existing_conversation_is_reused(self, chat, storage):
        first = await chat.initialize_order_chat("buyer-1", "seller-1", "p", "Lamp", "order-1")
        second = await chat.initialize_order_chat("seller-1", "buyer-1", "p", "Lamp", "order-2")

        assert first == second
        assert len(await storage.list_records(messages_collection(first))) == 4

    @pytest.mark.asyncio
    async def test_admin_users_cannot_chat(self, chat, storage):
        await storage.create_record("users", {"id": "admin-1", "role": "admin"})

        with pytest.raises(ChatPermissionError):
            await chat.get_or_create_conversation("buyer-1", "admin-1")

    @pytest.mark.asyncio
    async def test_empty_user_ids_rejected(self, chat):
        with pytest.raises(ValueError):
            await chat.get_or_create_conversation("", "seller-1")


class TestMessaging:
    @pytest.mark.asyncio
    async def test_send_updates_last_message_and_unread(self, chat, storage):
        conversation_id = await chat.get_or_create_conversation("buyer-1", "seller-1")

        await chat.send_message(conversation_id, "buyer-1", "seller-1", "Is it still available?")

        conversation = await storage.get_record("conversations", conversation_id)
        assert conversation["lastMessage"]["content"] == "Is it still available?"
        assert conversation["lastMessage"]["senderId"] == "buyer-1"
        assert conversation["unreadCount"]["seller-1"] == 1

    @pytest.mark.asyncio
    async def test_blank_content_rejected(self, chat):
        conversation_id = await chat.get_or_create_conversation("buyer-1", "seller-1")

        with pytest.raises(ValueError):
            await chat.send_message(conversation_id, "buyer-1", "seller-1", "   ")

    @pytest.mark.asyncio
    async def test_unknown_conversation(self, chat):
        with pytest.raises(KeyError):
            await chat.send_message("missing", "buyer-1", "seller-1", "hello")

    @pytest.mark.asyncio
    async def test_mark_read(self, chat, storage):
        conversation_id = await chat.get_or_create_conversation("buyer-1", "seller-1")
        await chat.send_message(conversation_id, "buyer-1", "seller-1", "one")
        await chat.send_message(conversation_id, "buyer-1", "seller-1", "two")

        marked = await chat.mark_read(conversation_id, "seller-1")

        assert marked == 2
        conversation = await storage.get_record("conversations", conversation_id)
        assert conversation["unreadCount"]["seller-1"] == 0
        messages = await chat.list_messages(conversation_id)
        assert all(message["read"] for message in messages)


class TestConversationList:
    @pytest.mark.asyncio
    async def test_previews_newest_first_with_own_unread(self, chat, storage):
        await storage.create_record("users", {"id": "seller-1", "firstName": "Sita", "lastName": "Rai"})
        older = await chat.get_or_create_conversation("buyer-1", "seller-1", product_id="1")
        newer = await chat.get_or_create_conversation("buyer-1", "seller-2")
        await chat.send_message(older, "seller-1", "buyer-1", "Shipped today")
        await storage.update_record("conversations", older, {"updatedAt": "2025-03-10T08:00:00Z"})
        await storage.update_record("conversations", newer, {"updatedAt": "2025-03-11T08:00:00Z"})

        previews = await chat.list_conversations("buyer-1")

        assert [preview["id"] for preview in previews] == [newer, older]
        assert previews[1]["participantId"] == "seller-1"
        assert previews[1]["participantName"] == "Sita Rai"
        assert previews[1]["lastMessage"] == "Shipped today"
        assert previews[1]["unreadCount"] == 1
        assert previews[1]["productId"] == "1"
        assert previews[1]["displayTime"]
        assert previews[0]["participantName"] == "Unknown User"

    @pytest.mark.asyncio
    async def test_admin_conversations_hidden(self, chat, storage):
        conversation_id = await chat.get_or_create_conversation("buyer-1", "staff-1")
        await storage.create_record("users", {"id": "staff-1", "role": "admin"})

        previews = await chat.list_conversations("buyer-1")

        assert conversation_id not in [preview["id"] for preview in previews]

    @pytest.mark.asyncio
    async def test_unread_count_sums_conversations(self, chat):
        first = await chat.get_or_create_conversation("buyer-1", "seller-1")
        second = await chat.get_or_create_conversation("buyer-1", "seller-2")
        await chat.send_message(first, "seller-1", "buyer-1", "one")
        await chat.send_message(second, "seller-2", "buyer-1", "two")
        await chat.send_message(second, "buyer-1", "seller-2", "reply")

        assert await chat.unread_count("buyer-1") == 2
        assert await chat.unread_count("seller-2") == 1
        assert await chat.unread_count("stranger") == 0


class TestChatEndpoints:
    def test_order_chat_roundtrip(self, client):
        response = client.post(
            "/chats/order",
            json={
                "buyerId": "buyer-1",
                "sellerId": "seller-1",
                "productId": "1",
                "productName": "Laptop",
                "orderId": "ord-00001234",
            },
        )
        assert response.status_code == 201
        conversation_id = response.json()["conversationId"]

        sent = client.post(
            f"/chats/{conversation_id}/messages",
            json={"senderId": "buyer-1", "receiverId": "seller-1", "content": "Hi!"},
        )
        assert sent.status_code == 201

        messages = client.get(f"/chats/{conversation_id}/messages").json()
        assert [message["content"] for message in messages][-1] == "Hi!"

        read = client.post(f"/chats/{conversation_id}/read", json={"userId": "seller-1"})
        assert read.json()["marked"] == 2

    def test_missing_fields(self, client):
        response = client.post("/chats/order", json={"buyerId": "buyer-1"})
        assert response.status_code == 422

    def test_unknown_conversation(self, client):
        response = client.get("/chats/nope/messages")
        assert response.status_code == 404

    def test_conversation_list_and_unread_badge(self, client):
        created = client.post(
            "/chats/order",
            json={
                "buyerId": "buyer-1",
                "sellerId": "seller-1",
                "productId": "1",
                "productName": "Laptop",
                "orderId": "ord-00001234",
            },
        )
        conversation_id = created.json()["conversationId"]

        previews = client.get("/chats/users/buyer-1").json()
        assert [preview["id"] for preview in previews] == [conversation_id]
        assert previews[0]["participantId"] == "seller-1"
        assert previews[0]["unreadCount"] == 2

        badge = client.get("/chats/users/seller-1/unread").json()
        assert badge == {"userId": "seller-1", "unread": 1}
