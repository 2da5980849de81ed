"""Buyer/seller conversations seeded when an order is confirmed."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from ..auth import FirebaseAuth
from ..storage import DocumentStorage
from ..utils.dates import format_chat_time, parse_timestamp, utc_now_iso

logger = logging.getLogger(__name__)

CONVERSATIONS_COLLECTION = "conversations"
USERS_COLLECTION = "users"
SYSTEM_SENDER = "system"


class ChatPermissionError(PermissionError):
    """Raised when an admin account tries to take part in a chat."""


def messages_collection(conversation_id: str) -> str:
    return f"{CONVERSATIONS_COLLECTION}/{conversation_id}/messages"


@dataclass
class ChatService:
    storage: DocumentStorage
    auth: FirebaseAuth | None = None
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    async def is_admin_user(self, user_id: str) -> bool:
        if user_id == SYSTEM_SENDER:
            return False
        try:
            user = await self.storage.get_record(USERS_COLLECTION, user_id)
        except KeyError:
            user = {}
        if user.get("role") == "admin":
            return True
        if self.auth is not None:
            return await self.auth.has_admin_claim(user_id)
        return False

    async def get_or_create_conversation(
        self,
        user_id: str,
        other_user_id: str,
        product_id: str | None = None,
        auction_id: str | None = None,
    ) -> str:
        if not user_id or not other_user_id:
            raise ValueError("User IDs cannot be empty")
        if await self.is_admin_user(user_id) or await self.is_admin_user(other_user_id):
            raise ChatPermissionError("Chat with admin users is not allowed")
        async with self._lock:
            for conversation in await self.storage.list_records(CONVERSATIONS_COLLECTION):
                participants = conversation.get("participants") or []
                if user_id in participants and other_user_id in participants:
                    return conversation["id"]
            now = utc_now_iso()
            record: dict[str, Any] = {
                "participants": [user_id, other_user_id],
                "unreadCount": {user_id: 0, other_user_id: 0},
                "createdAt": now,
                "updatedAt": now,
                "lastMessage": {"content": "", "timestamp": now, "senderId": SYSTEM_SENDER},
            }
            if product_id and product_id.strip():
                record["productId"] = product_id
            if auction_id and auction_id.strip():
                record["auctionId"] = auction_id
            conversation = await self.storage.create_record(CONVERSATIONS_COLLECTION, record)
        logger.info("Conversation %s created between %s and %s", conversation["id"], user_id, other_user_id)
        return conversation["id"]

    async def send_message(
        self, conversation_id: str, sender_id: str, receiver_id: str, content: str
    ) -> dict[str, Any]:
        if not conversation_id or not sender_id or not receiver_id or not content.strip():
            raise ValueError("Required message fields are missing or empty")
        if await self.is_admin_user(sender_id):
            raise ChatPermissionError("Admin users cannot send messages")
        conversation = await self.storage.get_record(CONVERSATIONS_COLLECTION, conversation_id)
        timestamp = utc_now_iso()
        message = await self.storage.create_record(
            messages_collection(conversation_id),
            {
                "senderId": sender_id,
                "receiverId": receiver_id,
                "content": content,
                "timestamp": timestamp,
                "read": False,
            },
        )
        unread = dict(conversation.get("unreadCount") or {sender_id: 0, receiver_id: 0})
        unread[receiver_id] = unread.get(receiver_id, 0) + 1
        await self.storage.update_record(
            CONVERSATIONS_COLLECTION,
            conversation_id,
            {
                "lastMessage": {"content": content, "timestamp": timestamp, "senderId": sender_id},
                "updatedAt": timestamp,
                "unreadCount": unread,
            },
        )
        logger.debug(
            "Message sent in conversation %s, unread for %s now %s",
            conversation_id,
            receiver_id,
            unread[receiver_id],
        )
        return message

    async def list_messages(self, conversation_id: str) -> list[dict[str, Any]]:
        await self.storage.get_record(CONVERSATIONS_COLLECTION, conversation_id)
        messages = await self.storage.list_records(messages_collection(conversation_id))
        messages.sort(key=lambda message: parse_timestamp(message["timestamp"]))
        for message in messages:
            message["displayTime"] = format_chat_time(message.get("timestamp"))
        return messages

    async def mark_read(self, conversation_id: str, user_id: str) -> int:
        conversation = await self.storage.get_record(CONVERSATIONS_COLLECTION, conversation_id)
        unread = dict(conversation.get("unreadCount") or {})
        unread[user_id] = 0
        await self.storage.update_record(
            CONVERSATIONS_COLLECTION, conversation_id, {"unreadCount": unread}
        )
        marked = 0
        collection = messages_collection(conversation_id)
        for message in await self.storage.list_records(collection):
            if message.get("receiverId") == user_id and not message.get("read"):
                await self.storage.update_record(collection, message["id"], {"read": True})
                marked += 1
        return marked

    async def _participant_profile(self, user_id: str) -> tuple[str, str]:
        try:
            user = await self.storage.get_record(USERS_COLLECTION, user_id)
        except KeyError:
            return "Unknown User", ""
        if user.get("fullName"):
            name = user["fullName"]
        elif user.get("firstName") and user.get("lastName"):
            name = f"{user['firstName']} {user['lastName']}"
        else:
            name = user.get("displayName") or user.get("email") or "Unknown User"
        return name, user.get("profileImage") or user.get("photoURL") or ""

    async def list_conversations(self, user_id: str) -> list[dict[str, Any]]:
        """Previews of the user's conversations, most recently active first.

        Conversations with an admin on the other side are left out, matching
        the rule that admins never take part in chats.
        """
        conversations = [
            conversation
            for conversation in await self.storage.list_records(CONVERSATIONS_COLLECTION)
            if user_id in (conversation.get("participants") or [])
        ]
        conversations.sort(
            key=lambda conversation: parse_timestamp(conversation["updatedAt"]), reverse=True
        )
        admin_checked: dict[str, bool] = {}
        previews = []
        for conversation in conversations:
            other_id = next(
                (uid for uid in conversation["participants"] if uid != user_id), None
            )
            if other_id is None:
                continue
            if other_id not in admin_checked:
                admin_checked[other_id] = await self.is_admin_user(other_id)
            if admin_checked[other_id]:
                continue
            name, image = await self._participant_profile(other_id)
            last_message = conversation.get("lastMessage") or {}
            previews.append(
                {
                    "id": conversation["id"],
                    "participantId": other_id,
                    "participantName": name,
                    "participantImage": image,
                    "lastMessage": last_message.get("content"),
                    "lastMessageSender": last_message.get("senderId"),
                    "lastMessageTimestamp": last_message.get("timestamp"),
                    "displayTime": format_chat_time(last_message.get("timestamp")),
                    "unreadCount": (conversation.get("unreadCount") or {}).get(user_id, 0),
                    "productId": conversation.get("productId"),
                    "auctionId": conversation.get("auctionId"),
                }
            )
        return previews

    async def unread_count(self, user_id: str) -> int:
        total = 0
        for conversation in await self.storage.list_records(CONVERSATIONS_COLLECTION):
            if user_id in (conversation.get("participants") or []):
                total += (conversation.get("unreadCount") or {}).get(user_id, 0)
        return total

    async def initialize_order_chat(
        self,
        buyer_id: str,
        seller_id: str,
        product_id: str,
        product_name: str,
        order_id: str,
    ) -> str:
        conversation_id = await self.get_or_create_conversation(buyer_id, seller_id, product_id)
        if await self.storage.list_records(messages_collection(conversation_id)):
            return conversation_id
        short_order = order_id[:8]
        greetings = [
            (
                buyer_id,
                f"Thank you for purchasing {product_name}! "
                f"This chat is now active for order #{short_order}.",
            ),
            (seller_id, "Seller: Please wait for the buyer to share their delivery location."),
            (
                buyer_id,
                "Please share your delivery location details so the seller "
                "can arrange shipping for your order.",
            ),
            (
                SYSTEM_SENDER,
                f"This chat has been activated for order #{short_order}. "
                "You can now communicate about delivery details.",
            ),
        ]
        for receiver_id, content in greetings:
            await self.send_message(conversation_id, SYSTEM_SENDER, receiver_id, content)
        logger.info("Order chat %s initialized for order %s", conversation_id, order_id)
        return conversation_id
