"""Bid ingestion: store the immutable bid, then hand its creation event on."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from ..catalog.service import AUCTIONS_COLLECTION
from ..storage import DocumentStorage
from ..triggers import BidCreatedEvent, BidTriggerBinding
from ..utils.dates import parse_timestamp, utc_now_iso

logger = logging.getLogger(__name__)


def bids_collection(auction_id: str) -> str:
    return f"{AUCTIONS_COLLECTION}/{auction_id}/bids"


@dataclass
class BidService:
    storage: DocumentStorage
    binding: BidTriggerBinding

    async def place_bid(self, auction_id: str, amount: Any, bidder_id: str | None) -> dict[str, Any]:
        # raises KeyError for unknown auctions
        await self.storage.get_record(AUCTIONS_COLLECTION, auction_id)
        bid = {
            "id": uuid.uuid4().hex,
            "auctionId": auction_id,
            "amount": amount,
            "bidderId": bidder_id,
            "createdAt": utc_now_iso(),
        }
        stored = await self.storage.create_record(bids_collection(auction_id), bid)
        logger.info("Bid %s of %s placed on auction %s", stored["id"], amount, auction_id)
        await self.binding.dispatch(
            BidCreatedEvent(data=stored, params={"auction_id": auction_id, "bid_id": stored["id"]})
        )
        return stored

    async def list_bids(self, auction_id: str) -> list[dict[str, Any]]:
        await self.storage.get_record(AUCTIONS_COLLECTION, auction_id)
        bids = await self.storage.list_records(bids_collection(auction_id))
        return sorted(bids, key=lambda bid: parse_timestamp(bid["createdAt"]))
