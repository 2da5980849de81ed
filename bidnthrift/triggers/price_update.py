"""Keep an auction's ``currentPrice`` in step with newly created bids."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..storage import DocumentStorage

logger = logging.getLogger(__name__)

AUCTIONS_COLLECTION = "auctions"


@dataclass(frozen=True)
class BidCreatedEvent:
    """Creation event for ``auctions/{auction_id}/bids/{bid_id}``."""

    data: dict[str, Any] | None
    params: dict[str, str] = field(default_factory=dict)

    @property
    def auction_id(self) -> str:
        return self.params["auction_id"]

    @property
    def bid_id(self) -> str:
        return self.params.get("bid_id", "")


class PriceUpdateOutcome(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    STALE = "stale"
    FAILED = "failed"


class PriceUpdateTrigger:
    """Writes the bid amount into the parent auction.

    ``last_write_wins`` issues one unconditional field update per event, so
    interleaved deliveries leave whichever write committed last. ``ordered``
    routes the write through the store's conditional update keyed on the
    bid's ``createdAt``; older or repeated events become no-ops.
    """

    def __init__(self, storage: DocumentStorage, mode: str = "last_write_wins") -> None:
        self._storage = storage
        self._mode = mode

    @property
    def mode(self) -> str:
        return self._mode

    async def on_bid_created(self, event: BidCreatedEvent) -> PriceUpdateOutcome:
        if event.data is None:
            logger.warning(
                "No data in bid creation event auction=%s bid=%s",
                event.params.get("auction_id"),
                event.bid_id,
            )
            return PriceUpdateOutcome.SKIPPED
        try:
            amount = event.data["amount"]
            if self._mode == "ordered":
                applied = await self._storage.update_if_newer(
                    AUCTIONS_COLLECTION,
                    event.auction_id,
                    {"currentPrice": amount},
                    field="lastBidAt",
                    value=event.data["createdAt"],
                )
                if not applied:
                    logger.info(
                        "Ignored stale bid %s for auction %s", event.bid_id, event.auction_id
                    )
                    return PriceUpdateOutcome.STALE
            else:
                await self._storage.update_record(
                    AUCTIONS_COLLECTION, event.auction_id, {"currentPrice": amount}
                )
        except Exception:
            logger.exception(
                "Failed to update current price for auction %s from bid %s",
                event.params.get("auction_id"),
                event.bid_id,
            )
            return PriceUpdateOutcome.FAILED
        logger.info("Auction %s current price set to %s", event.auction_id, amount)
        return PriceUpdateOutcome.APPLIED
