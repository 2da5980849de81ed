"""Delivery of bid creation events to the price update trigger."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .price_update import AUCTIONS_COLLECTION, BidCreatedEvent, PriceUpdateTrigger

logger = logging.getLogger(__name__)

BIDS_COLLECTION_ID = "bids"


class _BindingProtocol:
    async def dispatch(self, event: BidCreatedEvent) -> None:  # pragma: no cover - protocol
        raise NotImplementedError

    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        pass

    def stop(self) -> None:
        pass


class _LocalBinding(_BindingProtocol):
    """Runs the trigger in-process right after the bid document is written."""

    def __init__(self, trigger: PriceUpdateTrigger) -> None:
        self._trigger = trigger

    async def dispatch(self, event: BidCreatedEvent) -> None:
        logger.debug("[local-trigger] auction=%s bid=%s delivered", event.auction_id, event.bid_id)
        await self._trigger.on_bid_created(event)


class _FirestoreBinding(_BindingProtocol):
    """Listens on the ``bids`` collection group and forwards new documents."""

    def __init__(self, trigger: PriceUpdateTrigger, storage: Any) -> None:
        if not hasattr(storage, "watch_collection_group"):
            raise RuntimeError("firestore trigger binding requires the firestore storage backend")
        self._trigger = trigger
        self._storage = storage
        self._loop: asyncio.AbstractEventLoop | None = None
        self._watch: Any = None
        self._primed = False

    async def dispatch(self, event: BidCreatedEvent) -> None:
        # the snapshot listener delivers the event once the write lands
        return None

    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._watch = self._storage.watch_collection_group(BIDS_COLLECTION_ID, self._on_snapshot)

    def stop(self) -> None:
        if self._watch is not None:
            self._watch.unsubscribe()
            self._watch = None

    def _on_snapshot(self, docs, changes, read_time) -> None:
        if not self._primed:
            # the first snapshot replays every existing bid
            self._primed = True
            return
        for change in changes:
            if change.type.name != "ADDED":
                continue
            event = event_from_document(change.document)
            if event is None or self._loop is None:
                continue
            asyncio.run_coroutine_threadsafe(self._trigger.on_bid_created(event), self._loop)


def event_from_document(document: Any) -> BidCreatedEvent | None:
    auction_ref = document.reference.parent.parent
    if auction_ref is None or auction_ref.parent.id != AUCTIONS_COLLECTION:
        return None
    return BidCreatedEvent(
        data=document.to_dict(),
        params={"auction_id": auction_ref.id, "bid_id": document.id},
    )


class BidTriggerBinding:
    def __init__(
        self,
        trigger: PriceUpdateTrigger,
        backend: str = "local",
        storage: Any | None = None,
    ) -> None:
        if backend == "firestore":
            self._binding: _BindingProtocol = _FirestoreBinding(trigger, storage)
        elif backend == "local":
            self._binding = _LocalBinding(trigger)
        else:
            raise ValueError(f"unknown trigger binding {backend}")
        self.backend = backend

    async def dispatch(self, event: BidCreatedEvent) -> None:
        await self._binding.dispatch(event)

    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        self._binding.start(loop)

    def stop(self) -> None:
        self._binding.stop()
