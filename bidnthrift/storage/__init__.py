"""Storage backend factory."""

from __future__ import annotations

from typing import Any, Protocol

from ..config import ServerConfig
from .in_memory import InMemoryStorage
from .firestore import FirestoreStorage
from .seed import SAMPLE_COLLECTIONS


class DocumentStorage(Protocol):
    """Document store addressed by collection path and record id.

    Collection paths may be nested, e.g. ``auctions/1/bids``. ``create_record``
    assigns ``id`` as the stringified count-plus-one of the collection when
    the record carries none.
    """

    async def list_records(self, collection: str) -> list[dict]: ...

    async def get_record(self, collection: str, record_id: str) -> dict: ...

    async def create_record(self, collection: str, record: dict) -> dict: ...

    async def update_record(self, collection: str, record_id: str, updates: dict) -> dict: ...

    async def update_if_newer(
        self,
        collection: str,
        record_id: str,
        updates: dict,
        *,
        field: str,
        value: str,
    ) -> bool: ...


def build_storage(config: ServerConfig) -> DocumentStorage:
    backend = config.storage.backend
    options: dict[str, Any] = dict(config.storage.options)
    if backend == "in_memory":
        seed = options.pop("seed", True)
        return InMemoryStorage(initial=SAMPLE_COLLECTIONS if seed else None)
    if backend == "firestore":
        return FirestoreStorage(**options)
    raise ValueError(f"unknown storage backend {backend}")
