"""In-memory storage backend for catalog, auction, order and chat records."""

from __future__ import annotations

import asyncio
from copy import deepcopy
from typing import Any, Mapping

from ..utils.dates import parse_timestamp


class InMemoryStorage:
    def __init__(self, initial: Mapping[str, list[dict[str, Any]]] | None = None) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()
        for collection, records in (initial or {}).items():
            bucket = self._collections.setdefault(collection, {})
            for record in records:
                bucket[record["id"]] = deepcopy(record)

    async def list_records(self, collection: str) -> list[dict[str, Any]]:
        async with self._lock:
            return [deepcopy(record) for record in self._collections.get(collection, {}).values()]

    async def get_record(self, collection: str, record_id: str) -> dict[str, Any]:
        async with self._lock:
            try:
                return deepcopy(self._collections[collection][record_id])
            except KeyError as exc:
                raise KeyError(f"{collection}/{record_id} not found") from exc

    async def create_record(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        async with self._lock:
            bucket = self._collections.setdefault(collection, {})
            stored = deepcopy(record)
            if not stored.get("id"):
                candidate = len(bucket) + 1
                # records stored with explicit ids may already hold the next number
                while str(candidate) in bucket:
                    candidate += 1
                stored["id"] = str(candidate)
            bucket[stored["id"]] = stored
            return deepcopy(stored)

    async def update_record(
        self, collection: str, record_id: str, updates: dict[str, Any]
    ) -> dict[str, Any]:
        async with self._lock:
            record = self._collections.get(collection, {}).get(record_id)
            if record is None:
                raise KeyError(f"{collection}/{record_id} not found")
            record.update(deepcopy(updates))
            return deepcopy(record)

    async def update_if_newer(
        self,
        collection: str,
        record_id: str,
        updates: dict[str, Any],
        *,
        field: str,
        value: str,
    ) -> bool:
        async with self._lock:
            record = self._collections.get(collection, {}).get(record_id)
            if record is None:
                raise KeyError(f"{collection}/{record_id} not found")
            current = record.get(field)
            if current and parse_timestamp(current) >= parse_timestamp(value):
                return False
            record.update(deepcopy(updates))
            record[field] = value
            return True
