"""Firestore storage backend leveraging google-cloud-firestore."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.oauth2 import service_account

from ..utils.dates import parse_timestamp


class FirestoreStorage:
    def __init__(
        self,
        *,
        project_id: str,
        credentials_path: str | None = None,
        counters_collection: str = "_counters",
    ) -> None:
        if not project_id:
            raise ValueError("project_id required for firestore backend")
        client_kwargs: dict[str, Any] = {"project": project_id}
        if credentials_path:
            client_kwargs["credentials"] = service_account.Credentials.from_service_account_file(
                credentials_path
            )
        self._client = firestore.Client(**client_kwargs)
        self._counters_collection = counters_collection

    def _collection(self, collection: str):
        return self._client.collection(collection)

    def _counter_ref(self, collection: str):
        # document ids cannot contain "/"
        return self._client.collection(self._counters_collection).document(
            collection.replace("/", "__")
        )

    async def _run(self, func: Callable, *args, **kwargs):
        return await asyncio.to_thread(func, *args, **kwargs)

    @staticmethod
    def _with_id(doc) -> dict[str, Any]:
        data = doc.to_dict() or {}
        data.setdefault("id", doc.id)
        return data

    async def list_records(self, collection: str) -> list[dict[str, Any]]:
        docs = await self._run(lambda: list(self._collection(collection).stream()))
        return [self._with_id(doc) for doc in docs]

    async def get_record(self, collection: str, record_id: str) -> dict[str, Any]:
        doc = await self._run(self._collection(collection).document(record_id).get)
        if not doc.exists:
            raise KeyError(f"{collection}/{record_id} not found")
        return self._with_id(doc)

    async def create_record(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        counter_ref = self._counter_ref(collection)
        documents = self._collection(collection)

        @firestore.transactional
        def _create(transaction) -> dict[str, Any]:
            snapshot = counter_ref.get(transaction=transaction)
            count = (snapshot.to_dict() or {}).get("count", 0) if snapshot.exists else 0
            explicit_id = record.get("id")
            if explicit_id:
                stored = dict(record)
                if str(explicit_id).isdigit() and int(explicit_id) > count:
                    transaction.set(counter_ref, {"count": int(explicit_id)})
            else:
                candidate = count + 1
                # skip numbers already taken by records created with explicit ids
                while documents.document(str(candidate)).get(transaction=transaction).exists:
                    candidate += 1
                stored = {**record, "id": str(candidate)}
                transaction.set(counter_ref, {"count": candidate})
            transaction.set(documents.document(str(stored["id"])), stored)
            return stored

        return await self._run(_create, self._client.transaction())

    async def update_record(
        self, collection: str, record_id: str, updates: dict[str, Any]
    ) -> dict[str, Any]:
        ref = self._collection(collection).document(record_id)
        try:
            await self._run(ref.update, updates)
        except gcp_exceptions.NotFound as exc:
            raise KeyError(f"{collection}/{record_id} not found") from exc
        return await self.get_record(collection, record_id)

    async def update_if_newer(
        self,
        collection: str,
        record_id: str,
        updates: dict[str, Any],
        *,
        field: str,
        value: str,
    ) -> bool:
        ref = self._collection(collection).document(record_id)

        @firestore.transactional
        def _apply(transaction) -> bool:
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                raise KeyError(f"{collection}/{record_id} not found")
            current = (snapshot.to_dict() or {}).get(field)
            if current and parse_timestamp(current) >= parse_timestamp(value):
                return False
            transaction.update(ref, {**updates, field: value})
            return True

        return await self._run(_apply, self._client.transaction())

    def watch_collection_group(self, collection_id: str, callback: Callable) -> Any:
        """Subscribe to snapshot changes on every collection named ``collection_id``."""
        return self._client.collection_group(collection_id).on_snapshot(callback)
