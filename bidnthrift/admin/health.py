"""Admin health endpoint: store reachability and the bid trigger wiring."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request

from ..catalog.service import AUCTIONS_COLLECTION

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    state = request.app.state
    started = getattr(state, "start_time", None)
    uptime = int((datetime.now(timezone.utc) - started).total_seconds()) if started else 0

    storage_status = "ok"
    try:
        live_auctions = len(await state.storage.list_records(AUCTIONS_COLLECTION))
    except Exception as exc:  # the endpoint reports the failure instead of raising it
        logger.warning("Health check could not read %s: %s", AUCTIONS_COLLECTION, exc)
        storage_status = "unreachable"
        live_auctions = None

    return {
        "status": "healthy" if storage_status == "ok" else "degraded",
        "uptime_seconds": uptime,
        "version": request.app.version,
        "storage": {
            "backend": state.server_config.storage.backend,
            "status": storage_status,
            "auctions": live_auctions,
        },
        "bid_trigger": {
            "binding": state.trigger_binding.backend,
            "price_update": state.price_trigger.mode,
        },
        "auth_enabled": state.server_config.auth.enabled,
    }
