from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from jsonschema import ValidationError

from .admin import health as admin_health
from .admin import stats as admin_stats
from .auctions.bids import BidService
from .auth import FirebaseAuth
from .catalog import routes as catalog_routes
from .catalog.service import ListingService
from .chat import routes as chat_routes
from .chat.service import ChatService
from .config import ServerConfig, get_server_config
from .logging import configure_logging
from .orders import routes as order_routes
from .orders.service import OrderService
from .payments import routes as payment_routes
from .payments.service import PaymentError, PaymentService
from .storage import build_storage
from .triggers import BidTriggerBinding, PriceUpdateTrigger
from .validation.validator import SchemaRegistry, get_schema_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    server_config = get_server_config()
    configure_logging(server_config.log_level)
    schema_registry = get_schema_registry()
    storage = build_storage(server_config)
    firebase_auth = FirebaseAuth(server_config.auth)
    trigger = PriceUpdateTrigger(storage, mode=server_config.auction.price_update)
    binding = BidTriggerBinding(
        trigger,
        backend=server_config.auction.trigger_binding,
        storage=storage,
    )
    orders = OrderService(storage)

    app.state.server_config = server_config
    app.state.schema_registry = schema_registry
    app.state.storage = storage
    app.state.firebase_auth = firebase_auth
    app.state.price_trigger = trigger
    app.state.trigger_binding = binding
    app.state.listings = ListingService(storage)
    app.state.bids = BidService(storage, binding)
    app.state.orders = orders
    app.state.payments = PaymentService(server_config.payments, orders)
    app.state.chat = ChatService(
        storage, auth=firebase_auth if server_config.auth.enabled else None
    )
    app.state.start_time = datetime.now(timezone.utc)

    binding.start(asyncio.get_running_loop())
    logger.info(
        "Marketplace server started storage=%s trigger=%s price_update=%s",
        server_config.storage.backend,
        binding.backend,
        trigger.mode,
    )
    try:
        yield
    finally:
        binding.stop()


app = FastAPI(
    title="BidNThrift Marketplace Server",
    version="1.0.0",
    docs_url="/docs",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(admin_health.router)
app.include_router(admin_stats.router)
app.include_router(catalog_routes.router)
app.include_router(payment_routes.router)
app.include_router(order_routes.router)
app.include_router(chat_routes.router)


@app.exception_handler(PaymentError)
async def handle_payment_error(_request: Request, exc: PaymentError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# Dependency helpers ---------------------------------------------------------


def get_server_settings(request: Request) -> ServerConfig:
    return request.app.state.server_config


def get_schema_service(request: Request) -> SchemaRegistry:
    return request.app.state.schema_registry


def get_listing_service(request: Request) -> ListingService:
    return request.app.state.listings


def get_bid_service(request: Request) -> BidService:
    return request.app.state.bids


# Routes ---------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root(settings: ServerConfig = Depends(get_server_settings)) -> dict[str, Any]:
    return {
        "service": "bidnthrift",
        "version": app.version,
        "storage_backend": settings.storage.backend,
        "auction": {
            "price_update": settings.auction.price_update,
            "trigger_binding": settings.auction.trigger_binding,
        },
    }


@app.get("/config", tags=["meta"])
async def client_config(settings: ServerConfig = Depends(get_server_settings)) -> dict[str, Any]:
    return settings.client.to_public_dict()


@app.get("/auctions/{auction_id}", tags=["auctions"])
async def get_auction(
    auction_id: str,
    listings: ListingService = Depends(get_listing_service),
) -> dict[str, Any]:
    try:
        return await listings.get_auction(auction_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Auction not found") from exc


@app.post("/auctions/{auction_id}/bids", tags=["auctions"], status_code=status.HTTP_201_CREATED)
async def place_bid(
    auction_id: str,
    payload: dict[str, Any] = Body(...),
    bids: BidService = Depends(get_bid_service),
    schemas: SchemaRegistry = Depends(get_schema_service),
) -> dict[str, Any]:
    try:
        schemas.validate("bid", payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc.message)) from exc
    try:
        return await bids.place_bid(auction_id, payload["amount"], payload.get("bidderId"))
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Auction not found") from exc


@app.get("/auctions/{auction_id}/bids", tags=["auctions"])
async def list_bids(
    auction_id: str,
    bids: BidService = Depends(get_bid_service),
) -> list[dict[str, Any]]:
    try:
        return await bids.list_bids(auction_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Auction not found") from exc
