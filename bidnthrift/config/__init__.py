"""Configuration helpers for the marketplace server.

Each setting resolves with the precedence explicit override > environment
variable > YAML file > built-in default. The result is cached for the life
of the process.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml

_DEFAULT_SERVER_CONFIG = Path(__file__).resolve().parent / "server.yaml"

PRICE_UPDATE_MODES = ("last_write_wins", "ordered")


@dataclass(frozen=True)
class StorageConfig:
    backend: str
    options: Mapping[str, Any]


@dataclass(frozen=True)
class AuctionConfig:
    price_update: str
    trigger_binding: str


@dataclass(frozen=True)
class PaymentsConfig:
    secret_key: str
    webhook_secret: str
    currency: str
    checkout_currency: str
    success_url: str
    cancel_url: str


@dataclass(frozen=True)
class CurrencyConfig:
    code: str
    symbol: str
    npr_to_inr_rate: float


@dataclass(frozen=True)
class ClientConfig:
    api_url: str
    stripe_publishable_key: str
    currency: CurrencyConfig

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "apiUrl": self.api_url,
            "stripe": {"publishableKey": self.stripe_publishable_key},
            "currency": {
                "code": self.currency.code,
                "symbol": self.currency.symbol,
                "nprToInrRate": self.currency.npr_to_inr_rate,
            },
        }


@dataclass(frozen=True)
class AuthConfig:
    enabled: bool
    project_id: str | None
    credentials_path: str | None


@dataclass(frozen=True)
class ServerConfig:
    storage: StorageConfig
    auction: AuctionConfig
    payments: PaymentsConfig
    client: ClientConfig
    auth: AuthConfig
    log_level: str


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    return yaml.safe_load(path.read_text()) or {}


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


class _Resolver:
    """Looks a dotted key up in overrides, then the environment, then YAML."""

    def __init__(self, data: Mapping[str, Any], overrides: Mapping[str, Any]) -> None:
        self._data = data
        self._overrides = overrides

    def get(self, key: str, env: str | None, default: Any) -> Any:
        if key in self._overrides:
            return self._overrides[key]
        if env:
            value = os.getenv(env)
            if value:
                return value
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return default
            node = node[part]
        return default if node is None else node


def load_server_config(
    path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ServerConfig:
    path = path or Path(os.getenv("BIDNTHRIFT_CONFIG_PATH", _DEFAULT_SERVER_CONFIG))
    data = _load_yaml(path)
    cfg = _Resolver(data, overrides or {})

    price_update = str(cfg.get("auction.price_update", "PRICE_UPDATE_MODE", "last_write_wins"))
    if price_update not in PRICE_UPDATE_MODES:
        raise ValueError(f"unknown price update mode {price_update}")

    storage_options = dict(cfg.get("storage.options", None, {}) or {})
    project_id = cfg.get("auth.project_id", "FIREBASE_PROJECT_ID", None)
    credentials_path = cfg.get("auth.credentials_path", "GOOGLE_APPLICATION_CREDENTIALS", None)
    backend = str(cfg.get("storage.backend", "BIDNTHRIFT_STORAGE_BACKEND", "in_memory"))
    if backend == "firestore":
        storage_options.setdefault("project_id", project_id)
        if credentials_path:
            storage_options.setdefault("credentials_path", credentials_path)

    return ServerConfig(
        storage=StorageConfig(backend=backend, options=storage_options),
        auction=AuctionConfig(
            price_update=price_update,
            trigger_binding=str(
                cfg.get("auction.trigger_binding", None, "firestore" if backend == "firestore" else "local")
            ),
        ),
        payments=PaymentsConfig(
            secret_key=str(cfg.get("payments.secret_key", "STRIPE_SECRET_KEY", "")),
            webhook_secret=str(cfg.get("payments.webhook_secret", "STRIPE_WEBHOOK_SECRET", "")),
            currency=str(cfg.get("payments.currency", "PAYMENT_CURRENCY", "npr")).lower(),
            checkout_currency=str(cfg.get("payments.checkout_currency", None, "usd")).lower(),
            success_url=str(
                cfg.get("payments.success_url", None, "http://localhost:8080/payment/success")
            ),
            cancel_url=str(
                cfg.get("payments.cancel_url", None, "http://localhost:8080/payment/cancel")
            ),
        ),
        client=ClientConfig(
            api_url=str(cfg.get("client.api_url", "API_URL", "http://localhost:5002")),
            stripe_publishable_key=str(
                cfg.get("client.stripe_publishable_key", "STRIPE_PUBLISHABLE_KEY", "")
            ),
            currency=CurrencyConfig(
                code=str(cfg.get("client.currency.code", None, "NPR")),
                symbol=str(cfg.get("client.currency.symbol", None, "Rs.")),
                npr_to_inr_rate=float(cfg.get("client.currency.npr_to_inr_rate", None, 0.625)),
            ),
        ),
        auth=AuthConfig(
            enabled=_as_bool(cfg.get("auth.enabled", "AUTH_ENABLED", False)),
            project_id=project_id,
            credentials_path=credentials_path,
        ),
        log_level=str(cfg.get("logging.level", "LOG_LEVEL", "INFO")).upper(),
    )


@lru_cache(maxsize=1)
def get_server_config() -> ServerConfig:
    return load_server_config()
