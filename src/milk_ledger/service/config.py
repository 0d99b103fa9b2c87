"""Configuration primitives for the ledger service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum

from ..domain.billing import DEFAULT_CURRENCY, DEFAULT_MESSAGE_BASE_URL
from ..persistence import (
    DEFAULT_STORAGE_KEY,
    JsonFileStore,
    MemoryStore,
    SqliteStateStore,
    StateStore,
)


class StoreBackend(str, Enum):
    """Supported state store backends."""

    JSON = "json"
    SQLITE = "sqlite"
    MEMORY = "memory"


_DEFAULT_PATHS = {
    StoreBackend.JSON: "data/ledger.json",
    StoreBackend.SQLITE: "data/ledger.db",
}


@dataclass(slots=True)
class LedgerConfig:
    """Runtime configuration for the ledger service.

    Configuration Sources (priority order):
    1. Direct constructor arguments
    2. Environment variables (LEDGER_*)
    3. Default values

    Attributes:
        store_backend: Where the ledger record lives (default: json)
        store_path: File for the json/sqlite backends (default per backend)
        storage_key: Key the record is stored under (default: ledger_v1)
        port: Service port (default: 8080)
        currency_symbol: Prefix for amounts in bills (default: ₹)
        message_base_url: Chat link endpoint for bills (default: https://wa.me)
        default_milk_price: Rate used when a new customer omits one (default: 40)
    """

    store_backend: StoreBackend = StoreBackend.JSON
    store_path: str | None = None
    storage_key: str = DEFAULT_STORAGE_KEY
    port: int = 8080
    currency_symbol: str = DEFAULT_CURRENCY
    message_base_url: str = DEFAULT_MESSAGE_BASE_URL
    default_milk_price: float = 40.0
    cors_origins: list[str] = field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )

    @property
    def resolved_store_path(self) -> str | None:
        if self.store_path:
            return self.store_path
        return _DEFAULT_PATHS.get(self.store_backend)

    @classmethod
    def from_env(cls) -> LedgerConfig:
        """Create configuration from environment variables.

        Optional:
            LEDGER_STORE_BACKEND: 'json', 'sqlite' or 'memory'
            LEDGER_STORE_PATH: Path of the json document or sqlite database
            LEDGER_STORAGE_KEY: Record key (default: ledger_v1)
            LEDGER_PORT: Service port (default: 8080)
            LEDGER_CURRENCY_SYMBOL: Currency prefix used in bills
            LEDGER_MESSAGE_BASE_URL: Chat link endpoint
            LEDGER_DEFAULT_MILK_PRICE: Rate for customers created without one
            LEDGER_CORS_ORIGINS: Comma-separated list of allowed origins
        """
        config = cls(
            store_backend=StoreBackend(
                os.environ.get("LEDGER_STORE_BACKEND", "json").lower()
            ),
            store_path=os.environ.get("LEDGER_STORE_PATH") or None,
            storage_key=os.environ.get("LEDGER_STORAGE_KEY", DEFAULT_STORAGE_KEY),
            port=int(os.environ.get("LEDGER_PORT", "8080")),
            currency_symbol=os.environ.get("LEDGER_CURRENCY_SYMBOL", DEFAULT_CURRENCY),
            message_base_url=os.environ.get(
                "LEDGER_MESSAGE_BASE_URL", DEFAULT_MESSAGE_BASE_URL
            ),
            default_milk_price=float(os.environ.get("LEDGER_DEFAULT_MILK_PRICE", "40")),
        )

        origins_str = os.environ.get("LEDGER_CORS_ORIGINS", "")
        if origins_str:
            config.cors_origins = [o.strip() for o in origins_str.split(",") if o.strip()]

        return config

    def build_store(self) -> StateStore:
        """Instantiate the configured state store."""
        if self.store_backend is StoreBackend.SQLITE:
            return SqliteStateStore(self.resolved_store_path, storage_key=self.storage_key)
        if self.store_backend is StoreBackend.MEMORY:
            return MemoryStore(storage_key=self.storage_key)
        return JsonFileStore(self.resolved_store_path, storage_key=self.storage_key)
