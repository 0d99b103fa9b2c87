"""Synchronous client for the ledger service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://127.0.0.1:8080"


# ---------------------------------------------------------------------------
# Response Models (mirror the server models)
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Customer:
    id: str
    name: str
    phone: str
    milk_price: float

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Customer:
        return cls(
            id=data["id"],
            name=data["name"],
            phone=data["phone"],
            milk_price=data["milkPrice"],
        )


@dataclass(slots=True)
class OtherItem:
    name: str
    price: float
    id: str | None = None


@dataclass(slots=True)
class DayEntry:
    """A day's deliveries as returned by the service."""

    date: str
    am_qty: float = 0.0
    pm_qty: float = 0.0
    other_items: list[OtherItem] = field(default_factory=list)
    note: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> DayEntry:
        return cls(
            date=data["date"],
            am_qty=data.get("amQty", 0.0),
            pm_qty=data.get("pmQty", 0.0),
            other_items=[
                OtherItem(id=i.get("id"), name=i.get("name", ""), price=i.get("price", 0.0))
                for i in data.get("otherItems", [])
            ],
            note=data.get("note"),
        )


@dataclass(slots=True)
class MonthTotals:
    total_milk_liters: float
    milk_amount: float
    other_amount: float
    grand_total: float


@dataclass(slots=True)
class PaymentStatus:
    year_month: str
    paid: bool
    method: str | None = None
    reference: str | None = None


@dataclass(slots=True)
class Bill:
    year_month: str
    text: str
    url: str


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LedgerClientError(Exception):
    """Base exception for ledger client errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class LedgerConnectionError(LedgerClientError):
    """Connection to the ledger service failed."""


class LedgerNotFoundError(LedgerClientError):
    """Customer not found."""


class LedgerConflictError(LedgerClientError):
    """Phone number already registered."""


class LedgerValidationError(LedgerClientError):
    """Request rejected as malformed."""


_STATUS_ERRORS: dict[int, type[LedgerClientError]] = {
    404: LedgerNotFoundError,
    409: LedgerConflictError,
    422: LedgerValidationError,
}


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class LedgerClientConfig:
    """Configuration for LedgerClient."""

    base_url: str = DEFAULT_URL
    timeout: float = 10.0

    @classmethod
    def from_env(cls) -> LedgerClientConfig:
        """Load configuration from LEDGER_URL and LEDGER_TIMEOUT."""
        return cls(
            base_url=os.environ.get("LEDGER_URL", DEFAULT_URL),
            timeout=float(os.environ.get("LEDGER_TIMEOUT", "10.0")),
        )


class LedgerClient:
    """Client for the ledger service.

    No retries: a failed request raises immediately.

    Example:
        >>> with LedgerClient("http://127.0.0.1:8080") as client:
        ...     cid = client.create_customer("Asha", "919900000001", 40)
        ...     client.upsert_day_entry(cid, "2024-03-05", am_qty=1, pm_qty=0.5)
        ...     print(client.get_bill(cid, "2024-03").url)
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ):
        self._config = LedgerClientConfig(
            base_url=(base_url or DEFAULT_URL).rstrip("/"),
            timeout=timeout,
        )
        self._client = http_client
        self._owns_client = http_client is None

    @classmethod
    def from_env(cls) -> LedgerClient:
        """Create a client configured from LEDGER_URL and LEDGER_TIMEOUT."""
        config = LedgerClientConfig.from_env()
        return cls(config.base_url, timeout=config.timeout)

    def __enter__(self) -> LedgerClient:
        self._ensure_client()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _ensure_client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
            )
            self._owns_client = True
        return self._client

    def close(self) -> None:
        """Close the underlying connection if this client opened it."""
        if self._owns_client and self._client and not self._client.is_closed:
            self._client.close()
            self._client = None

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        correlation_id: str | None = None,
    ) -> Any:
        client = self._ensure_client()
        headers = {"X-Correlation-ID": correlation_id} if correlation_id else None

        try:
            response = client.request(method, path, json=json, params=params, headers=headers)
        except httpx.ConnectError as e:
            raise LedgerConnectionError(f"Connection failed: {e}") from e
        except httpx.TimeoutException as e:
            raise LedgerConnectionError(f"Request timed out: {e}") from e

        logger.debug(f"{method} {path} -> {response.status_code}")
        if response.status_code >= 400:
            try:
                body = response.json()
                detail = body.get("detail", response.text) if isinstance(body, dict) else body
            except ValueError:
                detail = response.text
            error_cls = _STATUS_ERRORS.get(response.status_code, LedgerClientError)
            raise error_cls(f"HTTP {response.status_code}: {detail}", response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # -----------------------------------------------------------------------
    # Customers
    # -----------------------------------------------------------------------

    def list_customers(self) -> list[Customer]:
        return [Customer.from_json(c) for c in self._request("GET", "/customers")]

    def create_customer(
        self,
        name: str,
        phone: str,
        milk_price: float | None = None,
    ) -> str:
        """Register a customer and return its id.

        Raises:
            LedgerConflictError: If the phone is already registered.
        """
        payload: dict[str, Any] = {"name": name, "phone": phone}
        if milk_price is not None:
            payload["milkPrice"] = milk_price
        return self._request("POST", "/customers", json=payload)["id"]

    def get_customer(self, customer_id: str) -> Customer | None:
        try:
            return Customer.from_json(self._request("GET", f"/customers/{customer_id}"))
        except LedgerNotFoundError:
            return None

    def find_customer_by_phone(self, phone: str) -> Customer | None:
        try:
            data = self._request("GET", "/customers/lookup", params={"phone": phone})
        except LedgerNotFoundError:
            return None
        return Customer.from_json(data)

    def update_customer(
        self,
        customer_id: str,
        *,
        name: str | None = None,
        phone: str | None = None,
        milk_price: float | None = None,
    ) -> None:
        payload: dict[str, Any] = {}
        if name is not None:
            payload["name"] = name
        if phone is not None:
            payload["phone"] = phone
        if milk_price is not None:
            payload["milkPrice"] = milk_price
        self._request("PATCH", f"/customers/{customer_id}", json=payload)

    def delete_customer(self, customer_id: str) -> None:
        self._request("DELETE", f"/customers/{customer_id}")

    # -----------------------------------------------------------------------
    # Entries
    # -----------------------------------------------------------------------

    def get_month_entries(self, customer_id: str, year_month: str) -> list[DayEntry]:
        data = self._request("GET", f"/customers/{customer_id}/months/{year_month}/entries")
        return [DayEntry.from_json(e) for e in data]

    def upsert_day_entry(
        self,
        customer_id: str,
        day: str,
        *,
        am_qty: float = 0.0,
        pm_qty: float = 0.0,
        other_items: list[OtherItem] | None = None,
        note: str | None = None,
    ) -> None:
        payload: dict[str, Any] = {
            "amQty": am_qty,
            "pmQty": pm_qty,
            "otherItems": [
                {"id": i.id, "name": i.name, "price": i.price} for i in other_items or []
            ],
            "note": note,
        }
        self._request("PUT", f"/customers/{customer_id}/entries/{day}", json=payload)

    def mark_no_delivery(self, customer_id: str, day: str, note: str | None = None) -> None:
        self._request(
            "POST",
            f"/customers/{customer_id}/entries/{day}/no-delivery",
            json={"note": note},
        )

    def remove_other_item(self, customer_id: str, day: str, item_id: str) -> None:
        self._request("DELETE", f"/customers/{customer_id}/entries/{day}/items/{item_id}")

    # -----------------------------------------------------------------------
    # Totals, payments, bills
    # -----------------------------------------------------------------------

    def get_totals(self, customer_id: str, year_month: str) -> MonthTotals:
        data = self._request("GET", f"/customers/{customer_id}/months/{year_month}/totals")
        return MonthTotals(
            total_milk_liters=data["totalMilkLiters"],
            milk_amount=data["milkAmount"],
            other_amount=data["otherAmount"],
            grand_total=data["grandTotal"],
        )

    def get_payment_status(self, customer_id: str, year_month: str) -> PaymentStatus:
        data = self._request("GET", f"/customers/{customer_id}/months/{year_month}/payment")
        return self._payment(data)

    def set_payment_status(
        self,
        customer_id: str,
        year_month: str,
        **fields: Any,
    ) -> PaymentStatus:
        """Merge ``paid``, ``method`` and/or ``reference`` into the month's record.

        Passing ``method=None`` or ``reference=None`` clears the stored value.
        """
        unknown = set(fields) - {"paid", "method", "reference"}
        if unknown:
            raise TypeError(f"Unknown payment fields: {sorted(unknown)}")
        data = self._request(
            "PATCH",
            f"/customers/{customer_id}/months/{year_month}/payment",
            json=fields,
        )
        return self._payment(data)

    def get_bill(
        self,
        customer_id: str,
        year_month: str,
        *,
        correlation_id: str | None = None,
    ) -> Bill:
        data = self._request(
            "GET",
            f"/customers/{customer_id}/months/{year_month}/bill",
            correlation_id=correlation_id,
        )
        return Bill(year_month=data["yearMonth"], text=data["text"], url=data["url"])

    @staticmethod
    def _payment(data: dict[str, Any]) -> PaymentStatus:
        return PaymentStatus(
            year_month=data["yearMonth"],
            paid=data["paid"],
            method=data.get("method"),
            reference=data.get("reference"),
        )
