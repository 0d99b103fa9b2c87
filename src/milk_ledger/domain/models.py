"""Ledger data model - customers, day entries and monthly payment status.

Values are immutable. Edits go through the patch types, which build a new
value from an existing one field by field. Serialization uses the camelCase
keys of the ``ledger_v1`` storage record so a browser export loads as-is.
"""

from __future__ import annotations

import logging
import math
import re
import uuid
from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, NamedTuple

_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Key helpers
# ---------------------------------------------------------------------------


def new_id() -> str:
    """Generate a short opaque identifier for customers and line items."""
    return uuid.uuid4().hex[:8]


def year_month(value: date | str) -> str:
    """Normalize a date, ``YYYY-MM`` or ``YYYY-MM-DD`` value to ``YYYY-MM``.

    Raises:
        ValueError: If the value is not a valid calendar month or day
    """
    if isinstance(value, date):
        return f"{value.year:04d}-{value.month:02d}"

    text = str(value).strip()
    match = _YEAR_MONTH_RE.match(text)
    if match:
        if not 1 <= int(match.group(2)) <= 12:
            raise ValueError(f"Invalid year-month: {value!r}")
        return text
    return day_key(text)[:7]


def day_key(value: date | str) -> str:
    """Normalize a date or ``YYYY-MM-DD`` string to a ``YYYY-MM-DD`` key."""
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip()
    if not _DAY_RE.match(text):
        raise ValueError(f"Invalid date: {value!r}")
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError as e:
        raise ValueError(f"Invalid date: {value!r}") from e


def coerce_number(value: Any) -> float:
    """Coerce loosely typed numeric input to a float, falling back to zero."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


class MonthKey(NamedTuple):
    """Composite key for per-customer monthly tables."""

    customer_id: str
    year_month: str


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class PaymentMethod(str, Enum):
    """How a month's bill was settled."""

    CASH = "cash"
    ONLINE = "online"


@dataclass(frozen=True, slots=True)
class Customer:
    """A delivery customer with their per-liter milk rate."""

    id: str
    name: str
    phone: str
    milk_price: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "milkPrice": self.milk_price,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Customer:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            phone=str(data.get("phone", "")),
            milk_price=coerce_number(data.get("milkPrice")),
        )


@dataclass(frozen=True, slots=True)
class OtherItem:
    """An ad-hoc line item (bread, curd, ...) delivered on a given day."""

    id: str
    name: str
    price: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "price": self.price}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OtherItem:
        return cls(
            id=str(data.get("id") or new_id()),
            name=str(data.get("name", "")),
            price=coerce_number(data.get("price")),
        )


@dataclass(frozen=True, slots=True)
class DayEntry:
    """Deliveries recorded for one customer on one calendar date.

    Attributes:
        date: ``YYYY-MM-DD`` key, unique per customer
        am_qty: Morning milk in liters
        pm_qty: Evening milk in liters
        other_items: Line items in entry order
        note: Free text such as "On leave"
    """

    date: str
    am_qty: float = 0.0
    pm_qty: float = 0.0
    other_items: tuple[OtherItem, ...] = ()
    note: str | None = None

    @property
    def year_month(self) -> str:
        return year_month(self.date)

    @property
    def liters(self) -> float:
        return self.am_qty + self.pm_qty

    @property
    def other_amount(self) -> float:
        return sum(item.price for item in self.other_items)

    def without_item(self, item_id: str) -> DayEntry:
        """Return a copy with the given line item filtered out."""
        return replace(
            self,
            other_items=tuple(i for i in self.other_items if i.id != item_id),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "date": self.date,
            "amQty": self.am_qty,
            "pmQty": self.pm_qty,
            "otherItems": [item.to_dict() for item in self.other_items],
        }
        if self.note is not None:
            d["note"] = self.note
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DayEntry:
        note = data.get("note")
        return cls(
            date=day_key(data["date"]),
            am_qty=coerce_number(data.get("amQty")),
            pm_qty=coerce_number(data.get("pmQty")),
            other_items=tuple(
                OtherItem.from_dict(item) for item in data.get("otherItems") or []
            ),
            note=None if note is None else str(note),
        )


@dataclass(frozen=True, slots=True)
class PaymentStatus:
    """Whether a customer's bill for a month has been settled."""

    year_month: str
    paid: bool = False
    method: PaymentMethod | None = None
    reference: str | None = None

    @classmethod
    def unpaid(cls, key: str) -> PaymentStatus:
        return cls(year_month=key)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"yearMonth": self.year_month, "paid": self.paid}
        if self.method is not None:
            d["method"] = self.method.value
        if self.reference is not None:
            d["reference"] = self.reference
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PaymentStatus:
        method = data.get("method")
        try:
            parsed_method = PaymentMethod(method) if method else None
        except ValueError:
            parsed_method = None
        reference = data.get("reference")
        return cls(
            year_month=year_month(data["yearMonth"]),
            paid=bool(data.get("paid", False)),
            method=parsed_method,
            reference=None if reference is None else str(reference),
        )


@dataclass(frozen=True, slots=True)
class MonthTotals:
    """Derived monthly figures, rounded to 2 decimals. Never persisted."""

    total_milk_liters: float
    milk_amount: float
    other_amount: float
    grand_total: float

    def to_dict(self) -> dict[str, float]:
        return {
            "totalMilkLiters": self.total_milk_liters,
            "milkAmount": self.milk_amount,
            "otherAmount": self.other_amount,
            "grandTotal": self.grand_total,
        }


# ---------------------------------------------------------------------------
# Patches
# ---------------------------------------------------------------------------


class _Unset(Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset.UNSET


def _changes(patch: Any) -> dict[str, Any]:
    return {
        f.name: getattr(patch, f.name)
        for f in fields(patch)
        if getattr(patch, f.name) is not UNSET
    }


@dataclass(frozen=True, slots=True)
class CustomerPatch:
    """Partial customer update. Unset fields keep their current value."""

    name: str | _Unset = UNSET
    phone: str | _Unset = UNSET
    milk_price: float | _Unset = UNSET

    @property
    def changes(self) -> dict[str, Any]:
        return _changes(self)

    def apply(self, customer: Customer) -> Customer:
        return replace(customer, **self.changes)


@dataclass(frozen=True, slots=True)
class PaymentPatch:
    """Partial payment update.

    Unset fields keep their current value; ``method=None`` or
    ``reference=None`` clear a previously stored value.
    """

    paid: bool | _Unset = UNSET
    method: PaymentMethod | None | _Unset = UNSET
    reference: str | None | _Unset = UNSET

    @property
    def changes(self) -> dict[str, Any]:
        return _changes(self)

    def apply(self, status: PaymentStatus) -> PaymentStatus:
        changes = self.changes
        if isinstance(changes.get("method"), str):
            changes["method"] = PaymentMethod(changes["method"])
        return replace(status, **changes)


# ---------------------------------------------------------------------------
# Whole-store state
# ---------------------------------------------------------------------------


@dataclass
class LedgerState:
    """The complete application state, as loaded from and saved to a store.

    Entries and payments are keyed by ``MonthKey`` in memory and nested as
    ``{customerId: {yearMonth: ...}}`` when serialized.
    """

    customers: dict[str, Customer] = field(default_factory=dict)
    entries: dict[MonthKey, list[DayEntry]] = field(default_factory=dict)
    payments: dict[MonthKey, PaymentStatus] = field(default_factory=dict)

    def drop_customer(self, customer_id: str) -> None:
        """Remove a customer together with all of their entries and payments."""
        self.customers.pop(customer_id, None)
        for key in [k for k in self.entries if k.customer_id == customer_id]:
            del self.entries[key]
        for key in [k for k in self.payments if k.customer_id == customer_id]:
            del self.payments[key]

    def to_dict(self) -> dict[str, Any]:
        entries: dict[str, dict[str, list[dict[str, Any]]]] = {}
        for key, day_entries in self.entries.items():
            entries.setdefault(key.customer_id, {})[key.year_month] = [
                e.to_dict() for e in day_entries
            ]

        payments: dict[str, dict[str, dict[str, Any]]] = {}
        for key, status in self.payments.items():
            payments.setdefault(key.customer_id, {})[key.year_month] = status.to_dict()

        return {
            "customers": {cid: c.to_dict() for cid, c in self.customers.items()},
            "entries": entries,
            "payments": payments,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerState:
        """Build state from a serialized record.

        A malformed day entry or month is skipped with a warning; the rest of
        the record still loads.

        Raises:
            ValueError, TypeError, KeyError: If the record itself is malformed
        """
        if not isinstance(data, dict):
            raise ValueError("Ledger record must be an object")

        state = cls()
        for cid, raw in (data.get("customers") or {}).items():
            state.customers[cid] = Customer.from_dict({**raw, "id": raw.get("id", cid)})

        for cid, months in (data.get("entries") or {}).items():
            for ym, raw_entries in months.items():
                try:
                    key = MonthKey(cid, year_month(ym))
                except ValueError:
                    logger.warning(f"Skipping entries under bad month {ym!r} for {cid}")
                    continue
                day_entries = []
                for raw in raw_entries:
                    try:
                        day_entries.append(DayEntry.from_dict(raw))
                    except (ValueError, TypeError, KeyError, AttributeError) as e:
                        logger.warning(f"Skipping unreadable day entry for {cid} {ym}: {e}")
                day_entries.sort(key=lambda e: e.date)
                state.entries[key] = day_entries

        for cid, months in (data.get("payments") or {}).items():
            for ym, raw in months.items():
                try:
                    key = MonthKey(cid, year_month(ym))
                except ValueError:
                    logger.warning(f"Skipping payment under bad month {ym!r} for {cid}")
                    continue
                state.payments[key] = PaymentStatus.from_dict({**raw, "yearMonth": key.year_month})

        return state


__all__ = [
    "Customer",
    "CustomerPatch",
    "DayEntry",
    "LedgerState",
    "MonthKey",
    "MonthTotals",
    "OtherItem",
    "PaymentMethod",
    "PaymentPatch",
    "PaymentStatus",
    "UNSET",
    "coerce_number",
    "day_key",
    "new_id",
    "year_month",
]
