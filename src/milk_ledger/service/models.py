"""Pydantic models backing the ledger API.

Field names are camelCase on the wire, matching the stored record.
Numeric inputs are forgiving: blanks, ``null`` and non-numeric text become
zero, while negative quantities and prices are rejected.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..domain.models import (
    Customer,
    CustomerPatch,
    DayEntry,
    MonthTotals,
    OtherItem,
    PaymentMethod,
    PaymentPatch,
    PaymentStatus,
    coerce_number,
    new_id,
)


class ApiModel(BaseModel):
    """Base model: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _coerce(value: Any) -> float:
    return coerce_number(value)


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


class CustomerOut(ApiModel):
    id: str
    name: str
    phone: str
    milk_price: float

    @classmethod
    def from_domain(cls, customer: Customer) -> CustomerOut:
        return cls(
            id=customer.id,
            name=customer.name,
            phone=customer.phone,
            milk_price=customer.milk_price,
        )


class CustomerCreate(ApiModel):
    """New customer. ``milkPrice`` falls back to the configured default."""

    name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(..., min_length=1, max_length=32)
    milk_price: float | None = Field(default=None, ge=0)

    @field_validator("name", "phone")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Enter name and phone")
        return v

    @field_validator("milk_price", mode="before")
    @classmethod
    def _coerce_price(cls, v: Any) -> float:
        return _coerce(v)


class CustomerCreated(ApiModel):
    id: str


class CustomerUpdate(ApiModel):
    """Partial customer update; only fields present in the body change."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    phone: str | None = Field(default=None, min_length=1, max_length=32)
    milk_price: float | None = Field(default=None, ge=0)

    @field_validator("milk_price", mode="before")
    @classmethod
    def _coerce_price(cls, v: Any) -> float:
        return _coerce(v)

    def to_patch(self) -> CustomerPatch:
        changes = {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }
        if "name" in changes:
            changes["name"] = changes["name"].strip()
        if "phone" in changes:
            changes["phone"] = changes["phone"].strip()
        return CustomerPatch(**changes)


# ---------------------------------------------------------------------------
# Day entries
# ---------------------------------------------------------------------------


class OtherItemModel(ApiModel):
    id: str | None = None
    name: str = ""
    price: float = Field(default=0.0, ge=0)

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, v: Any) -> float:
        return _coerce(v)


class DayEntryIn(ApiModel):
    """Body of a day upsert; the date comes from the URL."""

    am_qty: float = Field(default=0.0, ge=0)
    pm_qty: float = Field(default=0.0, ge=0)
    other_items: list[OtherItemModel] = Field(default_factory=list)
    note: str | None = Field(default=None, max_length=500)

    @field_validator("am_qty", "pm_qty", mode="before")
    @classmethod
    def _coerce_qty(cls, v: Any) -> float:
        return _coerce(v)

    def to_domain(self, day: str) -> DayEntry:
        return DayEntry(
            date=day,
            am_qty=self.am_qty,
            pm_qty=self.pm_qty,
            other_items=tuple(
                OtherItem(id=item.id or new_id(), name=item.name, price=item.price)
                for item in self.other_items
            ),
            note=self.note,
        )


class DayEntryOut(ApiModel):
    date: str
    am_qty: float
    pm_qty: float
    other_items: list[OtherItemModel]
    note: str | None = None

    @classmethod
    def from_domain(cls, entry: DayEntry) -> DayEntryOut:
        return cls(
            date=entry.date,
            am_qty=entry.am_qty,
            pm_qty=entry.pm_qty,
            other_items=[
                OtherItemModel(id=i.id, name=i.name, price=i.price)
                for i in entry.other_items
            ],
            note=entry.note,
        )


class NoDeliveryRequest(ApiModel):
    note: str | None = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Totals, payments, bills
# ---------------------------------------------------------------------------


class MonthTotalsOut(ApiModel):
    total_milk_liters: float
    milk_amount: float
    other_amount: float
    grand_total: float

    @classmethod
    def from_domain(cls, totals: MonthTotals) -> MonthTotalsOut:
        return cls(
            total_milk_liters=totals.total_milk_liters,
            milk_amount=totals.milk_amount,
            other_amount=totals.other_amount,
            grand_total=totals.grand_total,
        )


class PaymentStatusOut(ApiModel):
    year_month: str
    paid: bool
    method: PaymentMethod | None = None
    reference: str | None = None

    @classmethod
    def from_domain(cls, status: PaymentStatus) -> PaymentStatusOut:
        return cls(
            year_month=status.year_month,
            paid=status.paid,
            method=status.method,
            reference=status.reference,
        )


class PaymentUpdate(ApiModel):
    """Partial payment update.

    Fields absent from the body are left alone; an explicit ``null`` for
    ``method`` or ``reference`` clears the stored value.
    """

    paid: bool | None = None
    method: PaymentMethod | None = None
    reference: str | None = Field(default=None, max_length=200)

    def to_patch(self) -> PaymentPatch:
        changes = {name: getattr(self, name) for name in self.model_fields_set}
        if changes.get("paid") is None:
            changes.pop("paid", None)
        return PaymentPatch(**changes)


class BillResponse(ApiModel):
    year_month: str
    text: str
    url: str


__all__ = [
    "BillResponse",
    "CustomerCreate",
    "CustomerCreated",
    "CustomerOut",
    "CustomerUpdate",
    "DayEntryIn",
    "DayEntryOut",
    "MonthTotalsOut",
    "NoDeliveryRequest",
    "OtherItemModel",
    "PaymentStatusOut",
    "PaymentUpdate",
]
