"""Ledger Repository - customer, delivery and payment bookkeeping.

Every operation loads the full state from the store and, when it mutates,
writes the full state back before returning. Nothing is cached between
calls, so two repositories over the same store always agree.

Operations that reference an unknown customer, day or item are silent
no-ops; reads fall back to empty lists and the unpaid default.
"""

from __future__ import annotations

import logging
import unicodedata
from collections.abc import Callable
from dataclasses import replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from .billing import (
    DEFAULT_CURRENCY,
    DEFAULT_MESSAGE_BASE_URL,
    build_share_url,
    format_bill_text,
)
from .errors import DuplicatePhoneError
from .models import (
    Customer,
    CustomerPatch,
    DayEntry,
    LedgerState,
    MonthKey,
    MonthTotals,
    PaymentMethod,
    PaymentPatch,
    PaymentStatus,
    day_key,
    new_id,
    year_month,
)

if TYPE_CHECKING:
    from ..persistence.store import StateStore

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def _round_money(value: float) -> float:
    """Round to cents, ties away from zero, using the exact binary value."""
    return float(Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP))


def _name_sort_key(customer: Customer) -> tuple[str, str]:
    # accents sort with their base letter
    decomposed = unicodedata.normalize("NFKD", customer.name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), customer.name)


def _phone_owner(state: LedgerState, phone: str) -> Customer | None:
    return next((c for c in state.customers.values() if c.phone == phone), None)


class LedgerRepository:
    """Business operations over a ``StateStore``.

    Example:
        repo = LedgerRepository(JsonFileStore("data/ledger.json"))
        cid = repo.create_customer("Asha", "919900000001", 40)
        repo.upsert_day_entry(cid, DayEntry(date="2024-03-05", am_qty=1, pm_qty=0.5))
        totals = repo.compute_totals(repo.get_customer(cid), "2024-03")
        url = repo.build_bill_message(repo.get_customer(cid), "2024-03")
    """

    def __init__(
        self,
        store: StateStore,
        *,
        currency: str = DEFAULT_CURRENCY,
        message_base_url: str = DEFAULT_MESSAGE_BASE_URL,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self._currency = currency
        self._message_base_url = message_base_url
        self._id_factory = id_factory or new_id

    @property
    def store(self) -> StateStore:
        return self._store

    # -----------------------------------------------------------------------
    # Customers
    # -----------------------------------------------------------------------

    def list_customers(self) -> list[Customer]:
        """All customers, ordered by name."""
        state = self._store.load()
        return sorted(state.customers.values(), key=_name_sort_key)

    def create_customer(self, name: str, phone: str, milk_price: float) -> str:
        """Register a customer and return the new identifier.

        Raises:
            DuplicatePhoneError: If the phone already belongs to a customer
        """
        state = self._store.load()
        phone = phone.strip()
        owner = _phone_owner(state, phone)
        if owner is not None:
            raise DuplicatePhoneError(phone, owner.id)

        customer_id = self._id_factory()
        state.customers[customer_id] = Customer(
            id=customer_id,
            name=name.strip(),
            phone=phone,
            milk_price=float(milk_price),
        )
        self._store.save(state)

        logger.info(f"Customer created: {customer_id}")
        return customer_id

    def update_customer(
        self,
        customer_id: str,
        patch: CustomerPatch | None = None,
        **changes,
    ) -> None:
        """Merge the given fields into an existing customer.

        Accepts either a ``CustomerPatch`` or the fields as keyword arguments.

        Raises:
            DuplicatePhoneError: If the new phone belongs to another customer
        """
        patch = patch or CustomerPatch(**changes)
        state = self._store.load()
        current = state.customers.get(customer_id)
        if current is None:
            return

        updated = patch.apply(current)
        if updated.phone != current.phone:
            owner = _phone_owner(state, updated.phone)
            if owner is not None and owner.id != customer_id:
                raise DuplicatePhoneError(updated.phone, owner.id)

        state.customers[customer_id] = updated
        self._store.save(state)
        logger.debug(f"Customer updated: {customer_id} {sorted(patch.changes)}")

    def delete_customer(self, customer_id: str) -> None:
        """Remove a customer with all of their entries and payment records."""
        state = self._store.load()
        state.drop_customer(customer_id)
        self._store.save(state)
        logger.info(f"Customer deleted: {customer_id}")

    def get_customer(self, customer_id: str) -> Customer | None:
        return self._store.load().customers.get(customer_id)

    def find_customer_by_phone(self, phone: str) -> Customer | None:
        """First customer whose phone equals ``phone`` exactly (no trimming)."""
        return _phone_owner(self._store.load(), phone)

    # -----------------------------------------------------------------------
    # Day entries
    # -----------------------------------------------------------------------

    def get_month_entries(self, customer_id: str, month: date | str) -> list[DayEntry]:
        """Day entries for one customer and month, ascending by date."""
        key = MonthKey(customer_id, year_month(month))
        return list(self._store.load().entries.get(key, []))

    def upsert_day_entry(self, customer_id: str, entry: DayEntry) -> None:
        """Insert or replace the entry for ``entry.date``."""
        entry = replace(entry, date=day_key(entry.date))
        state = self._store.load()
        if customer_id not in state.customers:
            return

        key = MonthKey(customer_id, entry.year_month)
        day_entries = [e for e in state.entries.get(key, []) if e.date != entry.date]
        day_entries.append(entry)
        day_entries.sort(key=lambda e: e.date)
        state.entries[key] = day_entries
        self._store.save(state)

    def mark_no_delivery(
        self,
        customer_id: str,
        day: date | str,
        note: str | None = None,
    ) -> None:
        """Record that nothing was delivered on ``day``."""
        self.upsert_day_entry(customer_id, DayEntry(date=day_key(day), note=note))

    def remove_other_item(self, customer_id: str, day: date | str, item_id: str) -> None:
        """Drop one line item from a day's entry."""
        dkey = day_key(day)
        state = self._store.load()
        key = MonthKey(customer_id, year_month(dkey))
        day_entries = state.entries.get(key)
        if not day_entries:
            return

        for index, entry in enumerate(day_entries):
            if entry.date == dkey:
                day_entries[index] = entry.without_item(item_id)
                self._store.save(state)
                return

    def compute_totals(self, customer: Customer, month: date | str) -> MonthTotals:
        """Month totals at the customer's current milk price."""
        day_entries = self.get_month_entries(customer.id, month)
        liters = sum((e.liters for e in day_entries), 0.0)
        other_amount = sum((e.other_amount for e in day_entries), 0.0)
        milk_amount = liters * customer.milk_price
        return MonthTotals(
            total_milk_liters=_round_money(liters),
            milk_amount=_round_money(milk_amount),
            other_amount=_round_money(other_amount),
            grand_total=_round_money(milk_amount + other_amount),
        )

    # -----------------------------------------------------------------------
    # Payments
    # -----------------------------------------------------------------------

    def get_payment_status(self, customer_id: str, month: date | str) -> PaymentStatus:
        key = MonthKey(customer_id, year_month(month))
        status = self._store.load().payments.get(key)
        return status or PaymentStatus.unpaid(key.year_month)

    def set_payment_status(
        self,
        customer_id: str,
        month: date | str,
        patch: PaymentPatch | None = None,
        **changes,
    ) -> None:
        """Merge fields into the month's payment record (or the unpaid default)."""
        patch = patch or PaymentPatch(**changes)
        key = MonthKey(customer_id, year_month(month))
        state = self._store.load()
        if customer_id not in state.customers:
            return

        previous = state.payments.get(key) or PaymentStatus.unpaid(key.year_month)
        state.payments[key] = replace(patch.apply(previous), year_month=key.year_month)
        self._store.save(state)
        logger.info(f"Payment status set: {customer_id} {key.year_month}")

    def mark_paid(
        self,
        customer_id: str,
        month: date | str,
        method: PaymentMethod | str,
        reference: str | None = None,
    ) -> None:
        self.set_payment_status(
            customer_id,
            month,
            PaymentPatch(paid=True, method=PaymentMethod(method), reference=reference),
        )

    def mark_unpaid(self, customer_id: str, month: date | str) -> None:
        self.set_payment_status(
            customer_id,
            month,
            PaymentPatch(paid=False, method=None, reference=None),
        )

    # -----------------------------------------------------------------------
    # Messaging
    # -----------------------------------------------------------------------

    def bill_text(self, customer: Customer, month: date | str) -> str:
        """Plain-text monthly bill for ``customer``."""
        key = year_month(month)
        totals = self.compute_totals(customer, key)
        return format_bill_text(customer, key, totals, currency=self._currency)

    def build_bill_message(self, customer: Customer, month: date | str) -> str:
        """Share link that opens a chat with ``customer`` pre-filled with the bill."""
        return build_share_url(
            customer.phone,
            self.bill_text(customer, month),
            base_url=self._message_base_url,
        )


__all__ = ["LedgerRepository"]
