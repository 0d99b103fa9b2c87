"""Ledger service - maps API requests onto the repository."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from fastapi import HTTPException, status

from ..domain.errors import DuplicatePhoneError
from ..domain.models import Customer, day_key, year_month
from ..domain.repository import LedgerRepository
from .config import LedgerConfig
from .models import (
    BillResponse,
    CustomerCreate,
    CustomerCreated,
    CustomerOut,
    CustomerUpdate,
    DayEntryIn,
    DayEntryOut,
    MonthTotalsOut,
    NoDeliveryRequest,
    PaymentStatusOut,
    PaymentUpdate,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _checked(parse: Callable[[str], T], value: str) -> T:
    try:
        return parse(value)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e


class LedgerService:
    """HTTP-facing wrapper around ``LedgerRepository``.

    Translates domain values to API models, rejects malformed month/day keys
    with 422, reports missing customers with 404 where a record is needed to
    answer, and surfaces duplicate phones as 409.
    """

    def __init__(
        self,
        config: LedgerConfig,
        *,
        repository: LedgerRepository | None = None,
    ) -> None:
        self.config = config
        self._repository = repository or LedgerRepository(
            config.build_store(),
            currency=config.currency_symbol,
            message_base_url=config.message_base_url,
        )

    @property
    def repository(self) -> LedgerRepository:
        return self._repository

    def _require_customer(self, customer_id: str) -> Customer:
        customer = self._repository.get_customer(customer_id)
        if customer is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Customer not found: {customer_id}",
            )
        return customer

    @staticmethod
    def _conflict(e: DuplicatePhoneError) -> HTTPException:
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    # -----------------------------------------------------------------------
    # Customers
    # -----------------------------------------------------------------------

    def list_customers(self) -> list[CustomerOut]:
        return [CustomerOut.from_domain(c) for c in self._repository.list_customers()]

    def create_customer(self, request: CustomerCreate) -> CustomerCreated:
        milk_price = request.milk_price
        if milk_price is None:
            milk_price = self.config.default_milk_price
        try:
            customer_id = self._repository.create_customer(
                request.name, request.phone, milk_price
            )
        except DuplicatePhoneError as e:
            raise self._conflict(e) from e
        return CustomerCreated(id=customer_id)

    def get_customer(self, customer_id: str) -> CustomerOut:
        return CustomerOut.from_domain(self._require_customer(customer_id))

    def find_customer_by_phone(self, phone: str) -> CustomerOut:
        customer = self._repository.find_customer_by_phone(phone.strip())
        if customer is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No customer with that phone",
            )
        return CustomerOut.from_domain(customer)

    def update_customer(self, customer_id: str, request: CustomerUpdate) -> None:
        try:
            self._repository.update_customer(customer_id, request.to_patch())
        except DuplicatePhoneError as e:
            raise self._conflict(e) from e

    def delete_customer(self, customer_id: str) -> None:
        self._repository.delete_customer(customer_id)

    # -----------------------------------------------------------------------
    # Entries and totals
    # -----------------------------------------------------------------------

    def month_entries(self, customer_id: str, month: str) -> list[DayEntryOut]:
        key = _checked(year_month, month)
        return [
            DayEntryOut.from_domain(e)
            for e in self._repository.get_month_entries(customer_id, key)
        ]

    def upsert_day(self, customer_id: str, day: str, request: DayEntryIn) -> None:
        entry = request.to_domain(_checked(day_key, day))
        self._repository.upsert_day_entry(customer_id, entry)

    def mark_no_delivery(self, customer_id: str, day: str, request: NoDeliveryRequest) -> None:
        self._repository.mark_no_delivery(
            customer_id, _checked(day_key, day), note=request.note
        )

    def remove_other_item(self, customer_id: str, day: str, item_id: str) -> None:
        self._repository.remove_other_item(customer_id, _checked(day_key, day), item_id)

    def month_totals(self, customer_id: str, month: str) -> MonthTotalsOut:
        key = _checked(year_month, month)
        customer = self._require_customer(customer_id)
        return MonthTotalsOut.from_domain(self._repository.compute_totals(customer, key))

    # -----------------------------------------------------------------------
    # Payments and bills
    # -----------------------------------------------------------------------

    def payment_status(self, customer_id: str, month: str) -> PaymentStatusOut:
        key = _checked(year_month, month)
        return PaymentStatusOut.from_domain(
            self._repository.get_payment_status(customer_id, key)
        )

    def set_payment_status(
        self, customer_id: str, month: str, request: PaymentUpdate
    ) -> PaymentStatusOut:
        key = _checked(year_month, month)
        self._repository.set_payment_status(customer_id, key, request.to_patch())
        return self.payment_status(customer_id, key)

    def bill(self, customer_id: str, month: str) -> BillResponse:
        key = _checked(year_month, month)
        customer = self._require_customer(customer_id)
        text = self._repository.bill_text(customer, key)
        url = self._repository.build_bill_message(customer, key)
        logger.info(f"Bill link built for {customer_id} {key}")
        return BillResponse(year_month=key, text=text, url=url)


__all__ = ["LedgerService"]
