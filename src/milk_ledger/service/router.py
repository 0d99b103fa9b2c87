"""FastAPI router for the ledger service.

Implements the endpoints behind the seller dashboard, the customer
phone lookup and the per-customer monthly ledger:
- Customers (/customers/*)
- Day entries (/customers/{id}/entries/*)
- Monthly totals, payments and bills (/customers/{id}/months/{ym}/*)
"""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Response, status

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

if TYPE_CHECKING:
    from .core import LedgerService


def build_router(service: "LedgerService") -> APIRouter:
    """Build the ledger API router.

    Args:
        service: The LedgerService instance

    Returns:
        Configured APIRouter
    """
    router = APIRouter(prefix="/customers", tags=["ledger"])

    # -----------------------------------------------------------------------
    # Customers
    # -----------------------------------------------------------------------

    @router.get("", response_model=list[CustomerOut])
    def list_customers() -> list[CustomerOut]:
        """List customers ordered by name."""
        return service.list_customers()

    @router.post("", response_model=CustomerCreated, status_code=status.HTTP_201_CREATED)
    def create_customer(request: CustomerCreate) -> CustomerCreated:
        return service.create_customer(request)

    @router.get("/lookup", response_model=CustomerOut)
    def lookup_customer(phone: str = Query(..., min_length=1)) -> CustomerOut:
        """Find a customer by exact phone number."""
        return service.find_customer_by_phone(phone)

    @router.get("/{customer_id}", response_model=CustomerOut)
    def get_customer(customer_id: str) -> CustomerOut:
        return service.get_customer(customer_id)

    @router.patch("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
    def update_customer(customer_id: str, request: CustomerUpdate) -> Response:
        service.update_customer(customer_id, request)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_customer(customer_id: str) -> Response:
        """Delete a customer with all their entries and payments."""
        service.delete_customer(customer_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    # -----------------------------------------------------------------------
    # Day entries
    # -----------------------------------------------------------------------

    @router.get("/{customer_id}/months/{month}/entries", response_model=list[DayEntryOut])
    def month_entries(customer_id: str, month: str) -> list[DayEntryOut]:
        return service.month_entries(customer_id, month)

    @router.put("/{customer_id}/entries/{day}", status_code=status.HTTP_204_NO_CONTENT)
    def upsert_day(customer_id: str, day: str, request: DayEntryIn) -> Response:
        """Create or replace the entry for one day."""
        service.upsert_day(customer_id, day, request)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.post(
        "/{customer_id}/entries/{day}/no-delivery",
        status_code=status.HTTP_204_NO_CONTENT,
    )
    def mark_no_delivery(
        customer_id: str,
        day: str,
        request: NoDeliveryRequest | None = None,
    ) -> Response:
        service.mark_no_delivery(customer_id, day, request or NoDeliveryRequest())
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.delete(
        "/{customer_id}/entries/{day}/items/{item_id}",
        status_code=status.HTTP_204_NO_CONTENT,
    )
    def remove_other_item(customer_id: str, day: str, item_id: str) -> Response:
        service.remove_other_item(customer_id, day, item_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    # -----------------------------------------------------------------------
    # Totals, payments, bills
    # -----------------------------------------------------------------------

    @router.get("/{customer_id}/months/{month}/totals", response_model=MonthTotalsOut)
    def month_totals(customer_id: str, month: str) -> MonthTotalsOut:
        return service.month_totals(customer_id, month)

    @router.get(
        "/{customer_id}/months/{month}/payment",
        response_model=PaymentStatusOut,
        response_model_exclude_none=True,
    )
    def payment_status(customer_id: str, month: str) -> PaymentStatusOut:
        return service.payment_status(customer_id, month)

    @router.patch(
        "/{customer_id}/months/{month}/payment",
        response_model=PaymentStatusOut,
        response_model_exclude_none=True,
    )
    def set_payment_status(
        customer_id: str,
        month: str,
        request: PaymentUpdate,
    ) -> PaymentStatusOut:
        return service.set_payment_status(customer_id, month, request)

    @router.get("/{customer_id}/months/{month}/bill", response_model=BillResponse)
    def bill(customer_id: str, month: str) -> BillResponse:
        """Monthly bill text and the share link that carries it."""
        return service.bill(customer_id, month)

    return router
