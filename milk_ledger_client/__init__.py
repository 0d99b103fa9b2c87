"""Milk Ledger Client SDK.

Example:
    >>> from milk_ledger_client import LedgerClient
    >>> client = LedgerClient("http://127.0.0.1:8080")
    >>> customer = client.find_customer_by_phone("919900000001")
    >>> bill = client.get_bill(customer.id, "2024-03")
"""

from .client import (
    Bill,
    Customer,
    DayEntry,
    LedgerClient,
    LedgerClientConfig,
    LedgerClientError,
    LedgerConflictError,
    LedgerConnectionError,
    LedgerNotFoundError,
    LedgerValidationError,
    MonthTotals,
    OtherItem,
    PaymentStatus,
)

__all__ = [
    "Bill",
    "Customer",
    "DayEntry",
    "LedgerClient",
    "LedgerClientConfig",
    "LedgerClientError",
    "LedgerConflictError",
    "LedgerConnectionError",
    "LedgerNotFoundError",
    "LedgerValidationError",
    "MonthTotals",
    "OtherItem",
    "PaymentStatus",
]
__version__ = "0.1.0"
