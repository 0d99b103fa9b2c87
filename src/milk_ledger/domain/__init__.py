"""Ledger domain - data model, repository and bill formatting."""

from .errors import DuplicatePhoneError, LedgerError
from .models import (
    Customer,
    CustomerPatch,
    DayEntry,
    LedgerState,
    MonthKey,
    MonthTotals,
    OtherItem,
    PaymentMethod,
    PaymentPatch,
    PaymentStatus,
    day_key,
    new_id,
    year_month,
)
from .repository import LedgerRepository

__all__ = [
    "Customer",
    "CustomerPatch",
    "DayEntry",
    "DuplicatePhoneError",
    "LedgerError",
    "LedgerRepository",
    "LedgerState",
    "MonthKey",
    "MonthTotals",
    "OtherItem",
    "PaymentMethod",
    "PaymentPatch",
    "PaymentStatus",
    "day_key",
    "new_id",
    "year_month",
]
