"""Ledger exceptions."""

from __future__ import annotations


class LedgerError(Exception):
    """Base exception for ledger operations."""


class DuplicatePhoneError(LedgerError):
    """Raised when a phone number is already registered to another customer."""

    def __init__(self, phone: str, existing_id: str):
        super().__init__(f"Phone {phone} is already registered to customer {existing_id}")
        self.phone = phone
        self.existing_id = existing_id
