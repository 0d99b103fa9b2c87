"""
Milk Ledger - daily delivery book-keeping for a local milk seller.

Tracks per-customer morning/evening milk and extra items, computes monthly
totals, records payment status and builds WhatsApp-shareable bills.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
