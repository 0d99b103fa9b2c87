"""Monthly bill text and the WhatsApp share link."""

from __future__ import annotations

from urllib.parse import quote

from .models import Customer, MonthTotals

DEFAULT_CURRENCY = "₹"
DEFAULT_MESSAGE_BASE_URL = "https://wa.me"

# Characters encodeURIComponent leaves alone on top of quote()'s own set
_URI_COMPONENT_SAFE = "!~*'()"


def format_number(value: float) -> str:
    """Render a number the way a JS template literal would (no trailing .0)."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def format_bill_text(
    customer: Customer,
    key: str,
    totals: MonthTotals,
    currency: str = DEFAULT_CURRENCY,
) -> str:
    """Build the human-readable bill for one customer and month."""
    lines = [
        f"Monthly Bill - {key}",
        f"Name: {customer.name}",
        f"Phone: {customer.phone}",
        f"Milk price: {currency}{format_number(customer.milk_price)}/L",
        (
            f"Total milk: {format_number(totals.total_milk_liters)} L"
            f" = {currency}{format_number(totals.milk_amount)}"
        ),
        f"Other items: {currency}{format_number(totals.other_amount)}",
        f"Grand total: {currency}{format_number(totals.grand_total)}",
        "\nPlease pay your dues. Thank you!",
    ]
    return "\n".join(lines)


def build_share_url(
    phone: str,
    text: str,
    base_url: str = DEFAULT_MESSAGE_BASE_URL,
) -> str:
    """Address a pre-filled chat message to ``phone``."""
    encoded = quote(text, safe=_URI_COMPONENT_SAFE)
    return f"{base_url.rstrip('/')}/{phone}?text={encoded}"


__all__ = [
    "DEFAULT_CURRENCY",
    "DEFAULT_MESSAGE_BASE_URL",
    "build_share_url",
    "format_bill_text",
    "format_number",
]
