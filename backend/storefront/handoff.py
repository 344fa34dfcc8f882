"""
WhatsApp order handoff.

After an order is submitted the shopper is sent to the company's WhatsApp
with a pre-filled, itemized message. The handoff is one-way: nothing tells
the system whether the message was actually sent.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from urllib.parse import quote

from .validation import only_digits

WHATSAPP_BASE_URL = "https://wa.me"

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def format_brl(cents: int) -> str:
    """Format integer cents as Brazilian reais: 123456 -> "R$ 1.234,56"."""
    cents = int(cents or 0)
    sign = "-" if cents < 0 else ""
    amount = (Decimal(abs(cents)) / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    # Format with US separators, then swap them
    us = f"{amount:,.2f}"
    br = us.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {br}"


def build_order_message(company_name: str, lines, total_cents: int) -> str:
    """
    Compose the pre-filled message.

    `lines` are dicts (or objects) exposing quantity, product_name,
    unit_price_cents and subtotal_cents.
    """
    out = [f"Olá! Quero fazer um pedido na {company_name}.", "", "🛒 Itens:"]
    for line in lines:
        get = line.get if isinstance(line, dict) else lambda key: getattr(line, key)
        out.append(
            f"- {get('quantity')}x {get('product_name')} "
            f"({format_brl(get('unit_price_cents'))}) = {format_brl(get('subtotal_cents'))}"
        )
    out.extend(["", f"Total: {format_brl(total_cents)}", "", "Pode me atender, por favor?"])
    return "\n".join(out)


def whatsapp_url(phone: str, message: str) -> str:
    return f"{WHATSAPP_BASE_URL}/{only_digits(phone)}?text={quote(message, safe=_URI_COMPONENT_SAFE)}"


def build_handoff(company, lines, total_cents: int) -> dict:
    """Message plus deep link for a company (model or public dict)."""
    name = company["name"] if isinstance(company, dict) else company.name
    phone = company["whatsapp"] if isinstance(company, dict) else company.whatsapp
    message = build_order_message(name, lines, total_cents)
    return {"message": message, "url": whatsapp_url(phone, message)}
