# module storefront.notifications.email
"""
Notifications transactionnelles (Resend, API HTTP).

Appelées en tâche de fond APRÈS l'écriture durable (commande, participation):
un échec est journalisé, jamais propagé, jamais rejoué. Sans RESEND_API_KEY,
l'envoi est simplement ignoré.
"""
import html
import logging
from typing import Any, Dict, Optional

import httpx

from storefront import config
from storefront.orders.pricing import format_gbp

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"

SHIPPING_LABELS = {"standard": "Standard delivery", "next_day": "Next day delivery"}


def send_email(to: str, subject: str, body_html: str) -> bool:
    if not config.RESEND_API_KEY:
        logger.info("notifications.skipped reason=no_api_key to=%s subject=%s", to, subject)
        return False
    try:
        headers = {
            "Authorization": f"Bearer {config.RESEND_API_KEY}",
            "Content-Type": "application/json",
        }
        payload = {"from": config.EMAIL_FROM, "to": [to], "subject": subject, "html": body_html}
        resp = httpx.post(RESEND_URL, json=payload, headers=headers, timeout=10)
        if 200 <= resp.status_code < 300:
            logger.info("notifications.sent to=%s subject=%s", to, subject)
            return True
        logger.error("notifications.failed status=%s body=%s", resp.status_code, resp.text)
        return False
    except Exception:
        logger.exception("notifications.failed to=%s subject=%s", to, subject)
        return False


def _line(label: str, value: Any) -> str:
    return f"<p><strong>{html.escape(label)}:</strong> {html.escape(str(value))}</p>"


def send_order_confirmation(order: Dict[str, Any], product_title: Optional[str] = None) -> bool:
    """E-mail "commande passée, paiement requis" pour une commande pending_payment."""
    number = order.get("order_number") or ""
    parts = [
        "<h1>Order placed</h1>",
        "<p>Thank you for your order! Payment is required to complete it.</p>",
        _line("Order number", number),
        _line("Product", product_title or ""),
        _line("Quantity", order.get("quantity")),
    ]
    if order.get("variant"):
        parts.append(_line("Size", order["variant"]))
    if order.get("discount_code"):
        parts.append(_line("Discount", f"{order['discount_code']} (-{format_gbp(order.get('discount_amount_cents') or 0)})"))
    parts.append(_line("Shipping", SHIPPING_LABELS.get(order.get("shipping_method"), order.get("shipping_method"))))
    parts.append(_line("Total", format_gbp(order.get("total_amount_cents") or 0)))
    address = ", ".join(
        str(order.get(k) or "") for k in ("shipping_name", "shipping_address", "shipping_city", "shipping_postcode")
    )
    parts.append(_line("Shipping to", address + ", United Kingdom"))
    return send_email(order.get("email") or "", f"Order confirmation - {number}", "\n".join(parts))


def send_entry_confirmation(entry: Dict[str, Any], raffle_title: Optional[str] = None) -> bool:
    """E-mail de confirmation d'une participation à un tirage."""
    parts = [
        "<h1>You're in the draw</h1>",
        _line("Draw", raffle_title or ""),
        _line("Tickets", entry.get("ticket_count")),
    ]
    if entry.get("variant"):
        parts.append(_line("Size", entry["variant"]))
    return send_email(entry.get("email") or "", f"Entry confirmed - {raffle_title or 'draw'}", "\n".join(parts))
