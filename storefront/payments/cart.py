"""
Construction des lignes Stripe pour un achat de tickets (pas de Stripe, pas de DB).
"""
from typing import Any, Dict, List

from storefront import config

# module storefront.payments.cart
def to_line_items(raffle: Dict[str, Any], ticket_count: int) -> List[Dict[str, Any]]:
    """
    Une seule ligne: unit_amount = ticket_price_cents (entier, centimes), quantity = ticket_count.
    - Lève ValueError si le prix ou la quantité ne sont pas des entiers strictement positifs.
    """
    price = raffle.get("ticket_price_cents")
    if isinstance(price, bool) or not isinstance(price, int) or price <= 0:
        raise ValueError("ticket_price_cents invalide")
    if isinstance(ticket_count, bool) or not isinstance(ticket_count, int) or ticket_count < 1:
        raise ValueError("ticket_count invalide")
    return [
        {
            "quantity": ticket_count,
            "price_data": {
                "currency": config.STRIPE_CURRENCY,
                "unit_amount": price,
                "product_data": {"name": raffle.get("title") or "Raffle entry"},
            },
        }
    ]
