# module storefront.orders.pricing
"""
Calcul des prix d'une commande directe (fonctions pures, sans I/O).

Tous les montants sont des entiers en centimes (pence): aucun float dans ce chemin.
- shipping_cost(method, subtotal): next_day = forfait fixe; standard = gratuit si subtotal >= seuil
- total(subtotal, shipping, discount): subtotal - remise + livraison
"""
from typing import Dict, Optional

from storefront import config

SHIPPING_METHODS = ("standard", "next_day")


def _as_cents(value, name: str) -> int:
    # bool est un int en Python: on le refuse explicitement
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} doit être un entier (centimes)")
    if value < 0:
        raise ValueError(f"{name} doit être >= 0")
    return value


def subtotal(unit_price_cents: int, quantity: int) -> int:
    price = _as_cents(unit_price_cents, "unit_price_cents")
    qty = _as_cents(quantity, "quantity")
    if qty < 1:
        raise ValueError("quantity doit être >= 1")
    return price * qty


def shipping_cost(
    method: str,
    subtotal_cents: int,
    *,
    free_threshold_cents: Optional[int] = None,
    next_day_cents: Optional[int] = None,
    standard_cents: Optional[int] = None,
) -> int:
    """
    Frais de livraison en centimes.
    - next_day: toujours le forfait express, quel que soit le sous-total
    - standard: 0 si subtotal >= seuil (borne incluse), sinon le forfait standard
    Les paramètres optionnels remplacent la configuration (tests, simulations).
    """
    sub = _as_cents(subtotal_cents, "subtotal_cents")
    threshold = config.FREE_SHIPPING_THRESHOLD_CENTS if free_threshold_cents is None else free_threshold_cents
    next_day = config.NEXT_DAY_SHIPPING_CENTS if next_day_cents is None else next_day_cents
    standard = config.STANDARD_SHIPPING_CENTS if standard_cents is None else standard_cents

    if method == "next_day":
        return _as_cents(next_day, "NEXT_DAY_SHIPPING_CENTS")
    if method == "standard":
        if sub >= _as_cents(threshold, "FREE_SHIPPING_THRESHOLD_CENTS"):
            return 0
        return _as_cents(standard, "STANDARD_SHIPPING_CENTS")
    raise ValueError(f"Méthode de livraison inconnue: {method!r}")


def total(subtotal_cents: int, shipping_cents: int, discount_cents: int = 0) -> int:
    sub = _as_cents(subtotal_cents, "subtotal_cents")
    ship = _as_cents(shipping_cents, "shipping_cents")
    disc = min(_as_cents(discount_cents, "discount_cents"), sub)
    return sub - disc + ship


def quote(
    unit_price_cents: int,
    quantity: int,
    method: str,
    discount_cents: int = 0,
) -> Dict[str, int]:
    """Détail complet d'une commande: sous-total, remise, livraison, total."""
    sub = subtotal(unit_price_cents, quantity)
    ship = shipping_cost(method, sub)
    disc = min(_as_cents(discount_cents, "discount_cents"), sub)
    return {
        "subtotal_cents": sub,
        "discount_amount_cents": disc,
        "shipping_cost_cents": ship,
        "total_cents": total(sub, ship, disc),
    }


def format_gbp(cents: int) -> str:
    """Affichage £X.XX sans passer par un float."""
    cents = int(cents)
    sign = "-" if cents < 0 else ""
    cents = abs(cents)
    return f"{sign}£{cents // 100}.{cents % 100:02d}"
