# module storefront.discounts.service
"""
Registre des codes promo.

validate() est en lecture seule: il ne consomme jamais d'utilisation. La consommation
(redeem) n'a lieu qu'au passage effectif d'une commande à l'état "paid".
Ordre des contrôles (le premier échec l'emporte): existe -> actif -> non expiré
-> plafond d'utilisation non atteint -> minimum de commande.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from storefront.discounts import repository as discounts_repo
from storefront.orders.pricing import format_gbp
from storefront.utils.errors import (
    DiscountExhausted,
    DiscountExpired,
    DiscountInactive,
    DiscountMinimumNotMet,
    DiscountNotFound,
    ValidationError,
)

logger = logging.getLogger(__name__)


def normalize_code(code: Any) -> str:
    return str(code or "").strip().upper()


def _parse_ts(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def discount_amount(discount_type: str, value: int, subtotal_cents: int) -> int:
    """
    - percentage: arrondi au centime le plus proche (moitié vers le haut), entiers uniquement
    - fixed: min(value, subtotal), jamais en dessous de zéro
    """
    value = int(value or 0)
    if discount_type == "percentage":
        amount = (subtotal_cents * value + 50) // 100
    else:
        amount = value
    return max(0, min(amount, subtotal_cents))


def success_message(discount_type: str, value: int) -> str:
    if discount_type == "percentage":
        return f"{int(value)}% off applied!"
    return f"{format_gbp(int(value))} off applied!"


def validate(code: Any, subtotal_cents: int, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Valide un code pour un sous-total donné.
    Retour: {code, discount_type, discount_value, discount_amount_cents, message}
    Lève une DiscountError (ou ValidationError si l'entrée est mal formée).
    """
    normalized = normalize_code(code)
    if not normalized:
        raise ValidationError("Discount code is required.")
    if isinstance(subtotal_cents, bool) or not isinstance(subtotal_cents, int) or subtotal_cents < 0:
        raise ValidationError("Valid subtotal is required.")

    row = discounts_repo.get_discount_code(normalized)
    if not row:
        raise DiscountNotFound()
    if not row.get("is_active"):
        raise DiscountInactive()
    expires_at = _parse_ts(row.get("expires_at"))
    if expires_at is not None and expires_at <= (now or datetime.now(timezone.utc)):
        raise DiscountExpired()
    max_uses = row.get("max_uses")
    if max_uses is not None and int(row.get("current_uses") or 0) >= int(max_uses):
        raise DiscountExhausted()
    min_order = int(row.get("min_order_cents") or 0)
    if subtotal_cents < min_order:
        raise DiscountMinimumNotMet(min_order)

    discount_type = row.get("discount_type") or "fixed"
    value = int(row.get("discount_value") or 0)
    return {
        "code": row.get("code") or normalized,
        "discount_type": discount_type,
        "discount_value": value,
        "discount_amount_cents": discount_amount(discount_type, value, subtotal_cents),
        "message": success_message(discount_type, value),
    }


def redeem(code: Any) -> bool:
    """
    Consomme une utilisation (atomique, bornée par max_uses).
    False si le code est devenu inutilisable entre-temps: journalisé, jamais levé,
    car le paiement a déjà été encaissé.
    """
    normalized = normalize_code(code)
    if not normalized:
        return False
    uses = discounts_repo.redeem_discount_code(normalized)
    if uses is None:
        logger.warning("discounts.redeem_refused code=%s", normalized)
        return False
    logger.info("discounts.redeemed code=%s current_uses=%s", normalized, uses)
    return True
