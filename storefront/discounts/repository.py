# module storefront.discounts.repository
from typing import Any, Dict, Optional

from storefront.infra.supabase_client import get_service_supabase, execute

DISCOUNT_COLUMNS = (
    "id, code, discount_type, discount_value, min_order_cents, max_uses, current_uses, is_active, expires_at"
)


def get_discount_code(code: str) -> Optional[Dict[str, Any]]:
    """Les codes sont stockés en majuscules: l'appelant normalise avant la recherche."""
    res = execute(
        get_service_supabase()
        .table("discount_codes")
        .select(DISCOUNT_COLUMNS)
        .eq("code", code)
        .limit(1),
        "discount_codes",
    )
    rows = res.data or []
    return rows[0] if rows else None


def redeem_discount_code(code: str) -> Optional[int]:
    """
    Incrément atomique de current_uses (fonction SQL redeem_discount_code).
    Retourne le nouveau compteur, ou None si le code n'est plus utilisable.
    """
    res = execute(get_service_supabase().rpc("redeem_discount_code", {"p_code": code}), "discount_codes")
    data = res.data
    if isinstance(data, list):
        data = data[0] if data else None
    if isinstance(data, dict):
        data = data.get("redeem_discount_code")
    return int(data) if data is not None else None
