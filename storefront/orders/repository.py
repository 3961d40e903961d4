from typing import Any, Dict, Iterable, Optional
from storefront.infra.supabase_client import get_service_supabase, execute
import logging

logger = logging.getLogger(__name__)

ORDER_COLUMNS = (
    "id, order_number, product_id, quantity, variant, email, phone, shipping_name, shipping_address, "
    "shipping_city, shipping_postcode, shipping_country, shipping_method, subtotal_cents, "
    "discount_code, discount_amount_cents, shipping_cost_cents, total_amount_cents, status, created_at"
)

def order_number_exists(order_number: str) -> bool:
    res = execute(
        get_service_supabase().table("orders").select("id").eq("order_number", order_number).limit(1),
        "orders",
    )
    return bool(res.data)

def insert_order(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Insère une commande. Une DuplicateKeyError (order_number déjà pris) remonte
    à l'appelant, qui la traite comme une collision à rejouer.
    """
    res = execute(get_service_supabase().table("orders").insert(row), "orders")
    return (res.data or [row])[0]

def get_order(order_id: str) -> Optional[Dict[str, Any]]:
    res = execute(
        get_service_supabase().table("orders").select(ORDER_COLUMNS).eq("id", order_id).limit(1),
        "orders",
    )
    rows = res.data or []
    return rows[0] if rows else None

def get_order_by_number(order_number: str) -> Optional[Dict[str, Any]]:
    res = execute(
        get_service_supabase().table("orders").select(ORDER_COLUMNS).eq("order_number", order_number).limit(1),
        "orders",
    )
    rows = res.data or []
    return rows[0] if rows else None

def update_status(
    to_status: str,
    allowed_from: Iterable[str],
    *,
    order_id: Optional[str] = None,
    order_number: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Transition conditionnelle: UPDATE orders SET status = :to WHERE <clé> AND status IN (:allowed_from).
    Retourne la ligne modifiée, ou None si aucune ligne ne correspondait.
    """
    query = get_service_supabase().table("orders").update({"status": to_status})
    if order_id is not None:
        query = query.eq("id", order_id)
    elif order_number is not None:
        query = query.eq("order_number", order_number)
    else:
        raise ValueError("order_id ou order_number requis")
    res = execute(query.in_("status", list(allowed_from)), "orders")
    rows = res.data or []
    return rows[0] if rows else None
