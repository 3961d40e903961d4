# module storefront.products.repository
import logging
from typing import Any, Dict, Optional

from storefront.infra.supabase_client import get_service_supabase, execute

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id, title, slug, price_cents, stock_quantity, is_active, variant_options, sort_priority"


def get_product(product_id: str) -> Optional[Dict[str, Any]]:
    res = execute(
        get_service_supabase()
        .table("products")
        .select(PRODUCT_COLUMNS)
        .eq("id", product_id)
        .limit(1),
        "products",
    )
    rows = res.data or []
    return rows[0] if rows else None


def slug_exists(slug: str) -> bool:
    res = execute(
        get_service_supabase().table("products").select("id").eq("slug", slug).limit(1),
        "products",
    )
    return bool(res.data)


def decrement_stock(product_id: str, quantity: int) -> Optional[int]:
    """
    Décrément atomique conditionnel (fonction SQL decrement_stock).
    Retourne le stock restant, ou None si la ligne ne satisfaisait pas stock >= quantity.
    """
    res = execute(
        get_service_supabase().rpc("decrement_stock", {"p_product_id": product_id, "p_quantity": quantity}),
        "products",
    )
    data = res.data
    if isinstance(data, list):
        data = data[0] if data else None
    if isinstance(data, dict):
        data = data.get("decrement_stock")
    return int(data) if data is not None else None


def insert_product(row: Dict[str, Any]) -> Dict[str, Any]:
    res = execute(get_service_supabase().table("products").insert(row), "products")
    return (res.data or [row])[0]


def set_sort_priority(product_id: str, priority: int) -> bool:
    res = execute(
        get_service_supabase().table("products").update({"sort_priority": priority}).eq("id", product_id),
        "products",
    )
    return bool(res.data)
