# module storefront.raffles.repository
from typing import Any, Dict, Optional
import logging

from storefront.infra.supabase_client import get_service_supabase, execute

logger = logging.getLogger(__name__)

RAFFLE_COLUMNS = (
    "id, slug, title, ticket_price_cents, max_entries_per_user, max_tickets, closes_at, status, "
    "variant_options, winner_email, winner_name"
)


def get_raffle(raffle_id: str) -> Optional[Dict[str, Any]]:
    res = execute(
        get_service_supabase().table("raffles").select(RAFFLE_COLUMNS).eq("id", raffle_id).limit(1),
        "raffles",
    )
    rows = res.data or []
    return rows[0] if rows else None


def slug_exists(slug: str) -> bool:
    res = execute(get_service_supabase().table("raffles").select("id").eq("slug", slug).limit(1), "raffles")
    return bool(res.data)


def insert_raffle(row: Dict[str, Any]) -> Dict[str, Any]:
    res = execute(get_service_supabase().table("raffles").insert(row), "raffles")
    return (res.data or [row])[0]


def update_raffle(raffle_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    res = execute(get_service_supabase().table("raffles").update(fields).eq("id", raffle_id), "raffles")
    rows = res.data or []
    return rows[0] if rows else None


def count_tickets(raffle_id: str, email: Optional[str] = None) -> int:
    """Somme ponctuelle des tickets d'un tirage (optionnellement pour un acheteur)."""
    query = get_service_supabase().table("entries").select("ticket_count").eq("raffle_id", raffle_id)
    if email is not None:
        query = query.eq("email", email)
    res = execute(query, "entries")
    return sum(int(r.get("ticket_count") or 0) for r in (res.data or []))


def insert_entry(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Insère une participation. stripe_session_id est unique: une DuplicateKeyError
    signifie que ce paiement a déjà été enregistré.
    """
    res = execute(get_service_supabase().table("entries").insert(row), "entries")
    return (res.data or [row])[0]


def delete_entry(entry_id: str) -> bool:
    res = execute(get_service_supabase().table("entries").delete().eq("id", entry_id), "entries")
    return bool(res.data)
