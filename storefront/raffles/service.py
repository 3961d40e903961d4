# module storefront.raffles.service
"""
Règles des tirages partagées par le checkout, le webhook et l'admin.

Un tirage est "ouvert" ssi status = active et (closes_at absent ou dans le futur).
Les plafonds (par acheteur, total) sont contrôlés sur une somme ponctuelle: sous
concurrence, ils peuvent être dépassés de la largeur de la course (limite souple).
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from storefront.raffles import repository as raffles_repo
from storefront.utils.errors import DuplicateKeyError, InvalidVariant, RaffleClosed, RaffleNotFound, TicketCapReached
from storefront.utils.validators import is_uuid

logger = logging.getLogger(__name__)

RAFFLE_STATUSES = ("draft", "active", "closed")


def _parse_ts(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def is_open(raffle: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    if str(raffle.get("status") or "").lower() != "active":
        return False
    closes_at = _parse_ts(raffle.get("closes_at"))
    return closes_at is None or closes_at > (now or datetime.now(timezone.utc))


def variant_options(raffle: Dict[str, Any]) -> List[str]:
    return [str(v) for v in (raffle.get("variant_options") or []) if str(v).strip()]


def is_valid_variant(raffle: Dict[str, Any], variant: Optional[str]) -> bool:
    """Avec options: la variante doit en faire partie. Sans options: aucune variante attendue."""
    options = variant_options(raffle)
    if options:
        return variant in options
    return not variant


def load_open_raffle(raffle_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Tirage actif, prix entier > 0 et non clos; sinon RaffleNotFound / RaffleClosed."""
    raffle = raffles_repo.get_raffle(raffle_id) if is_uuid(raffle_id) else None
    price = (raffle or {}).get("ticket_price_cents")
    if (
        not raffle
        or str(raffle.get("status") or "").lower() != "active"
        or isinstance(price, bool)
        or not isinstance(price, int)
        or price <= 0
    ):
        raise RaffleNotFound()
    if not is_open(raffle, now):
        raise RaffleClosed()
    return raffle


def check_variant(raffle: Dict[str, Any], variant: Optional[str]) -> Optional[str]:
    if not is_valid_variant(raffle, variant):
        raise InvalidVariant()
    return variant if variant_options(raffle) else None


def check_caps(raffle: Dict[str, Any], email: str, ticket_count: int) -> None:
    """
    Contrôle pré-paiement (souple) des plafonds:
    - par acheteur: tickets déjà détenus + demandés <= max_entries_per_user
    - total: tickets vendus + demandés <= max_tickets (si défini)
    """
    per_user = raffle.get("max_entries_per_user")
    if per_user:
        held = raffles_repo.count_tickets(raffle["id"], email=email)
        if held + ticket_count > int(per_user):
            raise TicketCapReached(f"Maximum {int(per_user)} entries allowed per user.")
    max_tickets = raffle.get("max_tickets")
    if max_tickets is not None:
        sold = raffles_repo.count_tickets(raffle["id"])
        remaining = max(int(max_tickets) - sold, 0)
        if ticket_count > remaining:
            raise TicketCapReached(f"Only {remaining} tickets remaining.")


def record_entry(row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Écriture idempotente d'une participation, clé = stripe_session_id (unique).
    Retourne la ligne insérée, ou None si ce paiement était déjà enregistré
    (livraison multiple d'un même événement: l'état voulu est déjà atteint).
    """
    try:
        return raffles_repo.insert_entry(row)
    except DuplicateKeyError:
        logger.info("raffles.entry_duplicate stripe_session_id=%s", row.get("stripe_session_id"))
        return None
