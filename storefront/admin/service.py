# module storefront.admin.service

import logging
import re
import uuid
from typing import Any, Callable, Dict, List, Optional

from storefront.products import repository as products_repo
from storefront.raffles import repository as raffles_repo
from storefront.raffles import service as raffles_service
from storefront.utils import identifiers
from storefront.utils.errors import ConflictError, ExhaustedAttempts, NotFoundError, ValidationError
from storefront.utils.validators import is_uuid

logger = logging.getLogger(__name__)

SLUG_MAX_ATTEMPTS = 5


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (value or "").lower()).strip("-")


def _slug_minter(base: str) -> Callable[[], str]:
    """Premier essai: le slug de base; ensuite base-xxxx (suffixe court, sans caractères ambigus)."""
    state = {"first": True}

    def _mint() -> str:
        if state["first"]:
            state["first"] = False
            return base
        return f"{base}-{identifiers.mint(prefix='', length=4).lower()}"
    return _mint


def _insert_with_slug(data: Dict[str, Any], exists: Callable[[str], bool], insert: Callable[[Dict[str, Any]], Dict[str, Any]]):
    base = slugify(data.get("slug") or data.get("title") or "")
    if not base:
        raise ValidationError("Title is required.")
    try:
        return identifiers.insert_with_unique(
            exists,
            lambda slug: insert({**data, "slug": slug}),
            max_attempts=SLUG_MAX_ATTEMPTS,
            minter=_slug_minter(base),
        )
    except ExhaustedAttempts:
        raise ConflictError("Could not generate a unique slug. Please choose another.")


def create_product(data: Dict[str, Any]) -> Dict[str, Any]:
    product = _insert_with_slug(data, products_repo.slug_exists, products_repo.insert_product)
    logger.info("admin.product_created id=%s slug=%s", product.get("id"), product.get("slug"))
    return product


def create_raffle(data: Dict[str, Any]) -> Dict[str, Any]:
    if data.get("status", "draft") not in raffles_service.RAFFLE_STATUSES:
        raise ValidationError("Invalid raffle status.")
    raffle = _insert_with_slug(data, raffles_repo.slug_exists, raffles_repo.insert_raffle)
    logger.info("admin.raffle_created id=%s slug=%s", raffle.get("id"), raffle.get("slug"))
    return raffle


def set_raffle_status(raffle_id: str, status: str) -> Dict[str, Any]:
    if status not in raffles_service.RAFFLE_STATUSES:
        raise ValidationError("Invalid raffle status.")
    raffle = raffles_repo.update_raffle(raffle_id, {"status": status}) if is_uuid(raffle_id) else None
    if not raffle:
        raise NotFoundError("Raffle not found.")
    logger.info("admin.raffle_status id=%s status=%s", raffle_id, status)
    return raffle


def set_raffle_winner(raffle_id: str, email: Optional[str], name: Optional[str] = None) -> Dict[str, Any]:
    """Gagnant désigné manuellement par l'opérateur (None pour effacer)."""
    fields = {"winner_email": email.lower() if email else None, "winner_name": name or None}
    raffle = raffles_repo.update_raffle(raffle_id, fields) if is_uuid(raffle_id) else None
    if not raffle:
        raise NotFoundError("Raffle not found.")
    logger.info("admin.raffle_winner id=%s email=%s", raffle_id, fields["winner_email"])
    return raffle


def add_manual_entry(raffle_id: str, email: str, ticket_count: int, variant: Optional[str] = None) -> Dict[str, Any]:
    """Participation saisie à la main (paiement hors Stripe). Clé d'idempotence manual-<uuid>."""
    raffle = raffles_repo.get_raffle(raffle_id) if is_uuid(raffle_id) else None
    if not raffle:
        raise NotFoundError("Raffle not found.")
    chosen = raffles_service.check_variant(raffle, variant)
    entry = raffles_service.record_entry({
        "raffle_id": raffle_id,
        "email": email.lower(),
        "ticket_count": ticket_count,
        "variant": chosen,
        "stripe_session_id": f"manual-{uuid.uuid4()}",
    })
    if entry is None:
        raise ConflictError("Entry already exists.")
    logger.info("admin.manual_entry raffle_id=%s ticket_count=%s", raffle_id, ticket_count)
    return entry


def delete_entry(entry_id: str) -> None:
    if not is_uuid(entry_id) or not raffles_repo.delete_entry(entry_id):
        raise NotFoundError("Entry not found.")
    logger.info("admin.entry_deleted id=%s", entry_id)


def reorder_products(product_ids: List[str]) -> int:
    """sort_priority = position + 1, dans l'ordre reçu (identifiants inconnus ignorés)."""
    updated = 0
    for index, product_id in enumerate(product_ids):
        if is_uuid(product_id) and products_repo.set_sort_priority(product_id, index + 1):
            updated += 1
    logger.info("admin.products_reordered count=%s updated=%s", len(product_ids), updated)
    return updated
