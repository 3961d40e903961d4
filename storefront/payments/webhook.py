# module storefront.payments.webhook
"""
Réconciliation des événements Stripe (livraison au moins une fois -> effet au plus une fois).

Machine à états par événement:
  1) Vérifier la signature (stripe_client.verify_event) -> InvalidSignature, 400
  2) Filtrer: seul checkout.session.completed est traité, le reste est acquitté
  3) Extraire/valider les métadonnées (ou valeur refusée par le datastore): anomalie -> acquitté, journalisé, rien écrit
  4) Écriture idempotente: entries.stripe_session_id est unique; un doublon est un succès
  5) Erreur datastore (TransientError) -> remonte en 500 pour que Stripe rejoue
"""
import logging
from typing import Any, Dict, Optional

from storefront.orders import service as orders_service
from storefront.payments import metadata as meta
from storefront.raffles import repository as raffles_repo
from storefront.raffles import service as raffles_service
from storefront.utils.errors import InvalidData

logger = logging.getLogger(__name__)

HANDLED_EVENT = "checkout.session.completed"


def _result(status: str, notify: Optional[Dict[str, Any]] = None, **extra: Any) -> Dict[str, Any]:
    return {"status": status, "notify": notify, **extra}


def handle_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Traite un événement déjà authentifié.
    Retour: {"status": ignored|skipped|recorded|duplicate|paid|already_paid, "notify": ...}
    "notify" décrit la confirmation à envoyer (None si rien de nouveau n'a été écrit).
    """
    event_type = (event or {}).get("type")
    event_id = (event or {}).get("id")
    if event_type != HANDLED_EVENT:
        logger.info("payments.webhook.ignored type=%s event_id=%s", event_type, event_id)
        return _result("ignored")

    try:
        fields = meta.extract_metadata(event)
    except meta.MetadataError as e:
        logger.warning("payments.webhook.data_quality event_id=%s reason=%s", event_id, e)
        return _result("skipped", reason=str(e))

    try:
        if fields["kind"] == "order":
            return _handle_order_payment(fields["order_number"], event_id)
        return _handle_raffle_entry(fields, event)
    except InvalidData:
        # Valeur refusée par le datastore: rejouer l'événement ne changerait rien
        logger.warning("payments.webhook.data_quality event_id=%s reason=rejected by datastore", event_id)
        return _result("skipped", reason="rejected by datastore")


def _handle_order_payment(order_number: str, event_id: Optional[str]) -> Dict[str, Any]:
    order, changed = orders_service.mark_order_paid(order_number)
    if order is None:
        logger.warning("payments.webhook.data_quality event_id=%s reason=unknown order %s", event_id, order_number)
        return _result("skipped", reason="unknown order")
    if not changed:
        logger.info("payments.webhook.order_already_paid order_number=%s status=%s", order_number, order.get("status"))
        return _result("already_paid")
    return _result("paid")


def _handle_raffle_entry(fields: Dict[str, Any], event: Dict[str, Any]) -> Dict[str, Any]:
    event_id = event.get("id")
    refs = meta.extract_payment_refs(event)
    if not refs.get("stripe_session_id"):
        logger.warning("payments.webhook.data_quality event_id=%s reason=missing session id", event_id)
        return _result("skipped", reason="missing session id")

    # Le paiement est encaissé: on ne revérifie pas l'ouverture du tirage, seulement sa cohérence
    raffle = raffles_repo.get_raffle(fields["raffle_id"])
    if not raffle:
        logger.warning("payments.webhook.data_quality event_id=%s reason=unknown raffle %s", event_id, fields["raffle_id"])
        return _result("skipped", reason="unknown raffle")
    if not raffles_service.is_valid_variant(raffle, fields["variant"]):
        logger.warning(
            "payments.webhook.data_quality event_id=%s reason=invalid variant %r raffle_id=%s",
            event_id, fields["variant"], raffle["id"],
        )
        return _result("skipped", reason="invalid variant")

    row = {
        "raffle_id": raffle["id"],
        "ticket_count": fields["ticket_count"],
        "email": fields["email"],
        "variant": fields["variant"],
        "instagram_handle": fields["instagram_handle"],
        **refs,
    }
    entry = raffles_service.record_entry(row)
    if entry is None:
        logger.info("payments.webhook.duplicate session_id=%s event_id=%s", refs["stripe_session_id"], event_id)
        return _result("duplicate")

    logger.info(
        "payments.webhook.recorded raffle_id=%s ticket_count=%s session_id=%s",
        raffle["id"], fields["ticket_count"], refs["stripe_session_id"],
    )
    title = raffle.get("title") or fields["raffle_title"]
    return _result("recorded", notify={"entry": entry, "raffle_title": title})
