"""
Contrat de métadonnées Stripe partagé par le checkout (écriture) et le webhook (lecture).

Stripe n'accepte que des chaînes: ticketCount est sérialisé en texte.
Clés: raffleId, ticketCount, email, variant, raffleTitle, instagramHandle (optionnel).
Flux commande: orderNumber à la place de raffleId.
"""
from typing import Any, Dict, Optional

from storefront.utils.validators import INT4_MAX, is_uuid, is_valid_email, normalize_email, positive_int

MAX_VALUE_LENGTH = 500


class MetadataError(ValueError):
    """Métadonnées absentes ou mal formées: l'événement ne pourra jamais être traité."""


def _clip(value: Any) -> str:
    return str(value or "")[:MAX_VALUE_LENGTH]

# module storefront.payments.metadata
def make_metadata(
    *,
    raffle: Dict[str, Any],
    ticket_count: int,
    email: str,
    variant: Optional[str],
    instagram_handle: Optional[str] = None,
) -> Dict[str, str]:
    metadata = {
        "raffleId": _clip(raffle["id"]),
        "ticketCount": str(ticket_count),
        "email": _clip(email),
        "variant": _clip(variant),
        "raffleTitle": _clip(raffle.get("title")),
    }
    if instagram_handle:
        metadata["instagramHandle"] = _clip(instagram_handle)
    return metadata


def session_from_event(event: Dict[str, Any]) -> Dict[str, Any]:
    data_obj = (event or {}).get("data", {}).get("object", {}) if isinstance(event, dict) else {}
    return data_obj if isinstance(data_obj, dict) else {}


def extract_metadata(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extrait et valide les métadonnées d'un checkout.session.completed.
    Retour:
      {"kind": "entry", "raffle_id", "ticket_count", "email", "variant", "instagram_handle", "raffle_title"}
      {"kind": "order", "order_number"}
    Lève MetadataError si un champ manque ou est invalide.
    """
    session = session_from_event(event)
    meta = session.get("metadata") or {}
    if not isinstance(meta, dict):
        raise MetadataError("metadata is not an object")

    order_number = str(meta.get("orderNumber") or "").strip()
    raffle_id = str(meta.get("raffleId") or "").strip()
    if order_number and not raffle_id:
        return {"kind": "order", "order_number": order_number}
    if not raffle_id:
        raise MetadataError("missing raffleId")
    if not is_uuid(raffle_id):
        raise MetadataError("invalid raffleId")

    ticket_count = positive_int(meta.get("ticketCount"), max_value=INT4_MAX)
    if ticket_count is None:
        raise MetadataError("invalid ticketCount")

    details = session.get("customer_details") or {}
    email = normalize_email(meta.get("email") or details.get("email") or session.get("customer_email"))
    if not is_valid_email(email):
        raise MetadataError("missing email")

    variant = str(meta.get("variant") or meta.get("size") or "").strip() or None
    return {
        "kind": "entry",
        "raffle_id": raffle_id,
        "ticket_count": ticket_count,
        "email": email,
        "variant": variant,
        "instagram_handle": str(meta.get("instagramHandle") or "").strip() or None,
        "raffle_title": str(meta.get("raffleTitle") or "").strip() or None,
    }


def _ref_id(value: Any) -> Optional[str]:
    # Stripe renvoie soit l'identifiant, soit l'objet étendu
    if isinstance(value, dict):
        return value.get("id")
    return value or None


def extract_payment_refs(event: Dict[str, Any]) -> Dict[str, Any]:
    """Identifiants Stripe et adresse de livraison collectée par Checkout."""
    session = session_from_event(event)
    shipping = (
        session.get("shipping_details")
        or (session.get("collected_information") or {}).get("shipping_details")
        or {}
    )
    address = shipping.get("address") or {}
    return {
        "stripe_session_id": session.get("id"),
        "stripe_event_id": (event or {}).get("id"),
        "stripe_payment_intent_id": _ref_id(session.get("payment_intent")),
        "stripe_customer_id": _ref_id(session.get("customer")),
        "shipping_name": shipping.get("name") or None,
        "shipping_address": address.get("line1") or None,
        "shipping_city": address.get("city") or None,
        "shipping_postcode": address.get("postal_code") or None,
        "shipping_country": address.get("country") or None,
    }
