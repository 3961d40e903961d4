"""
Cas d'usage 'payments': émission des sessions Checkout pour les tickets de tirage.

Aucun enregistrement local n'est créé ici: une session jamais payée ne laisse aucune trace.
La participation est reconstruite par le webhook à partir des métadonnées.
"""
import logging
from typing import Any, Dict

import stripe

from storefront import config
from storefront.payments import cart
from storefront.payments import metadata as meta
from storefront.payments import stripe_client
from storefront.raffles import service as raffles_service
from storefront.utils.errors import TransientError, ValidationError
from storefront.utils.validators import INT4_MAX, optional_text, positive_int, require_text, validate_email

logger = logging.getLogger(__name__)


def parse_checkout_request(body: Dict[str, Any]) -> Dict[str, Any]:
    raffle_id = require_text(body.get("raffleId"), "raffleId is required")
    ticket_count = positive_int(body.get("ticketCount"), max_value=INT4_MAX)
    if ticket_count is None:
        raise ValidationError("ticketCount must be an integer >= 1")
    email = validate_email(body.get("email"), "Valid email is required")
    variant = body.get("variant")
    if variant is None:
        variant = body.get("size")
    return {
        "raffle_id": raffle_id,
        "ticket_count": ticket_count,
        "email": email,
        "variant": optional_text(variant),
        "instagram_handle": optional_text(body.get("instagramHandle")),
    }


def create_checkout_session(body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Prépare la session Stripe d'un achat de tickets.
    Préconditions: tirage ouvert (actif, prix > 0, non clos), ticketCount entier >= 1,
    plafonds par acheteur/total respectés (contrôle souple), e-mail valide, variante valide.
    Retour: {"id": ..., "url": ...}
    """
    req = parse_checkout_request(body)
    raffle = raffles_service.load_open_raffle(req["raffle_id"])
    variant = raffles_service.check_variant(raffle, req["variant"])
    raffles_service.check_caps(raffle, req["email"], req["ticket_count"])

    line_items = cart.to_line_items(raffle, req["ticket_count"])
    metadata = meta.make_metadata(
        raffle=raffle,
        ticket_count=req["ticket_count"],
        email=req["email"],
        variant=variant,
        instagram_handle=req["instagram_handle"],
    )
    try:
        session = stripe_client.create_session(
            line_items=line_items,
            customer_email=req["email"],
            success_url=f"{config.BASE_URL}/thank-you?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{config.BASE_URL}/raffles/{raffle.get('slug') or raffle['id']}",
            metadata=metadata,
        )
    except stripe.StripeError:
        logger.exception("payments.checkout.stripe_failed raffle_id=%s", raffle["id"])
        raise TransientError("Internal server error")
    logger.info(
        "payments.checkout.created raffle_id=%s ticket_count=%s session_id=%s",
        raffle["id"], req["ticket_count"], session.get("id"),
    )
    return session
