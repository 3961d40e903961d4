"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
"""
import json
import logging
import stripe
from typing import Any, Dict, List, Optional
from fastapi import Request
from storefront import config
from storefront.utils.errors import InvalidSignature

logger = logging.getLogger(__name__)

# module storefront.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY.
    """
    if config.STRIPE_SECRET_KEY:
        stripe.api_key = config.STRIPE_SECRET_KEY
    return stripe

def create_session(
    *,
    line_items: List[Dict[str, Any]],
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, str],
    customer_email: Optional[str] = None,
    mode: str = "payment",
) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout (livraison GB, frais de port offerts).
    - line_items: lignes Stripe (price_data/quantity)
    - metadata: seul canal par lequel le webhook reconstruira la participation
    Retour: {"id": "cs_test_...", "url": "https://checkout.stripe.com/..."}
    """
    require_stripe()
    session = stripe.checkout.Session.create(
        mode=mode,
        line_items=line_items,
        customer_email=customer_email,
        shipping_address_collection={"allowed_countries": ["GB"]},
        shipping_options=[
            {
                "shipping_rate_data": {
                    "type": "fixed_amount",
                    "fixed_amount": {"amount": 0, "currency": config.STRIPE_CURRENCY},
                    "display_name": "Free Shipping",
                }
            }
        ],
        success_url=success_url,
        cancel_url=cancel_url,
        metadata=metadata,
        payment_method_types=["card"],
    )
    return {"id": session.id, "url": session.url}

def verify_event(payload: bytes, sig_header: Optional[str], secret: Optional[str] = None) -> Dict[str, Any]:
    """
    Vérifie la signature Stripe (HMAC-SHA256 du payload brut, tolérance d'horodatage)
    puis décode l'événement en dict. Toute anomalie -> InvalidSignature, sans détail.
    """
    if not sig_header:
        logger.warning("payments.webhook.security missing_signature")
        raise InvalidSignature("Missing signature.")
    secret = config.STRIPE_WEBHOOK_SECRET if secret is None else secret
    try:
        stripe.WebhookSignature.verify_header(
            payload.decode("utf-8"),
            sig_header,
            secret,
            config.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
        )
    except (stripe.SignatureVerificationError, UnicodeDecodeError, ValueError) as e:
        logger.warning("payments.webhook.security invalid_signature error=%s", e)
        raise InvalidSignature()
    try:
        event = json.loads(payload)
    except ValueError:
        logger.warning("payments.webhook.security undecodable_payload")
        raise InvalidSignature()
    if not isinstance(event, dict):
        raise InvalidSignature()
    return event

async def parse_event(request: Request) -> Dict[str, Any]:
    """
    Parse et valide un événement Stripe signé (webhook).
    - Lit le body brut + en-tête Stripe-Signature
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    return verify_event(payload, sig_header)
