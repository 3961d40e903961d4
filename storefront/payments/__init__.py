"""
Module 'payments' (feature-first): point d'entrée public.
Réunit lignes Stripe, contrat de métadonnées, client Stripe, émission des sessions et webhook.
"""

from .cart import to_line_items
from .metadata import MetadataError, make_metadata, extract_metadata, extract_payment_refs
from .stripe_client import require_stripe, create_session, verify_event, parse_event
from .service import create_checkout_session
from .webhook import handle_event

__all__ = [
    # cart
    "to_line_items",
    # metadata
    "MetadataError",
    "make_metadata",
    "extract_metadata",
    "extract_payment_refs",
    # stripe
    "require_stripe",
    "create_session",
    "verify_event",
    "parse_event",
    # services
    "create_checkout_session",
    "handle_event",
]
