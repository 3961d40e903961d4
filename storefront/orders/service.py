# module storefront.orders.service
"""
Émission des commandes directes (achat produit, paiement par virement).

Étapes de create_order():
  1) Valider l'entrée (messages renvoyés tels quels à l'acheteur)
  2) InventoryGuard.reserve: produit actif, stock suffisant, variante valide (consultatif)
  3) Code promo éventuel (lecture seule) puis calcul des montants en centimes
  4) Insertion avec numéro ORD-XXXXXX unique (essais bornés, collision = rejouer)
  5) Décrément atomique du stock APRÈS l'insertion: un échec est journalisé, pas annulé
La notification de confirmation est planifiée par la vue, après l'écriture durable.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from storefront import config
from storefront.discounts import service as discounts_service
from storefront.orders import pricing
from storefront.orders import repository as orders_repo
from storefront.products import inventory
from storefront.utils import identifiers
from storefront.utils.errors import (
    AppError,
    ConflictError,
    DiscountError,
    DiscountNotFound,
    NotFoundError,
    TransientError,
    ValidationError,
)
from storefront.utils.validators import (
    INT4_MAX,
    is_uuid,
    optional_text,
    positive_int,
    require_text,
    validate_email,
    validate_postcode,
)

logger = logging.getLogger(__name__)

ORDER_STATUSES = ("pending_payment", "paid", "processing", "shipped", "delivered", "cancelled")
TERMINAL_STATUSES = ("delivered", "cancelled")

# Transitions autorisées: vers l'état suivant, ou annulation depuis tout état non terminal
ORDER_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    "pending_payment": ("paid", "cancelled"),
    "paid": ("processing", "cancelled"),
    "processing": ("shipped", "cancelled"),
    "shipped": ("delivered", "cancelled"),
    "delivered": (),
    "cancelled": (),
}


def allowed_sources(to_status: str) -> Tuple[str, ...]:
    return tuple(src for src, targets in ORDER_TRANSITIONS.items() if to_status in targets)


def parse_order_request(body: Dict[str, Any]) -> Dict[str, Any]:
    """Valide et normalise le corps JSON de POST /api/orders."""
    product_id = require_text(body.get("productId"), "Product ID is required.")
    quantity = positive_int(body.get("quantity"), max_value=INT4_MAX)
    if quantity is None:
        raise ValidationError("Quantity must be at least 1.")
    email = validate_email(body.get("email"))
    shipping_name = require_text(body.get("shippingName"), "Full name is required.")
    shipping_address = require_text(body.get("shippingAddress"), "Address is required.")
    shipping_city = require_text(body.get("shippingCity"), "City is required.")
    shipping_postcode = validate_postcode(body.get("shippingPostcode"))
    shipping_method = body.get("shippingMethod") or "standard"
    if shipping_method not in pricing.SHIPPING_METHODS:
        raise ValidationError("Invalid shipping method.")
    variant = body.get("variant")
    if variant is None:
        variant = body.get("size")
    return {
        "product_id": product_id,
        "quantity": quantity,
        "variant": optional_text(variant),
        "email": email,
        "phone": optional_text(body.get("phone")),
        "shipping_name": shipping_name,
        "shipping_address": shipping_address,
        "shipping_city": shipping_city,
        "shipping_postcode": shipping_postcode,
        "shipping_method": shipping_method,
        "discount_code": discounts_service.normalize_code(body.get("discountCode")) or None,
    }


def _apply_discount(code: Optional[str], subtotal_cents: int) -> Optional[Dict[str, Any]]:
    if not code:
        return None
    try:
        return discounts_service.validate(code, subtotal_cents)
    except DiscountNotFound:
        # Sur une commande, un code inconnu est une erreur de saisie (400)
        raise DiscountError("Invalid discount code.")


def create_order(body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Crée une commande "pending_payment".
    Retour: {"order": <ligne insérée>, "product": <produit>}
    """
    req = parse_order_request(body)
    reserved = inventory.reserve(req["product_id"], req["quantity"], req["variant"])
    product = reserved["product"]

    subtotal = pricing.subtotal(int(product.get("price_cents") or 0), req["quantity"])
    discount = _apply_discount(req["discount_code"], subtotal)
    quote = pricing.quote(
        int(product.get("price_cents") or 0),
        req["quantity"],
        req["shipping_method"],
        discount["discount_amount_cents"] if discount else 0,
    )

    row = {
        "product_id": product["id"],
        "quantity": req["quantity"],
        "variant": reserved["variant"],
        "email": req["email"],
        "phone": req["phone"],
        "shipping_name": req["shipping_name"],
        "shipping_address": req["shipping_address"],
        "shipping_city": req["shipping_city"],
        "shipping_postcode": req["shipping_postcode"],
        "shipping_country": "GB",
        "shipping_method": req["shipping_method"],
        "subtotal_cents": quote["subtotal_cents"],
        "discount_code": discount["code"] if discount else None,
        "discount_amount_cents": quote["discount_amount_cents"],
        "shipping_cost_cents": quote["shipping_cost_cents"],
        "total_amount_cents": quote["total_cents"],
        "status": "pending_payment",
    }

    order = identifiers.insert_with_unique(
        orders_repo.order_number_exists,
        lambda number: orders_repo.insert_order({**row, "order_number": number}),
    )
    logger.info(
        "orders.created order_number=%s product_id=%s quantity=%s total=%s",
        order.get("order_number"), product["id"], req["quantity"], quote["total_cents"],
    )

    try:
        inventory.decrement(product["id"], req["quantity"])
    except AppError as e:
        # La commande existe déjà: ajustement manuel du stock
        logger.error(
            "orders.stock_decrement_failed order_number=%s product_id=%s quantity=%s reason=%s",
            order.get("order_number"), product["id"], req["quantity"], e.message,
        )

    return {"order": order, "product": product}


def thank_you_url(order_number: str) -> str:
    return f"{config.BASE_URL}/thank-you?order={order_number}"


def transition_order(order_id: str, to_status: str) -> Dict[str, Any]:
    """
    Transition pilotée par l'admin, en une seule mise à jour conditionnelle.
    - statut inconnu -> ValidationError; commande absente -> NotFoundError
    - transition illégale (ou course perdue) -> ConflictError
    - passage à "paid": consomme le code promo de la commande
    """
    if to_status not in ORDER_STATUSES:
        raise ValidationError("Invalid order status.")
    if not is_uuid(order_id):
        raise NotFoundError("Order not found.")
    if to_status == "paid":
        current = orders_repo.get_order(order_id)
        if not current:
            raise NotFoundError("Order not found.")
        order, changed = mark_order_paid(current["order_number"])
        if not changed:
            raise ConflictError(f"Cannot move order from {current.get('status')} to paid.")
        return order

    updated = orders_repo.update_status(to_status, allowed_sources(to_status), order_id=order_id)
    if updated:
        logger.info("orders.status order_id=%s status=%s", order_id, to_status)
        return updated
    current = orders_repo.get_order(order_id)
    if not current:
        raise NotFoundError("Order not found.")
    raise ConflictError(f"Cannot move order from {current.get('status')} to {to_status}.")


def mark_order_paid(order_number: str) -> Tuple[Optional[Dict[str, Any]], bool]:
    """
    pending_payment -> paid (conditionnel). Idempotent: une seconde exécution ne modifie rien.
    Retour: (commande, changed). Le code promo n'est consommé que si changed est vrai.
    """
    updated = orders_repo.update_status("paid", ("pending_payment",), order_number=order_number)
    if not updated:
        return orders_repo.get_order_by_number(order_number), False
    logger.info("orders.paid order_number=%s", order_number)
    if updated.get("discount_code"):
        try:
            discounts_service.redeem(updated["discount_code"])
        except TransientError:
            # La commande est déjà payée: un rejeu ne repasserait pas ici, ajustement manuel du compteur
            logger.error(
                "orders.discount_redeem_failed order_number=%s code=%s",
                order_number, updated["discount_code"],
            )
    return updated, True
