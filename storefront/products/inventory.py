# module storefront.products.inventory
"""
Garde de stock pour les achats directs.

- reserve(): contrôle consultatif (aucun verrou) du produit, du stock et de la variante
- decrement(): décrément autoritaire, atomique et conditionnel, appliqué APRÈS la création
  durable de la commande. Un échec est journalisé, jamais compensé: la commande est
  l'engagement envers l'acheteur.
"""
import logging
from typing import Any, Dict, List, Optional

from storefront.products import repository as products_repo
from storefront.utils.errors import InsufficientStock, InvalidVariant, ProductInactive, ProductNotFound
from storefront.utils.validators import is_uuid

logger = logging.getLogger(__name__)


def variant_options(product: Dict[str, Any]) -> List[str]:
    return [str(v) for v in (product.get("variant_options") or []) if str(v).strip()]


def check_variant(options: List[str], variant: Optional[str]) -> Optional[str]:
    """
    Une variante est requise ssi la liste d'options est non vide.
    Sans options, toute variante fournie est ignorée (None).
    """
    if not options:
        return None
    if variant is None or variant not in options:
        raise InvalidVariant()
    return variant


def reserve(product_id: str, quantity: int, variant: Optional[str] = None) -> Dict[str, Any]:
    """Retourne {"product": ..., "variant": ...} ou lève une erreur d'inventaire."""
    product = products_repo.get_product(product_id) if is_uuid(product_id) else None
    if not product:
        raise ProductNotFound()
    if not product.get("is_active"):
        raise ProductInactive()
    available = int(product.get("stock_quantity") or 0)
    if available < quantity:
        raise InsufficientStock(available)
    chosen = check_variant(variant_options(product), variant)
    return {"product": product, "variant": chosen}


def decrement(product_id: str, quantity: int) -> int:
    """
    stock_quantity = stock_quantity - quantity WHERE stock_quantity >= quantity.
    Lève InsufficientStock si aucune ligne n'a été modifiée.
    """
    remaining = products_repo.decrement_stock(product_id, quantity)
    if remaining is None:
        product = products_repo.get_product(product_id) or {}
        raise InsufficientStock(int(product.get("stock_quantity") or 0))
    logger.info("inventory.decrement product_id=%s quantity=%s remaining=%s", product_id, quantity, remaining)
    return remaining
