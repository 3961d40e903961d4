import logging

from fastapi import APIRouter, Depends, Request

from storefront.discounts import service as discounts_service
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.validators import read_json

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/discount-codes", tags=["Discounts API"])

@router.post("/validate", dependencies=[Depends(optional_rate_limit(times=20, seconds=60))])
async def validate_discount_code(request: Request):
    """
    Valide un code promo pour un sous-total (lecture seule, aucune utilisation consommée).
    - Entrée JSON: { "code": "SAVE10", "subtotalCents": 10000 }
    - 200: { valid, code, discountType, discountValue, discountAmountCents, message }
    - 404: code inconnu; 400: inactif, expiré, épuisé, minimum non atteint
    """
    body = await read_json(request)
    subtotal = body.get("subtotalCents")
    result = discounts_service.validate(body.get("code"), subtotal)
    logger.info("discounts.validated code=%s amount=%s", result["code"], result["discount_amount_cents"])
    return {
        "valid": True,
        "code": result["code"],
        "discountType": result["discount_type"],
        "discountValue": result["discount_value"],
        "discountAmountCents": result["discount_amount_cents"],
        "message": result["message"],
    }
