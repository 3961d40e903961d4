import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from storefront.notifications import email as notifications
from storefront.orders import service as orders_service
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.validators import read_json

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/orders", tags=["Orders API"])

# module storefront.orders.views
@router.post("", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_order(request: Request, background_tasks: BackgroundTasks):
    """
    Achat direct d'un produit (paiement par virement, commande "pending_payment").
    - Entrée JSON: productId, quantity, variant (ou size), email, phone?, shippingName,
      shippingAddress, shippingCity, shippingPostcode, shippingMethod, discountCode?
    - 201: { orderNumber, redirectUrl }
    - 4xx: { error } (validation, produit introuvable, stock, variante, code promo)
    - L'e-mail de confirmation part en tâche de fond, après l'insertion.
    """
    body = await read_json(request)
    result = orders_service.create_order(body)
    order = result["order"]
    background_tasks.add_task(notifications.send_order_confirmation, order, result["product"].get("title"))
    number = order.get("order_number")
    return JSONResponse(
        {"success": True, "orderNumber": number, "redirectUrl": orders_service.thank_you_url(number)},
        status_code=201,
        background=background_tasks,
    )
