import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from storefront.notifications import email as notifications
from storefront.payments import stripe_client
from storefront.payments import service as payments_service
from storefront.payments import webhook as payments_webhook
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.validators import read_json

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Payments API"])

# module storefront.payments.views
@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_checkout_session(request: Request):
    """
    Crée une session Checkout Stripe pour des tickets de tirage.
    - Entrée JSON: { "raffleId", "ticketCount", "email", "variant", "instagramHandle"? }
    - 200: { "url": "<Stripe Checkout>" }
    - 4xx: { "error": ... }; 500 si Stripe est indisponible
    """
    body = await read_json(request)
    session = payments_service.create_checkout_session(body)
    return {"url": session.get("url")}

@router.post("/stripe/webhook", include_in_schema=False)
async def stripe_webhook(request: Request, background_tasks: BackgroundTasks):
    """
    Webhook Stripe: checkout.session.completed -> participation (ou commande payée).
    - Signature: stripe_client.parse_event (Stripe-Signature + STRIPE_WEBHOOK_SECRET), 400 sinon
    - 200 {"received": true} pour tout événement authentifié, y compris ignoré ou inexploitable
    - 500 si l'écriture échoue: Stripe rejoue, l'écriture étant idempotente
    """
    event = await stripe_client.parse_event(request)
    result = payments_webhook.handle_event(event)
    notify = result.get("notify")
    if notify:
        background_tasks.add_task(notifications.send_entry_confirmation, notify["entry"], notify["raffle_title"])
    return JSONResponse({"received": True}, background=background_tasks)
