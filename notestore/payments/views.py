import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from notestore.errors import AuthenticationFailure, PartialReconciliationFailure
from notestore.payments import stripe_client
from notestore.payments import events
from notestore.payments import reconciler

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

# module notestore.payments.views
@router.post("/webhook", include_in_schema=False)
async def stripe_webhook(request: Request):
    """
    Webhook Stripe: seul le code HTTP pilote la relivraison côté Stripe.
    - 400: signature absente ou invalide (rien n’est lu ni écrit)
    - 500: secret webhook absent (ConfigurationError), réconciliation partielle ou erreur inattendue
    - 200 {received: true, status}: réconcilié, ignoré, ou non attribuable
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    try:
        raw_event = stripe_client.verify_event(payload, signature)
    except AuthenticationFailure as exc:
        logger.warning("payments.webhook rejected: %s", exc.detail)
        return JSONResponse({"received": False, "detail": exc.detail, "error": exc.error_code}, status_code=400)

    event = events.parse_event(raw_event)
    try:
        result = reconciler.reconcile(event)
    except PartialReconciliationFailure as exc:
        logger.error(
            "payments.webhook partial event_id=%s failed=%s created=%s skipped=%s",
            raw_event.get("id"), exc.failed, exc.created, exc.skipped,
        )
        return JSONResponse(
            {"received": False, "detail": exc.detail, "error": exc.error_code, "failed": exc.failed},
            status_code=500,
        )
    except Exception:
        logger.exception("payments.webhook error event_id=%s", raw_event.get("id"))
        return JSONResponse({"received": False, "detail": "Erreur de traitement", "error": "internal_error"}, status_code=500)

    return {"received": True, "status": result.status}
