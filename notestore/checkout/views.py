import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from notestore.utils.security import require_user
from notestore.utils.rate_limit import optional_rate_limit
from . import service as checkout_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])

class CheckoutItem(BaseModel):
    id: str
    quantity: int = 1

class CheckoutRequest(BaseModel):
    items: List[CheckoutItem] = Field(default_factory=list)
    # Ignoré au profit de l’identité vérifiée; un userId divergent est refusé
    userId: Optional[str] = None
    returnUrl: Optional[str] = None

@router.post("", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_checkout(body: CheckoutRequest, user: Dict[str, Any] = Depends(require_user)):
    """
    Crée une session Checkout Stripe pour le panier de l’utilisateur authentifié.
    - Entrée JSON: {"items": [{"id": "<note_id>", "quantity": <int>}], "returnUrl"?: "..."}
    - Sécurité: require_user + rate limit (10 req / 60s); le userId vient toujours de la session
    - Retour: {checkoutHandle, sessionId, url, total, currency}
    """
    user_id = user.get("id")
    if body.userId and body.userId != user_id:
        logger.warning("checkout.create: userId divergent caller=%s body=%s", user_id, body.userId)
        raise HTTPException(status_code=403, detail="userId ne correspond pas à la session")

    handle = checkout_service.begin_checkout(
        user_id,
        [item.model_dump() for item in body.items],
        return_url=body.returnUrl,
    )
    return {
        "checkoutHandle": handle.handle,
        "sessionId": handle.session_id,
        "url": handle.url,
        "total": str(handle.total),
        "currency": handle.currency,
    }

@router.get("/status")
def checkout_status(session_id: str, user: Dict[str, Any] = Depends(require_user)):
    return checkout_service.get_checkout_status(user.get("id"), session_id)

@router.get("/confirm")
def confirm_checkout(session_id: str, user: Dict[str, Any] = Depends(require_user)):
    """
    Confirmation côté retour client, sans attendre le webhook.
    - 400 si le paiement n’est pas confirmé, 403 si la session appartient à un autre utilisateur
    """
    result = checkout_service.confirm_checkout(user.get("id"), session_id)
    return {"status": result.status, "created": result.created, "skipped": result.skipped}
