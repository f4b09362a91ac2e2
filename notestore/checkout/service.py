"""
Cas d'usage 'checkout': orchestre catalogue, panier, profils et Stripe.
Aucune ligne locale n’est écrite: l’intention d’achat vit dans les metadata de la session Stripe.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Optional
import logging

from notestore import config
from notestore.catalog import repository as catalog_repo
from notestore.users import repository as users_repo
from notestore.payments import stripe_client, reconciler
from notestore.payments.metadata import owner_of
from notestore.errors import AccessDenied, InvalidUser, UpstreamError, ValidationFailure
from notestore.utils.validators import is_http_url
from . import cart

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class CheckoutHandle:
    session_id: str
    client_secret: Optional[str]
    url: Optional[str]
    total: Decimal
    currency: str

    @property
    def handle(self) -> Optional[str]:
        """Jeton utilisable par le client: client_secret (intégré) ou URL Stripe (hébergé)."""
        return self.client_secret or self.url

def _session_params(
    line_items, metadata: Dict[str, str], return_url: str, customer_email: Optional[str]
) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "mode": "payment",
        "line_items": line_items,
        "metadata": metadata,
        "payment_intent_data": {"metadata": metadata},
        "customer_creation": "always",
    }
    if customer_email:
        params["customer_email"] = customer_email
    if config.CHECKOUT_UI_MODE == "hosted":
        params["success_url"] = return_url
        params["cancel_url"] = config.CHECKOUT_CANCEL_URL
    else:
        params["ui_mode"] = "embedded"
        params["return_url"] = return_url
    return params

def begin_checkout(
    user_id: str,
    lines: Iterable[Mapping[str, Any]],
    return_url: Optional[str] = None,
) -> CheckoutHandle:
    """
    Crée la session Stripe pour un panier.
    1) panier non vide
    2) l’utilisateur doit exister (profil) avant tout appel Stripe: sinon InvalidUser
    3) prix relus au catalogue, total recalculé
    4) metadata {userId, noteIds}: seule clé de réconciliation du webhook
    Une lecture profil/catalogue en échec lève UpstreamError (502, à réessayer), jamais une erreur client.
    """
    if not user_id:
        raise ValidationFailure("Utilisateur manquant")
    quantities = cart.aggregate_quantities(lines)
    if return_url and not is_http_url(return_url):
        raise ValidationFailure("returnUrl invalide")

    try:
        profile = users_repo.load_profile(user_id)
    except Exception:
        logger.exception("checkout.begin: lecture du profil impossible user_id=%s", user_id)
        raise UpstreamError("Lecture du profil impossible")
    if not profile:
        logger.warning("checkout.begin: utilisateur inconnu user_id=%s", user_id)
        raise InvalidUser()

    try:
        products = catalog_repo.load_products_map(quantities.keys())
    except Exception:
        logger.exception("checkout.begin: lecture du catalogue impossible user_id=%s", user_id)
        raise UpstreamError("Lecture du catalogue impossible")
    total = cart.compute_total(products, quantities)
    line_items = cart.to_line_items(products, quantities, config.CHECKOUT_CURRENCY)
    metadata = cart.make_metadata(user_id, quantities)

    session = stripe_client.create_session(
        **_session_params(line_items, metadata, return_url or config.CHECKOUT_RETURN_URL, profile.get("email"))
    )
    session_id = session.get("id")
    if not session_id:
        raise UpstreamError("Session Stripe invalide")
    logger.info(
        "checkout.begin session_id=%s user_id=%s notes=%s total=%s",
        session_id, user_id, len(quantities), total,
    )
    return CheckoutHandle(
        session_id=session_id,
        client_secret=session.get("client_secret"),
        url=session.get("url"),
        total=total,
        currency=config.CHECKOUT_CURRENCY,
    )

def _owned_session(user_id: str, session_id: str) -> Dict[str, Any]:
    if not session_id:
        raise ValidationFailure("session_id manquant")
    session = stripe_client.get_session(session_id)
    if owner_of(session) != user_id:
        raise AccessDenied("Session appartenant à un autre utilisateur")
    return session

def get_checkout_status(user_id: str, session_id: str) -> Dict[str, Any]:
    """État d’une session (page de retour du paiement intégré)."""
    session = _owned_session(user_id, session_id)
    details = session.get("customer_details") or {}
    return {
        "status": session.get("status"),
        "payment_status": session.get("payment_status"),
        "customer_email": details.get("email") or session.get("customer_email"),
    }

def confirm_checkout(user_id: str, session_id: str) -> reconciler.ReconciliationResult:
    """
    Alternative au webhook: réconcilie une session payée appartenant à l’appelant.
    Même réconciliation idempotente que le webhook: un double passage ne crée aucun doublon.
    """
    session = _owned_session(user_id, session_id)
    payment_status = session.get("payment_status") or ""
    if payment_status not in ("paid", "no_payment_required"):
        raise ValidationFailure(f"Paiement non confirmé (payment_status={payment_status})")
    return reconciler.reconcile_session(session)
