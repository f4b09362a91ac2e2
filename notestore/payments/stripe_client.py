"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
"""
import json
import logging
from typing import Any, Dict, Optional
import stripe
from notestore import config
from notestore.errors import AuthenticationFailure, ConfigurationError, NotFound, UpstreamError

logger = logging.getLogger(__name__)

# module notestore.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l’emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY.
    - ConfigurationError si la clé est absente: aucun appel Stripe ne peut aboutir.
    """
    if not config.STRIPE_SECRET_KEY:
        raise ConfigurationError("STRIPE_SECRET_KEY manquant")
    stripe.api_key = config.STRIPE_SECRET_KEY
    return stripe

def to_dict(obj: Any) -> Dict[str, Any]:
    """Convertit un StripeObject (ou dict) en dict Python récursif."""
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return obj
    for attr in ("to_dict_recursive", "to_dict"):
        fn = getattr(obj, attr, None)
        if callable(fn):
            return fn()
    return dict(obj)

def create_session(**params: Any) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout.
    - params: line_items, mode, metadata, ui_mode/return_url ou success_url/cancel_url...
    Retour: dict session (ex: {"id": "cs_test_...", "client_secret": "...", "url": None})
    """
    require_stripe()
    try:
        session = stripe.checkout.Session.create(**params)
    except stripe.StripeError as e:
        logger.exception("payments.stripe_client.create_session failed")
        raise UpstreamError(f"Stripe: {getattr(e, 'user_message', None) or 'création de session impossible'}")
    return to_dict(session)

def get_session(session_id: str) -> Dict[str, Any]:
    """
    Récupère une session Stripe Checkout par son identifiant.
    Retour: dict session incluant "id", "status", "payment_status", "metadata", etc.
    """
    require_stripe()
    try:
        session = stripe.checkout.Session.retrieve(session_id)
    except stripe.InvalidRequestError:
        logger.info("payments.stripe_client.get_session: session inconnue id=%s", session_id)
        raise NotFound("Session de paiement introuvable")
    except stripe.StripeError:
        logger.exception("payments.stripe_client.get_session failed id=%s", session_id)
        raise UpstreamError("Stripe: lecture de session impossible")
    return to_dict(session)

def verify_event(payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
    """
    Valide un événement Stripe signé (webhook) et le retourne sous forme de dict.
    - ConfigurationError si STRIPE_WEBHOOK_SECRET est absent
    - AuthenticationFailure si la signature est absente, invalide ou expirée, ou le corps illisible
    Aucune donnée du corps n’est lue avant la vérification de signature.
    """
    secret = config.STRIPE_WEBHOOK_SECRET
    if not secret:
        raise ConfigurationError("STRIPE_WEBHOOK_SECRET manquant")
    if not signature:
        raise AuthenticationFailure("En-tête Stripe-Signature manquant")
    try:
        stripe.Webhook.construct_event(payload, signature, secret)
    except stripe.SignatureVerificationError:
        raise AuthenticationFailure("Signature Stripe invalide")
    except ValueError:
        raise AuthenticationFailure("Corps de webhook invalide")
    return json.loads(payload)
