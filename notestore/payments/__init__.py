"""
Module 'payments' (feature-first): point d'entrée public.
Réunit client Stripe, événements typés, métadonnées de session et réconciliation des achats.
"""

from .stripe_client import require_stripe, create_session, get_session, verify_event
from .events import CheckoutCompleted, IgnoredEvent, parse_event
from .metadata import make_metadata, extract_attribution
from .reconciler import ReconciliationResult, reconcile, reconcile_session

__all__ = [
    # stripe
    "require_stripe",
    "create_session",
    "get_session",
    "verify_event",
    # events
    "CheckoutCompleted",
    "IgnoredEvent",
    "parse_event",
    # metadata
    "make_metadata",
    "extract_attribution",
    # reconciliation
    "ReconciliationResult",
    "reconcile",
    "reconcile_session",
]
