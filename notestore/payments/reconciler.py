"""
Réconciliation des paiements: convertit un checkout.session.completed en achats durables.

États par paiement: non vu -> réconcilié. Pas d’état « échec »: un échec remonte à Stripe
(code non 200) qui relivre l’événement, et la relivraison ne refait que le travail restant
grâce à la contrainte d’unicité (user_id, note_id).
"""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional
import logging

from notestore.errors import AttributionFailure, PartialReconciliationFailure
from notestore.purchases import repository as purchases_repo
from . import events
from .metadata import extract_attribution

logger = logging.getLogger(__name__)

IGNORED = "ignored"
UNATTRIBUTED = "unattributed"
RECONCILED = "reconciled"

@dataclass
class ReconciliationResult:
    status: str
    event_id: Optional[str] = None
    user_id: Optional[str] = None
    created: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

def reconcile(event: events.PaymentEvent) -> ReconciliationResult:
    """
    Point d’entrée unique (webhook et confirmation manuelle).
    - IgnoredEvent: acquitté sans effet
    - CheckoutCompleted sans attribution: acquitté, journalisé en erreur pour suivi manuel
    - Sinon: un achat par note, indépendamment; PartialReconciliationFailure si une écriture a échoué
    """
    if isinstance(event, events.IgnoredEvent):
        logger.info("payments.reconcile ignored event_id=%s type=%s", event.event_id, event.type)
        return ReconciliationResult(status=IGNORED, event_id=event.event_id)
    if isinstance(event, events.CheckoutCompleted):
        return _reconcile_checkout(event)
    raise TypeError(f"Événement non géré: {type(event).__name__}")

def reconcile_session(session: Dict[str, Any]) -> ReconciliationResult:
    """Réconcilie une Checkout Session lue directement chez Stripe (retour client sans attendre le webhook)."""
    return reconcile(events.from_session(session))

def _reconcile_checkout(event: events.CheckoutCompleted) -> ReconciliationResult:
    try:
        user_id, note_ids = extract_attribution(event.metadata)
    except AttributionFailure as exc:
        # Paiement encaissé, droits non accordés
        logger.error(
            "payments.reconcile unattributed event_id=%s session_id=%s payment=%s reason=%s",
            event.event_id, event.session_id, event.payment_reference, exc.detail,
        )
        return ReconciliationResult(status=UNATTRIBUTED, event_id=event.event_id)

    result = ReconciliationResult(status=RECONCILED, event_id=event.event_id, user_id=user_id)
    for note_id in note_ids:
        # Garde rapide contre les doublons; la contrainte d’unicité reste l’arbitre final
        if purchases_repo.has_purchase(user_id, note_id):
            result.skipped.append(note_id)
            continue
        outcome = purchases_repo.insert_purchase(user_id, note_id, event.payment_reference)
        if outcome is None:
            result.failed.append(note_id)
        elif outcome.get("status") == "exists":
            result.skipped.append(note_id)
        else:
            result.created.append(note_id)

    recorded = result.created + result.skipped
    merged = True
    if recorded:
        merged = purchases_repo.merge_entitlements(user_id, recorded, customer_id=event.customer_id)

    logger.info(
        "payments.reconcile event_id=%s user_id=%s created=%s skipped=%s failed=%s merged=%s",
        event.event_id, user_id, len(result.created), len(result.skipped), len(result.failed), merged,
    )
    if result.failed or not merged:
        detail = None if result.failed else "Réconciliation partielle: mise à jour des droits impossible"
        raise PartialReconciliationFailure(result.failed, result.created, result.skipped, detail=detail)
    return result
