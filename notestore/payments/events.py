"""
Événements Stripe typés: seul checkout.session.completed déclenche une réconciliation,
tout autre type est acquitté puis ignoré.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

CHECKOUT_COMPLETED = "checkout.session.completed"

@dataclass(frozen=True)
class CheckoutCompleted:
    event_id: Optional[str]
    session_id: Optional[str]
    payment_reference: Optional[str]
    customer_id: Optional[str]
    metadata: Dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class IgnoredEvent:
    event_id: Optional[str]
    type: str

PaymentEvent = Union[CheckoutCompleted, IgnoredEvent]

def _ref(value: Any) -> Optional[str]:
    # Stripe renvoie un id ou l’objet développé
    if isinstance(value, dict):
        value = value.get("id")
    return str(value) if value else None

def from_session(session: Dict[str, Any], event_id: Optional[str] = None) -> CheckoutCompleted:
    """Construit un CheckoutCompleted depuis un objet Checkout Session (webhook ou lecture directe)."""
    session = session or {}
    session_id = _ref(session.get("id"))
    return CheckoutCompleted(
        event_id=event_id,
        session_id=session_id,
        # Référence de paiement: payment_intent, sinon l’id de session
        payment_reference=_ref(session.get("payment_intent")) or session_id,
        customer_id=_ref(session.get("customer")),
        metadata=dict(session.get("metadata") or {}),
    )

def parse_event(event: Dict[str, Any]) -> PaymentEvent:
    event = event or {}
    event_type = str(event.get("type") or "")
    event_id = event.get("id")
    if event_type != CHECKOUT_COMPLETED:
        return IgnoredEvent(event_id=event_id, type=event_type)
    data_obj = (event.get("data") or {}).get("object") or {}
    return from_session(data_obj, event_id=event_id)
