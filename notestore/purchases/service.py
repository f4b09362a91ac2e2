"""Droits d’accès (entitlements): dérivés des lignes purchases, jamais du cache du profil."""
from typing import List
import logging
from . import repository

logger = logging.getLogger(__name__)

def has_entitlement(user_id: str, note_id: str) -> bool:
    if not user_id or not note_id:
        return False
    found = repository.has_purchase(user_id, note_id)
    if found is None:
        # Lecture en échec: refus par défaut
        logger.warning("purchases.has_entitlement: lecture impossible user_id=%s note_id=%s", user_id, note_id)
        return False
    return found

def list_entitlements(user_id: str) -> List[str]:
    return repository.list_purchased_note_ids(user_id)
