"""
Métadonnées Stripe de la session: {"userId": "<uuid>", "noteIds": "a,b,c"}.
Écrites par le checkout, relues par le webhook: c’est la seule clé de réconciliation.
"""
from typing import Any, Dict, Iterable, List, Mapping, Tuple
from notestore.errors import AttributionFailure, ValidationFailure

USER_KEY = "userId"
NOTES_KEY = "noteIds"
# Limite Stripe: 500 caractères par valeur de metadata
STRIPE_METADATA_VALUE_MAX = 500

# module notestore.payments.metadata
def split_note_ids(raw: Any) -> List[str]:
    """Découpe "a, b,,a" en ["a", "b"]: trim, vides ignorés, doublons retirés, ordre conservé."""
    ids: List[str] = []
    for part in str(raw or "").split(","):
        value = part.strip()
        if value and value not in ids:
            ids.append(value)
    return ids

def make_metadata(user_id: str, note_ids: Iterable[str]) -> Dict[str, str]:
    """
    Sérialise les métadonnées de la session.
    - ValidationFailure si la liste des notes dépasse la limite Stripe (troncature interdite:
      une note tronquée ne serait jamais livrée)
    """
    joined = ",".join(split_note_ids(",".join(note_ids)))
    if len(joined) > STRIPE_METADATA_VALUE_MAX:
        raise ValidationFailure("Panier trop volumineux pour un seul paiement")
    return {USER_KEY: user_id, NOTES_KEY: joined}

def extract_attribution(metadata: Mapping[str, Any]) -> Tuple[str, List[str]]:
    """
    Extrait (user_id, note_ids) des métadonnées.
    - AttributionFailure si l’un des deux est absent ou vide
    """
    meta = metadata or {}
    user_id = str(meta.get(USER_KEY) or "").strip()
    note_ids = split_note_ids(meta.get(NOTES_KEY))
    if not user_id or not note_ids:
        raise AttributionFailure(
            f"Métadonnées incomplètes (userId={'ok' if user_id else 'absent'}, noteIds={len(note_ids)})"
        )
    return user_id, note_ids

def owner_of(session: Dict[str, Any]) -> str:
    return str(((session or {}).get("metadata") or {}).get(USER_KEY) or "")
