"""
Accès aux données pour les achats (table purchases) et le cache des droits (profiles.purchased_notes).
Toutes les écritures passent par le client service-role: elles sont faites par le webhook, sans session utilisateur.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging
import notestore.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

PURCHASES_TABLE = "purchases"
PROFILES_TABLE = "profiles"
# Contrainte UNIQUE (user_id, note_id) en base: voir sql/schema.sql
PURCHASE_CONFLICT_KEY = "user_id,note_id"
# Fonction SQL d’union atomique du cache des droits (sql/schema.sql)
MERGE_ENTITLEMENTS_FN = "merge_purchased_notes"

def _dedupe(ids: Iterable[Any]) -> List[str]:
    seen: List[str] = []
    for i in ids:
        value = str(i or "").strip()
        if value and value not in seen:
            seen.append(value)
    return seen

def has_purchase(user_id: str, note_id: str) -> Optional[bool]:
    """
    Un achat existe-t-il pour (user_id, note_id) ?
    - None si la lecture a échoué: l’appelant ne doit pas interpréter l’échec comme « non acheté »
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(PURCHASES_TABLE)
            .select("id")
            .eq("user_id", user_id)
            .eq("note_id", note_id)
            .limit(1)
            .execute()
        )
        return bool(res.data)
    except Exception:
        logger.exception("purchases.repository.has_purchase failed user_id=%s note_id=%s", user_id, note_id)
        return None

def insert_purchase(user_id: str, note_id: str, payment_reference: Optional[str]) -> Optional[Dict[str, str]]:
    """
    Insertion idempotente: INSERT ... ON CONFLICT (user_id, note_id) DO NOTHING.
    - {"status": "created"} si la ligne a été écrite
    - {"status": "exists"} si la contrainte d’unicité a absorbé l’écriture (livraison concurrente)
    - None en cas d’échec
    """
    row = {"user_id": user_id, "note_id": note_id, "stripe_payment_intent_id": payment_reference}
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(PURCHASES_TABLE)
            .upsert(row, on_conflict=PURCHASE_CONFLICT_KEY, ignore_duplicates=True)
            .execute()
        )
        return {"status": "created"} if res.data else {"status": "exists"}
    except Exception:
        logger.exception("purchases.repository.insert_purchase failed user_id=%s note_id=%s", user_id, note_id)
        return None

def _fetch_purchased_ids(client, user_id: str) -> List[str]:
    res = client.table(PURCHASES_TABLE).select("note_id").eq("user_id", user_id).execute()
    return _dedupe(r.get("note_id") for r in (res.data or []))

def list_purchased_note_ids(user_id: str) -> List[str]:
    if not user_id:
        return []
    try:
        return _fetch_purchased_ids(supabase_client.get_service_supabase(), user_id)
    except Exception:
        logger.exception("purchases.repository.list_purchased_note_ids failed user_id=%s", user_id)
        return []

def list_purchases(user_id: str) -> List[dict]:
    """Achats de l’utilisateur, du plus récent au plus ancien ([] en cas d’erreur)."""
    if not user_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(PURCHASES_TABLE)
            .select("id, note_id, created_at")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("purchases.repository.list_purchases failed user_id=%s", user_id)
        return []

def merge_entitlements(user_id: str, note_ids: Iterable[str], customer_id: Optional[str] = None) -> bool:
    """
    Met à jour profiles.purchased_notes comme l’union dédupliquée de:
    la liste en cache, les notes données, et toutes les lignes purchases de l’utilisateur.
    L’union est calculée en base, en une seule instruction (rpc merge_purchased_notes):
    rien n’est lu puis réécrit côté Python, une livraison concurrente n’est donc jamais écrasée.
    - stripe_customer_id n’est posé que s’il est absent
    - Profil absent: rien à mettre en cache (les droits dérivent des achats), True
    - False si l’appel échoue
    """
    params = {"p_user": user_id, "p_notes": _dedupe(note_ids), "p_customer": customer_id or None}
    try:
        res = supabase_client.get_service_supabase().rpc(MERGE_ENTITLEMENTS_FN, params).execute()
    except Exception:
        logger.exception("purchases.repository.merge_entitlements failed user_id=%s", user_id)
        return False
    if res.data is False:
        logger.warning("purchases.merge_entitlements: profil absent user_id=%s", user_id)
    return True
