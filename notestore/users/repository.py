"""Couche d’accès aux données (Supabase) pour les profils utilisateurs.
Table profiles: id, email, full_name, role, purchased_notes (cache des droits), stripe_customer_id.
Les exceptions sont « catchées » et transforment les résultats en valeurs neutres (None, False) afin de ne pas casser l’UX.
"""
from typing import Any, Dict, Optional
import logging
import notestore.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"

def load_profile(user_id: str) -> Optional[Dict[str, Any]]:
    """Lit un profil par id (service-role: lecture serveur, indépendante des policies RLS).
    - None si le profil n’existe pas
    - les erreurs de lecture remontent: « absent » et « illisible » ne se confondent pas
    """
    if not user_id:
        return None
    res = (
        supabase_client.get_service_supabase()
        .table(PROFILES_TABLE)
        .select("*")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def get_profile(user_id: str) -> Optional[Dict[str, Any]]:
    """Variante tolérante de load_profile: None si introuvable ou en cas d’erreur."""
    try:
        return load_profile(user_id)
    except Exception:
        logger.exception("users.repository.get_profile failed user_id=%s", user_id)
        return None

def get_profile_by_email(email: str) -> Optional[Dict[str, Any]]:
    if not email:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(PROFILES_TABLE)
            .select("*")
            .eq("email", email)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("users.repository.get_profile_by_email failed")
        return None

def upsert_profile(user_id: str, email: Optional[str], role: Optional[str] = None, full_name: Optional[str] = None) -> bool:
    """Crée ou met à jour le profil (table profiles) via la clé de service.
    - Champs écrits: id, email, role (optionnel), full_name (optionnel)
    - purchased_notes et stripe_customer_id ne sont jamais touchés ici
    - Retour: True si succès, False sinon
    """
    if not user_id:
        return False
    payload: Dict[str, Any] = {"id": user_id}
    if email:
        payload["email"] = email
    if role:
        payload["role"] = role
    if full_name:
        payload["full_name"] = full_name
    try:
        supabase_client.get_service_supabase().table(PROFILES_TABLE).upsert(payload, on_conflict="id").execute()
        return True
    except Exception:
        logger.exception("users.repository.upsert_profile failed user_id=%s", user_id)
        return False
