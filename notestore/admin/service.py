"""Administration du catalogue et statistiques simples (service-role)."""
from typing import Any, Dict
import logging
import uuid

import notestore.infra.supabase_client as supabase_client
from notestore.catalog import repository as catalog_repo
from notestore.catalog.models import ProductCreate, ProductUpdate
from notestore.errors import NotFound, UpstreamError, ValidationFailure

logger = logging.getLogger(__name__)

# module notestore.admin.service
def count_table_rows(table_name: str) -> int:
    """
    Compte les lignes d'une table via Supabase.
    Utilise count='exact' si disponible, sinon fallback sur len(data).
    """
    try:
        res = supabase_client.get_service_supabase().table(table_name).select("id", count="exact").execute()
        if getattr(res, "count", None) is not None:
            return int(res.count)
        return len(res.data or [])
    except Exception:
        logger.exception("admin.count_table_rows failed table=%s", table_name)
        return 0

def get_stats() -> Dict[str, int]:
    return {
        "notes_count": count_table_rows("notes"),
        "profiles_count": count_table_rows("profiles"),
        "purchases_count": count_table_rows("purchases"),
        "seller_requests_count": count_table_rows("seller_requests"),
    }

def _serialize(data: Dict[str, Any]) -> Dict[str, Any]:
    if "price" in data and data["price"] is not None:
        data["price"] = str(data["price"])
    return data

def create_note(payload: ProductCreate) -> dict:
    data = _serialize(payload.model_dump(exclude_none=True))
    data.setdefault("id", str(uuid.uuid4()))
    row = catalog_repo.create_product(data)
    if row is None:
        raise UpstreamError("Création de la note impossible")
    return row

def update_note(note_id: str, payload: ProductUpdate) -> dict:
    data = _serialize(payload.model_dump(exclude_none=True))
    if not data:
        raise ValidationFailure("Aucun champ à mettre à jour")
    if catalog_repo.get_product(note_id) is None:
        raise NotFound("Note introuvable")
    row = catalog_repo.update_product(note_id, data)
    if row is None:
        raise UpstreamError("Mise à jour de la note impossible")
    return row

def delete_note(note_id: str) -> bool:
    if catalog_repo.get_product(note_id) is None:
        raise NotFound("Note introuvable")
    if not catalog_repo.delete_product(note_id):
        raise UpstreamError("Suppression de la note impossible")
    return True
