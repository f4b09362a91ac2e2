from typing import Any, Dict, Iterable, List, Optional
import logging
import notestore.infra.supabase_client as supabase_client
from .models import Product

logger = logging.getLogger(__name__)

NOTES_TABLE = "notes"

def _to_products(rows: List[dict]) -> List[Product]:
    products: List[Product] = []
    for row in rows or []:
        try:
            products.append(Product.from_row(row))
        except ValueError:
            logger.exception("catalog.repository: ligne notes invalide id=%s", (row or {}).get("id"))
    return products

def list_products() -> List[Product]:
    try:
        res = supabase_client.get_supabase().table(NOTES_TABLE).select("*").order("title").execute()
        return _to_products(res.data or [])
    except Exception:
        logger.exception("catalog.repository.list_products failed")
        return []

def get_product(note_id: str) -> Optional[Product]:
    if not note_id:
        return None
    try:
        res = (
            supabase_client.get_supabase()
            .table(NOTES_TABLE)
            .select("*")
            .eq("id", note_id)
            .limit(1)
            .execute()
        )
        products = _to_products(res.data or [])
        return products[0] if products else None
    except Exception:
        logger.exception("catalog.repository.get_product failed id=%s", note_id)
        return None

def load_products_map(ids: Iterable[str]) -> Dict[str, Product]:
    """
    Retourne un dict {id: Product} à partir d’une liste d’IDs.
    - les IDs absents du catalogue n’apparaissent pas dans le dict
    - une erreur de lecture remonte à l’appelant
    """
    id_list = [str(i) for i in ids if i]
    if not id_list:
        return {}
    res = (
        supabase_client.get_supabase()
        .table(NOTES_TABLE)
        .select("*")
        .in_("id", id_list)
        .execute()
    )
    return {p.id: p for p in _to_products(res.data or [])}

def get_products_map(ids: Iterable[str]) -> Dict[str, Product]:
    """Variante tolérante de load_products_map: {} en cas d’erreur."""
    id_list = [str(i) for i in ids if i]
    try:
        return load_products_map(id_list)
    except Exception:
        logger.exception("catalog.repository.get_products_map failed ids=%s", id_list)
        return {}

# --- Administration (service-role) ---

def create_product(data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = supabase_client.get_service_supabase().table(NOTES_TABLE).insert(data).execute()
        rows = getattr(res, "data", None) or []
        if isinstance(rows, list) and rows:
            return rows[0]
        return {"status": "ok"}
    except Exception:
        logger.exception("catalog.repository.create_product failed")
        return None

def update_product(note_id: str, data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(NOTES_TABLE)
            .update(data)
            .eq("id", note_id)
            .execute()
        )
        rows = getattr(res, "data", None) or []
        if isinstance(rows, list) and rows:
            return rows[0]
        return {"status": "ok"}
    except Exception:
        logger.exception("catalog.repository.update_product failed id=%s", note_id)
        return None

def delete_product(note_id: str) -> bool:
    try:
        supabase_client.get_service_supabase().table(NOTES_TABLE).delete().eq("id", note_id).execute()
        return True
    except Exception:
        logger.exception("catalog.repository.delete_product failed id=%s", note_id)
        return False
