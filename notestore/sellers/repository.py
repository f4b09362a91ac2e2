from typing import Any, Dict, List, Optional
import logging
import notestore.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

SELLER_REQUESTS_TABLE = "seller_requests"

# module notestore.sellers.repository
def insert_request(data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = supabase_client.get_service_supabase().table(SELLER_REQUESTS_TABLE).insert(data).execute()
        rows = getattr(res, "data", None) or []
        if isinstance(rows, list) and rows:
            return rows[0]
        return {"status": "ok"}
    except Exception:
        logger.exception("sellers.repository.insert_request failed user_id=%s", data.get("user_id"))
        return None

def list_by_user(user_id: str) -> List[dict]:
    if not user_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(SELLER_REQUESTS_TABLE)
            .select("id, subject_name, exam_score, status, created_at")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("sellers.repository.list_by_user failed user_id=%s", user_id)
        return []

def list_all(status: Optional[str] = None, limit: int = 100) -> List[dict]:
    """Demandes pour l'admin, les plus récentes d'abord."""
    try:
        query = supabase_client.get_service_supabase().table(SELLER_REQUESTS_TABLE).select("*")
        if status:
            query = query.eq("status", status)
        res = query.order("created_at", desc=True).limit(limit).execute()
        return res.data or []
    except Exception:
        logger.exception("sellers.repository.list_all failed status=%s", status)
        return []

def update_status(request_id: str, status: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(SELLER_REQUESTS_TABLE)
            .update({"status": status})
            .eq("id", request_id)
            .execute()
        )
        rows = getattr(res, "data", None) or []
        if isinstance(rows, list) and rows:
            return rows[0]
        return None
    except Exception:
        logger.exception("sellers.repository.update_status failed id=%s", request_id)
        return None
