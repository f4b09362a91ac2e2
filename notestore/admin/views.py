from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from notestore.utils.security import require_admin
from notestore.catalog.models import ProductCreate, ProductUpdate
from notestore.sellers import service as sellers_service
from . import service as admin_service

# module notestore.admin.views
router = APIRouter(prefix="/api/v1/admin", tags=["Admin API"])

class StatusUpdate(BaseModel):
    status: str

@router.get("/stats")
def admin_stats(user: Dict[str, Any] = Depends(require_admin)):
    return admin_service.get_stats()

@router.post("/notes", status_code=201)
def admin_create_note(body: ProductCreate, user: Dict[str, Any] = Depends(require_admin)):
    return {"ok": True, "item": admin_service.create_note(body)}

@router.patch("/notes/{note_id}")
def admin_update_note(note_id: str, body: ProductUpdate, user: Dict[str, Any] = Depends(require_admin)):
    return {"ok": True, "item": admin_service.update_note(note_id, body)}

@router.delete("/notes/{note_id}")
def admin_delete_note(note_id: str, user: Dict[str, Any] = Depends(require_admin)):
    admin_service.delete_note(note_id)
    return {"ok": True}

@router.get("/seller-requests")
def admin_list_seller_requests(status: Optional[str] = None, user: Dict[str, Any] = Depends(require_admin)):
    return {"items": sellers_service.list_requests(status)}

@router.post("/seller-requests/{request_id}/status")
def admin_set_seller_request_status(request_id: str, body: StatusUpdate, user: Dict[str, Any] = Depends(require_admin)):
    return {"ok": True, "item": sellers_service.set_request_status(request_id, body.status)}
