from typing import Any, Dict
from fastapi import APIRouter, Depends
from notestore.utils.security import require_user
from . import service as delivery_service

router = APIRouter(prefix="/api/v1/notes", tags=["Delivery API"])

@router.get("/{note_id}/download")
def download_note(note_id: str, user: Dict[str, Any] = Depends(require_user)):
    """URL signée du document acheté (403 si aucun achat pour cette note)."""
    return delivery_service.get_download_url(user.get("id"), note_id).as_dict()

@router.get("/{note_id}/preview")
def preview_note(note_id: str):
    return delivery_service.get_preview_url(note_id).as_dict()
