# module notestore.users.views
from typing import Any, Dict
from fastapi import APIRouter, Depends
from notestore.utils.security import require_user
from .service import get_purchased_notes, get_user_dashboard

api_router = APIRouter(prefix="/api/v1/users", tags=["Users API"])

@api_router.get("/me/notes")
def my_notes(user: Dict[str, Any] = Depends(require_user)):
    return {"notes": get_purchased_notes(user.get("id"))}

@api_router.get("/me/dashboard")
def my_dashboard(user: Dict[str, Any] = Depends(require_user)):
    """Tableau de bord: notes achetées et demandes vendeur (no-cache posé par le middleware)."""
    return get_user_dashboard(user.get("id"))
