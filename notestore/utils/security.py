from fastapi import Request, HTTPException, Depends
from fastapi.responses import Response
from typing import Optional, Dict, Any
from notestore.config import COOKIE_SECURE

COOKIE_NAME = "sb_access"
# Durée de vie du cookie de session: alignée sur la persistance locale du token côté client
COOKIE_MAX_AGE = 60 * 60 * 24 * 7

def set_session_cookie(response: Response, access_token: str):
    response.set_cookie(
        key=COOKIE_NAME,
        value=access_token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="Lax",
        max_age=COOKIE_MAX_AGE,
        path="/",
    )

def clear_session_cookie(response: Response):
    response.delete_cookie(COOKIE_NAME, path="/")

def token_from_request(request: Request) -> Optional[str]:
    """
    Hybride: priorité au Bearer, fallback cookie.
    Le même access_token circule dans les deux transports (client riche ou navigateur).
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return request.cookies.get(COOKIE_NAME) or None

def resolve_user(request: Request) -> Optional[Dict[str, Any]]:
    """
    Résout l'utilisateur courant ou None (absence de session = état "déconnecté", pas une erreur).
    """
    token = token_from_request(request)
    if not token:
        return None
    # Délégué au service Auth (import tardif: évite la dépendance circulaire au démarrage)
    from notestore.auth.service import get_identity_from_token
    user = get_identity_from_token(token)
    if not user or not user.get("id"):
        return None
    return user

def get_current_user(request: Request) -> Dict[str, Any]:
    if not token_from_request(request):
        raise HTTPException(status_code=401, detail="Non authentifié")
    user = resolve_user(request)
    if not user:
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    return user

def optional_user(request: Request) -> Optional[Dict[str, Any]]:
    return resolve_user(request)

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user

def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Accès interdit")
    return user
