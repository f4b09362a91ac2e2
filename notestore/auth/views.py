from fastapi import APIRouter, HTTPException, Depends, Request, Response
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, Dict, Any
import logging
import bcrypt

from notestore import config
from notestore.utils.validators import validate_password_strength
from notestore.utils.rate_limit import optional_rate_limit
from notestore.utils.security import (
    require_user,
    optional_user,
    token_from_request,
    set_session_cookie,
    clear_session_cookie,
)
from .service import (
    login as svc_login,
    signup as svc_signup,
    logout as svc_logout,
    request_password_reset as svc_request_reset,
    update_password as svc_update_password,
    sync_user_profile,
)

logger = logging.getLogger(__name__)

api_router = APIRouter(prefix="/api/v1/auth", tags=["Auth API"])

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: Optional[str] = None
    admin_code: Optional[str] = None
    @field_validator("password")
    def password_strength(cls, v: str) -> str:
        return validate_password_strength(v)

class ResetEmailRequest(BaseModel):
    email: EmailStr

class UpdatePasswordBody(BaseModel):
    token: str
    new_password: str = Field(min_length=8)
    @field_validator("new_password")
    def password_strength(cls, v: str) -> str:
        return validate_password_strength(v)

def _admin_code_ok(code: Optional[str]) -> bool:
    admin_hash = config.ADMIN_SECRET_HASH if isinstance(config.ADMIN_SECRET_HASH, str) else None
    if not admin_hash or not isinstance(code, str) or not code:
        return False
    try:
        return bcrypt.checkpw(code.encode("utf-8"), admin_hash.encode("utf-8"))
    except ValueError:
        logger.exception("auth.signup: ADMIN_SECRET_HASH invalide")
        return False

@api_router.post("/login", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def api_login(req: LoginRequest, response: Response):
    """Point d'entrée de connexion (API JSON).
    - Délègue la vérification des identifiants au service (svc_login).
    - En cas de succès, synchronise le profil applicatif (best-effort).
    - Pose le cookie de session (sb_access): le même token sert en Bearer côté client riche.
    """
    result = svc_login(req.email, req.password)
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error or "Identifiants invalides")

    user = result.user or {}
    if not sync_user_profile(user.get("id"), user.get("email"), user.get("role")):
        logger.warning("auth.login: synchronisation du profil échouée user_id=%s", user.get("id"))

    if result.access_token:
        set_session_cookie(response, result.access_token)
    return {"access_token": result.access_token, "token_type": "bearer", "user": result.user}

@api_router.post("/signup", dependencies=[Depends(optional_rate_limit(times=3, seconds=60))])
def api_signup(req: SignupRequest, response: Response):
    """Point d’entrée d’inscription (API JSON).
    - Le code admin éventuel est vérifié contre ADMIN_SECRET_HASH (bcrypt).
    - Inscription avec session: pose le cookie et retourne le JSON de session.
    - Sinon: message demandant la confirmation d’email.
    """
    wants_admin = _admin_code_ok(req.admin_code)
    result = svc_signup(req.email, req.password, req.full_name, wants_admin=wants_admin)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error or "Erreur inscription")
    if result.access_token:
        user = result.user or {}
        sync_user_profile(user.get("id"), user.get("email"), user.get("role"), full_name=req.full_name)
        set_session_cookie(response, result.access_token)
        return {"access_token": result.access_token, "token_type": "bearer", "user": result.user}
    return {"message": result.error or "Inscription réussie, vérifiez votre email"}

@api_router.get("/me")
def api_me(user: Dict[str, Any] = Depends(require_user)):
    """Retourne l’utilisateur courant (id, email, rôle, metadata) après contrôle de session via require_user."""
    return {"id": user["id"], "email": user["email"], "role": user["role"], "metadata": user["metadata"]}

@api_router.get("/status")
def api_status(user: Optional[Dict[str, Any]] = Depends(optional_user)):
    """État de session: toujours 200, {authenticated: false} si aucun token valide."""
    if not user:
        return {"authenticated": False}
    return {"authenticated": True, "user": {"id": user["id"], "email": user.get("email")}}

@api_router.post("/request-password-reset", dependencies=[Depends(optional_rate_limit(times=3, seconds=60))])
def api_request_reset(req: ResetEmailRequest):
    result = svc_request_reset(req.email, config.RESET_REDIRECT_URL)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error or "Erreur envoi email")
    return {"message": "Email de réinitialisation envoyé"}

@api_router.post("/update-password", dependencies=[Depends(optional_rate_limit(times=3, seconds=60))])
def api_update_password(body: UpdatePasswordBody):
    token = (body.token or "").strip()
    if not token:
        raise HTTPException(status_code=400, detail="Token manquant")
    result = svc_update_password(token, body.new_password)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error or "Erreur mise à jour du mot de passe")
    return {"message": "Mot de passe mis à jour"}

@api_router.post("/logout")
def api_logout(request: Request, response: Response):
    """Révoque le token (best-effort) puis supprime le cookie de session (sb_access)."""
    svc_logout(token_from_request(request))
    clear_session_cookie(response)
    return {"message": "Déconnexion réussie"}
