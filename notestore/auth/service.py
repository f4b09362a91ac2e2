from typing import Optional, Dict, Any
import logging
from notestore.auth.models import AuthResponse, make_auth_response, handle_exception, determine_role
from notestore.users import repository as users_repo
from notestore import config
from . import repository

logger = logging.getLogger(__name__)

# --- Cas d’usage Auth exposés ---

def login(email: str, password: str) -> AuthResponse:
    """Connexion:
    - Délègue à supabase.auth.sign_in_with_password via repository
    - Normalise la réponse en AuthResponse
    - Message de fallback: identifiants invalides ou email non confirmé
    """
    try:
        email = (email or "").strip()
        res = repository.auth_sign_in_password(email, password)
        return make_auth_response(res, fallback_error="Identifiants invalides ou email non confirmé")
    except Exception as e:
        return handle_exception("sign_in", e)

def signup(email: str, password: str, full_name: Optional[str] = None, wants_admin: bool = False) -> AuthResponse:
    """Inscription:
    - Vérifie côté serveur si un profil existe déjà pour cet email (best-effort)
    - Injecte full_name et rôle admin dans user_metadata
    - Retourne soit une session (access_token) soit un message invitant à confirmer l’email
    """
    try:
        email = (email or "").strip()

        if users_repo.get_profile_by_email(email):
            return AuthResponse(False, error="Utilisateur existe déjà")

        options_data: Dict[str, Any] = {}
        if full_name:
            options_data["full_name"] = full_name.strip()
        if wants_admin:
            options_data["role"] = "admin"

        res = repository.auth_sign_up_account(
            email=email,
            password=password,
            options_data=options_data or None,
            email_redirect_to=config.SIGNUP_REDIRECT_URL,
        )

        sess = getattr(res, "session", None)
        if sess and getattr(sess, "access_token", None):
            return make_auth_response(res)
        # Succès sans session (vérification email)
        return AuthResponse(True, error="Inscription réussie, vérifiez votre email")
    except Exception as e:
        msg = str(e).lower()
        if any(k in msg for k in ["already", "register", "exists", "23505"]):
            return AuthResponse(False, error="Utilisateur existe déjà")
        return handle_exception("sign_up", e)

def logout(access_token: Optional[str]) -> AuthResponse:
    """Déconnexion: révoque le token côté fournisseur si présent.
    L’échec de révocation n’empêche pas la déconnexion locale (cookie effacé par la vue).
    """
    if not access_token:
        return AuthResponse(True)
    try:
        repository.auth_sign_out(access_token)
    except Exception:
        logger.exception("auth.logout: révocation du token impossible")
    return AuthResponse(True)

def request_password_reset(email: str, redirect_to: str) -> AuthResponse:
    try:
        email = (email or "").strip()
        repository.auth_send_reset_password(email, redirect_to)
        return AuthResponse(True)
    except Exception as e:
        return handle_exception("send_reset_email", e)

def update_password(user_token: str, new_password: str) -> AuthResponse:
    """Mise à jour du mot de passe:
    - Appelle directement GoTrue (httpx PUT sur /auth/v1/user) avec token utilisateur (Bearer)
    - Considère succès si status HTTP 2xx, sinon tente d’extraire un message d’erreur utile
    """
    try:
        resp = repository.auth_update_user_password(user_token, new_password)

        if 200 <= resp.status_code < 300:
            return AuthResponse(True)

        msg = None
        try:
            body = resp.json()
            msg = body.get("msg") or body.get("message") or body.get("error_description") or body.get("error")
        except ValueError:
            msg = resp.text

        return AuthResponse(False, error=f"Erreur mise à jour: {msg or f'status {resp.status_code}'}")
    except Exception as e:
        return handle_exception("update_password", e)

# --- Intégration sécurité / profil ---

def get_identity_from_token(access_token: Optional[str]) -> Optional[Dict[str, Any]]:
    """Résout l’identité associée à un access_token:
    - Retourne {id, email, metadata, role, token}
    - Retourne None si le token est absent, invalide ou expiré (jamais d’exception):
      l’absence d’identité est l’état « déconnecté », pas une erreur
    """
    if not access_token:
        return None
    try:
        raw = repository.get_user_from_access_token(access_token)
    except Exception as e:
        logger.info("auth.get_identity_from_token: token rejeté (%s)", type(e).__name__)
        return None
    uid = raw.get("id")
    if not uid:
        return None
    metadata = raw.get("user_metadata") or {}
    return {
        "id": uid,
        "email": raw.get("email"),
        "metadata": metadata,
        "role": determine_role(metadata),
        "token": access_token,
    }

def sync_user_profile(user_id: str, email: Optional[str], role: Optional[str] = None, full_name: Optional[str] = None) -> bool:
    """Synchronisation du profil applicatif (table profiles) après connexion/inscription.
    Ne touche ni au cache des droits ni au client Stripe.
    """
    return users_repo.upsert_profile(user_id, email, role=role, full_name=full_name)
