from typing import Optional, Dict, Any
import httpx
import notestore.infra.supabase_client as supabase_client
from notestore import config

# --- Auth (supabase.auth.*) ---

def auth_sign_in_password(email: str, password: str):
    """Wrapper Supabase Auth: connexion par email/mot de passe (GoTrue)."""
    client = supabase_client.get_supabase()
    return client.auth.sign_in_with_password({"email": email, "password": password})

def auth_sign_up_account(
    email: str,
    password: str,
    options_data: Optional[Dict[str, Any]] = None,
    email_redirect_to: Optional[str] = None
):
    """Wrapper Supabase Auth: inscription d’un compte.
    - options.data: metadata (ex. full_name, role)
    - options.email_redirect_to: URL de confirmation (ex. SIGNUP_REDIRECT_URL)
    """
    client = supabase_client.get_supabase()
    credentials: Dict[str, Any] = {"email": email, "password": password}
    options: Dict[str, Any] = {}
    if options_data:
        options["data"] = options_data
    if email_redirect_to:
        options["email_redirect_to"] = email_redirect_to
    if options:
        credentials["options"] = options
    return client.auth.sign_up(credentials)

def auth_sign_out(access_token: str) -> None:
    """Révoque la session côté GoTrue (admin sign_out avec la clé de service)."""
    client = supabase_client.get_service_supabase()
    client.auth.admin.sign_out(access_token)

def auth_send_reset_password(email: str, redirect_to: str):
    """Wrapper Supabase Auth: envoi d’un email de reset avec redirection."""
    client = supabase_client.get_supabase()
    return client.auth.reset_password_for_email(email, options={"redirect_to": redirect_to})

def auth_update_user_password(user_token: str, new_password: str):
    """Appel direct GoTrue pour mettre à jour le mot de passe:
    - Utilise httpx PUT /auth/v1/user avec Authorization: Bearer <user_token>
    - Apikey (SUPABASE_ANON) requis; timeout de 10s
    """
    url = f"{config.SUPABASE_URL.rstrip('/')}/auth/v1/user"
    headers = {
        "Authorization": f"Bearer {user_token}",
        "apikey": config.SUPABASE_ANON,
        "Content-Type": "application/json",
    }
    return httpx.put(url, json={"password": new_password}, headers=headers, timeout=10)

def get_user_from_access_token(access_token: str) -> Dict[str, Any]:
    """Récupère et normalise l’utilisateur depuis supabase.auth.get_user(access_token).
    Lève l’exception du SDK si le token est invalide ou expiré.
    """
    res = supabase_client.get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None) or {}
    if not isinstance(user, dict):
        user = {
            "id": getattr(user, "id", None),
            "email": getattr(user, "email", None),
            "user_metadata": getattr(user, "user_metadata", None),
        }
    return user or {}
