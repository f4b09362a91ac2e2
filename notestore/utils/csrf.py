# module notestore.utils.csrf
from typing import Optional
from fastapi import FastAPI, Request, Header, HTTPException
from fastapi.responses import Response, JSONResponse
import secrets
from notestore.config import COOKIE_SECURE
from notestore.utils.security import COOKIE_NAME

CSRF_COOKIE_NAME = "csrf_token"
CSRF_HEADER_NAME = "X-CSRF-Token"
# Le webhook Stripe est authentifié par signature, pas par cookie
CSRF_EXEMPT_PATHS = {
    "/api/v1/payments/webhook",
}

def get_or_create_csrf_token(request: Request) -> str:
    """
    Renvoie le token CSRF existant (cookie) ou en crée un nouveau.
    """
    token = request.cookies.get(CSRF_COOKIE_NAME)
    if not token:
        token = secrets.token_urlsafe(32)
    return token

def attach_csrf_cookie_if_missing(response: Response, request: Request, token: str) -> None:
    """
    Pose le cookie CSRF si absent (lisible par le front pour le renvoyer en en-tête).
    """
    if not request.cookies.get(CSRF_COOKIE_NAME):
        response.set_cookie(
            key=CSRF_COOKIE_NAME,
            value=token,
            httponly=False,
            secure=COOKIE_SECURE,
            samesite="Lax",
            max_age=60 * 60,
            path="/",
        )

def _is_exempt(path: str) -> bool:
    normalized_path = path.rstrip("/") or "/"
    exempt_normalized = {p.rstrip("/") or "/" for p in CSRF_EXEMPT_PATHS}
    return normalized_path in exempt_normalized

def register_csrf_middleware(app: FastAPI) -> None:
    """
    Double-submit cookie: une requête mutative portant le cookie de session doit
    renvoyer le token CSRF en en-tête X-CSRF-Token.
    Les clients Bearer (sans cookie de session) ne sont pas concernés.
    """
    @app.middleware("http")
    async def csrf_protection(request: Request, call_next):
        method = request.method.upper()
        has_session = bool(request.cookies.get(COOKIE_NAME))
        is_state_changing = method in ("POST", "PUT", "PATCH", "DELETE")

        token = get_or_create_csrf_token(request)

        if is_state_changing and has_session and not _is_exempt(request.url.path):
            header_token = request.headers.get(CSRF_HEADER_NAME, "")
            cookie_token = request.cookies.get(CSRF_COOKIE_NAME, "")
            if not cookie_token or not header_token or not secrets.compare_digest(header_token, cookie_token):
                return JSONResponse(status_code=403, content={"detail": "CSRF verification failed"})

        response = await call_next(request)
        attach_csrf_cookie_if_missing(response, request, token)
        return response

def csrf_protect(
    request: Request,
    x_csrf_token: Optional[str] = Header(default=None, alias=CSRF_HEADER_NAME),
) -> None:
    """
    Dépendance à utiliser sur les routes sensibles (POST/PUT/PATCH/DELETE).
    Valide que le header X-CSRF-Token correspond au cookie csrf_token, sauf sur CSRF_EXEMPT_PATHS.
    """
    if _is_exempt(str(request.url.path or "")):
        return
    cookie_token = request.cookies.get(CSRF_COOKIE_NAME)
    header_token = x_csrf_token or request.headers.get(CSRF_HEADER_NAME)
    if not cookie_token or not header_token:
        raise HTTPException(status_code=403, detail="CSRF token missing")
    if not secrets.compare_digest(str(cookie_token), str(header_token)):
        raise HTTPException(status_code=403, detail="CSRF token invalid")
