"""
Fournisseur d’identité côté client.

Le token persisté dans le stockage local est le même que le cookie de session posé par le serveur:
headers() (Bearer) et cookies() (sb_access) transportent la même valeur, ce qui garantit que
client riche et gestionnaires serveur résolvent la même identité pour la même session.
Un token invalide ou expiré donne l’état « déconnecté » (None), jamais une exception.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Tuple
import json
import logging

import httpx

from notestore.errors import AuthError
from notestore.utils.security import COOKIE_NAME
from .storage import KeyValueStorage, MemoryStorage

logger = logging.getLogger(__name__)

TOKEN_STORAGE_KEY = "sb-auth-token"

@dataclass(frozen=True)
class Identity:
    user_id: str
    email: Optional[str] = None

class AuthBackend(Protocol):
    def resolve(self, token: str) -> Optional[Identity]: ...
    def authenticate(self, email: str, password: str) -> Tuple[str, Identity]: ...
    def revoke(self, token: str) -> None: ...

class HttpAuthBackend:
    """Backend HTTP sur l’API /api/v1/auth (httpx.Client, ou TestClient en tests)."""

    def __init__(self, client: httpx.Client):
        self.client = client

    def _csrf_headers(self) -> Dict[str, str]:
        token = self.client.cookies.get("csrf_token")
        return {"X-CSRF-Token": token} if token else {}

    def resolve(self, token: str) -> Optional[Identity]:
        resp = self.client.get("/api/v1/auth/status", headers={"Authorization": f"Bearer {token}"})
        resp.raise_for_status()
        data = resp.json()
        user = data.get("user") or {}
        if not data.get("authenticated") or not user.get("id"):
            return None
        return Identity(user_id=user["id"], email=user.get("email"))

    def authenticate(self, email: str, password: str) -> Tuple[str, Identity]:
        resp = self.client.post(
            "/api/v1/auth/login",
            json={"email": email, "password": password},
            headers=self._csrf_headers(),
        )
        if resp.status_code in (400, 401, 422):
            detail = None
            try:
                detail = resp.json().get("detail")
            except ValueError:
                pass
            raise AuthError(detail if isinstance(detail, str) else None)
        resp.raise_for_status()
        data = resp.json()
        token = data.get("access_token")
        user = data.get("user") or {}
        if not token or not user.get("id"):
            raise AuthError()
        return token, Identity(user_id=user["id"], email=user.get("email"))

    def revoke(self, token: str) -> None:
        headers = {"Authorization": f"Bearer {token}"}
        headers.update(self._csrf_headers())
        self.client.post("/api/v1/auth/logout", headers=headers).raise_for_status()

IdentityListener = Callable[[Optional[Identity]], None]

class IdentityProvider:
    def __init__(self, backend: AuthBackend, storage: Optional[KeyValueStorage] = None):
        self._backend = backend
        self._storage = storage if storage is not None else MemoryStorage()
        self._listeners: List[IdentityListener] = []
        self._current: Optional[Identity] = None

    # --- token persisté ---

    def _stored_token(self) -> Optional[str]:
        try:
            raw = self._storage.get_item(TOKEN_STORAGE_KEY)
        except Exception:
            logger.exception("session: lecture du token impossible")
            return None
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        token = data.get("access_token") if isinstance(data, dict) else None
        return token or None

    def _store_token(self, token: Optional[str]) -> None:
        try:
            if token:
                self._storage.set_item(TOKEN_STORAGE_KEY, json.dumps({"access_token": token}))
            else:
                self._storage.remove_item(TOKEN_STORAGE_KEY)
        except Exception:
            logger.exception("session: persistance du token impossible")

    def _set_current(self, identity: Optional[Identity]) -> None:
        if identity == self._current:
            return
        self._current = identity
        for listener in list(self._listeners):
            try:
                listener(identity)
            except Exception:
                logger.exception("session: abonné en erreur")

    # --- contrat ---

    def get_current_identity(self) -> Optional[Identity]:
        token = self._stored_token()
        if not token:
            self._set_current(None)
            return None
        try:
            identity = self._backend.resolve(token)
        except Exception:
            # Fournisseur injoignable: déconnecté pour cet appel, token conservé
            logger.exception("session: résolution de l’identité impossible")
            return None
        if identity is None:
            self._store_token(None)
        self._set_current(identity)
        return identity

    def sign_in(self, email: str, password: str) -> Identity:
        """Lève AuthError si les identifiants sont refusés."""
        token, identity = self._backend.authenticate(email, password)
        self._store_token(token)
        self._set_current(identity)
        return identity

    def sign_out(self) -> None:
        token = self._stored_token()
        if token:
            try:
                self._backend.revoke(token)
            except Exception:
                logger.exception("session: révocation du token impossible")
        self._store_token(None)
        self._set_current(None)

    def on_identity_changed(self, callback: IdentityListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)
        return unsubscribe

    # --- transports ---

    def headers(self) -> Dict[str, str]:
        token = self._stored_token()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def cookies(self) -> Dict[str, str]:
        token = self._stored_token()
        return {COOKIE_NAME: token} if token else {}
