import hashlib
import hmac
import json
import os
import time
from typing import Any, Callable, Dict, Generator, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest

# Environnement de test figé avant l'import de notestore.config
os.environ["DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS"] = "1"
os.environ["SUPABASE_URL"] = "https://example.supabase.co"
os.environ["SUPABASE_ANON_KEY"] = "anon-key"
os.environ["SUPABASE_SERVICE_KEY"] = "service-key"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_notestore"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_notestore"
os.environ["ALLOWED_HOSTS"] = "testserver,localhost,127.0.0.1"
os.environ["CORS_ORIGINS"] = "http://localhost:3000"
os.environ.pop("LOCAL_RATE_LIMIT_FALLBACK", None)

from fastapi.testclient import TestClient  # noqa: E402

from notestore.app import app as fastapi_app  # noqa: E402
from notestore.catalog.models import Product  # noqa: E402
from notestore.utils.security import require_user, require_admin  # noqa: E402

WEBHOOK_SECRET = os.environ["STRIPE_WEBHOOK_SECRET"]

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "tests/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

FAKE_USER: Dict[str, Any] = {
    "id": "test-user",
    "email": "test@example.com",
    "role": "user",
    "metadata": {"full_name": "Test User"},
    "token": "fake-token",
}

# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_require_user(app):
    app.dependency_overrides[require_user] = lambda: dict(FAKE_USER)
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)

@pytest.fixture
def real_auth(app):
    """Désactive l'override: la session est résolue par le vrai require_user."""
    app.dependency_overrides.pop(require_user, None)
    yield

@pytest.fixture
def authenticated_admin_client(app, client):
    app.dependency_overrides[require_admin] = lambda: {"id": "admin-user-id", "role": "admin", "email": "admin@example.com"}
    yield client
    app.dependency_overrides.pop(require_admin, None)

# Aucun accès réseau à Supabase pendant les tests
@pytest.fixture(scope="function", autouse=True)
def mock_supabase(monkeypatch):
    monkeypatch.setattr("notestore.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("notestore.infra.supabase_client.get_service_supabase", lambda: MagicMock())

# --- Magasin d'achats en mémoire (contrainte UNIQUE (user_id, note_id) comprise) ---

class InMemoryPurchaseStore:
    def __init__(self):
        self.purchases: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.profiles: Dict[str, Dict[str, Any]] = {}
        self.fail_inserts: set = set()
        self.fail_reads = False
        self.fail_merge = False
        self.insert_calls: List[Tuple[str, str]] = []

    def add_profile(self, user_id: str, email: Optional[str] = None, **fields):
        self.profiles[user_id] = {"id": user_id, "email": email, "purchased_notes": [], "stripe_customer_id": None, **fields}

    def has_purchase(self, user_id, note_id):
        if self.fail_reads:
            return None
        return (user_id, note_id) in self.purchases

    def insert_purchase(self, user_id, note_id, payment_reference):
        self.insert_calls.append((user_id, note_id))
        if note_id in self.fail_inserts:
            return None
        if (user_id, note_id) in self.purchases:
            return {"status": "exists"}
        self.purchases[(user_id, note_id)] = {
            "user_id": user_id,
            "note_id": note_id,
            "stripe_payment_intent_id": payment_reference,
            "created_at": f"2024-01-01T00:00:{len(self.purchases):02d}Z",
        }
        return {"status": "created"}

    def list_purchased_note_ids(self, user_id):
        return [n for (u, n) in self.purchases if u == user_id]

    def list_purchases(self, user_id):
        return [dict(row) for (u, _), row in self.purchases.items() if u == user_id]

    def merge_entitlements(self, user_id, note_ids, customer_id=None):
        if self.fail_merge:
            return False
        profile = self.profiles.get(user_id)
        if profile is None:
            return True
        merged: List[str] = []
        for n in list(profile.get("purchased_notes") or []) + list(note_ids) + self.list_purchased_note_ids(user_id):
            if n not in merged:
                merged.append(n)
        profile["purchased_notes"] = merged
        if customer_id and not profile.get("stripe_customer_id"):
            profile["stripe_customer_id"] = customer_id
        return True

    def records_for(self, user_id):
        return sorted(n for (u, n) in self.purchases if u == user_id)

@pytest.fixture
def purchase_store(monkeypatch) -> InMemoryPurchaseStore:
    store = InMemoryPurchaseStore()
    for name in ("has_purchase", "insert_purchase", "list_purchased_note_ids", "list_purchases", "merge_entitlements"):
        monkeypatch.setattr(f"notestore.purchases.repository.{name}", getattr(store, name))
    monkeypatch.setattr("notestore.users.repository.load_profile", lambda user_id: store.profiles.get(user_id))
    return store

# --- Catalogue en mémoire ---

CATALOG_ROWS = [
    {
        "id": "tax-law-notes",
        "title": "Tax Law Notes",
        "description": "Fiches de droit fiscal",
        "price": "19.99",
        "file_url": "notes/tax-law-notes.pdf",
        "preview_url": "previews/tax-law-notes.png",
        "note_type": "tax",
    },
    {
        "id": "company-law-notes",
        "title": "Company Law Notes",
        "description": "Fiches de droit des sociétés",
        "price": "24.50",
        "file_url": "/notes/company-law-notes.pdf",
        "preview_url": "https://cdn.example.com/previews/company.png",
        "note_type": "company",
        "stripe_price_id": "price_company",
    },
]

@pytest.fixture
def catalog(monkeypatch) -> Dict[str, Product]:
    products = {row["id"]: Product.from_row(row) for row in CATALOG_ROWS}
    monkeypatch.setattr("notestore.catalog.repository.list_products", lambda: list(products.values()))
    monkeypatch.setattr("notestore.catalog.repository.get_product", lambda note_id: products.get(note_id))
    monkeypatch.setattr(
        "notestore.catalog.repository.load_products_map",
        lambda ids: {i: products[i] for i in ids if i in products},
    )
    return products

@pytest.fixture
def signed_urls(monkeypatch) -> List[Tuple[str, int]]:
    """Remplace Supabase Storage: chaque appel produit une URL signée distincte."""
    calls: List[Tuple[str, int]] = []

    def _fake_create_signed_url(path, expires_in):
        calls.append((path, expires_in))
        return f"https://example.supabase.co/storage/v1/object/sign/law-notes/{path.lstrip('/')}?token=t{len(calls)}"

    monkeypatch.setattr("notestore.delivery.storage.create_signed_url", _fake_create_signed_url)
    return calls

# --- Webhooks Stripe signés (même schéma que Stripe: t=<ts>,v1=<hmac sha256>) ---

def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.".encode("utf-8") + payload
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"

def checkout_completed_event(
    user_id: Optional[str] = "test-user",
    note_ids: Optional[str] = "tax-law-notes",
    event_id: str = "evt_1",
    payment_intent: str = "pi_1",
    customer: Optional[str] = "cus_1",
) -> Dict[str, Any]:
    metadata: Dict[str, str] = {}
    if user_id is not None:
        metadata["userId"] = user_id
    if note_ids is not None:
        metadata["noteIds"] = note_ids
    return {
        "id": event_id,
        "object": "event",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": "cs_test_1",
                "object": "checkout.session",
                "payment_intent": payment_intent,
                "customer": customer,
                "payment_status": "paid",
                "metadata": metadata,
            }
        },
    }

@pytest.fixture
def signed_event() -> Callable[[Dict[str, Any]], Tuple[bytes, Dict[str, str]]]:
    def _build(event: Dict[str, Any], secret: str = WEBHOOK_SECRET):
        body = json.dumps(event).encode("utf-8")
        return body, {"Stripe-Signature": sign_payload(body, secret), "Content-Type": "application/json"}
    return _build

@pytest.fixture
def make_event():
    return checkout_completed_event

@pytest.fixture
def stripe_signature() -> Callable[..., str]:
    return sign_payload
