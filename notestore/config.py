# notestore.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale du backend.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe, OpenAI), sécurité cookies, CORS/hosts
- Paramètres métier: devise et mode du checkout, bucket des notes, durée des URLs signées,
  limites d'upload des vendeurs, assistants par type de note
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _int_env(name: str, default: int) -> int:
    try:
        return int(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

# Supabase: URLs et clés (anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("NEXT_PUBLIC_SUPABASE_ANON_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Cookies / sécurité
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
ADMIN_SECRET_HASH = _clean_env(os.getenv("ADMIN_SECRET_HASH", ""))

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]

BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000").rstrip("/")

# URLs de redirection post-actions auth
RESET_REDIRECT_URL = os.getenv("RESET_REDIRECT_URL", f"{BASE_URL}/reset-password")
SIGNUP_REDIRECT_URL = os.getenv("SIGNUP_REDIRECT_URL", f"{BASE_URL}/login")

# Stripe: clés et secret webhook
STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or os.getenv("NEXT_PUBLIC_STRIPE_PUBLISHABLE_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")

# Checkout: devise, mode (embedded = client_secret pour le formulaire intégré, hosted = URL Stripe)
CHECKOUT_CURRENCY = _clean_env(os.getenv("CHECKOUT_CURRENCY") or "usd").lower()
CHECKOUT_UI_MODE = _clean_env(os.getenv("CHECKOUT_UI_MODE") or "embedded").lower()
CHECKOUT_RETURN_URL = _clean_env(
    os.getenv("CHECKOUT_RETURN_URL") or f"{BASE_URL}/checkout/return?session_id={{CHECKOUT_SESSION_ID}}"
)
CHECKOUT_CANCEL_URL = _clean_env(os.getenv("CHECKOUT_CANCEL_URL") or f"{BASE_URL}/cart?canceled=true")

# Stockage des documents (Supabase Storage)
NOTES_BUCKET = _clean_env(os.getenv("NOTES_BUCKET") or "law-notes")
# Durée de validité des URLs signées: bornée entre 1 minute et 7 jours
SIGNED_URL_TTL_SECONDS = min(max(_int_env("SIGNED_URL_TTL_SECONDS", 3600), 60), 7 * 24 * 3600)

# Dépôt des vendeurs
SELLER_UPLOAD_MAX_BYTES = _int_env("SELLER_UPLOAD_MAX_BYTES", 10 * 1024 * 1024)
SELLER_UPLOAD_PREFIX = _clean_env(os.getenv("SELLER_UPLOAD_PREFIX") or "seller-uploads").strip("/")

# Assistant (OpenAI): un assistant par type de note
OPENAI_API_KEY = _clean_env(os.getenv("OPENAI_API_KEY") or "")
ASSISTANT_IDS = {
    note_type: assistant_id
    for note_type, assistant_id in {
        "tax": _clean_env(os.getenv("TAX_ASSISTANT_ID") or ""),
        "jurisprudence": _clean_env(os.getenv("JURISPRUDENCE_ASSISTANT_ID") or ""),
        "company": _clean_env(os.getenv("COMPANY_ASSISTANT_ID") or ""),
    }.items()
    if assistant_id
}
