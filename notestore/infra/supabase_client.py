from typing import Optional
from supabase import create_client, Client
from notestore.config import SUPABASE_URL, SUPABASE_ANON, SUPABASE_SERVICE_KEY
from notestore.errors import ConfigurationError

_supabase: Optional[Client] = None
_service_supabase: Optional[Client] = None

def get_supabase() -> Client:
    global _supabase
    if _supabase is None:
        _supabase = create_client(SUPABASE_URL, SUPABASE_ANON)
    return _supabase

def get_service_supabase() -> Client:
    """
    Client service-role (bypass RLS): webhook, écritures d'achats, URLs signées.
    """
    global _service_supabase
    if not SUPABASE_SERVICE_KEY:
        raise ConfigurationError("SUPABASE_SERVICE_KEY manquant pour get_service_supabase()")
    if _service_supabase is None:
        _service_supabase = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
    return _service_supabase

