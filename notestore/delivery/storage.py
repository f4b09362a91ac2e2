"""
Adaptateur Supabase Storage (bucket des notes): URLs signées et dépôts de fichiers.
"""
from typing import Optional
from urllib.parse import unquote, urlparse
import logging
import notestore.infra.supabase_client as supabase_client
from notestore import config

logger = logging.getLogger(__name__)

def is_full_url(reference: Optional[str]) -> bool:
    return bool(reference) and urlparse(reference).scheme in ("http", "https")

def object_path(reference: str) -> str:
    """
    Normalise une référence de document en chemin dans le bucket.
    - "/notes/a.pdf" -> "notes/a.pdf"
    - URL Supabase du bucket (.../storage/v1/object/<public|sign>/<bucket>/notes/a.pdf) -> "notes/a.pdf"
    """
    ref = (reference or "").strip()
    if is_full_url(ref):
        path = unquote(urlparse(ref).path)
        for kind in ("public", "sign", "authenticated"):
            marker = f"/storage/v1/object/{kind}/{config.NOTES_BUCKET}/"
            if marker in path:
                return path.split(marker, 1)[1]
        return ""
    return ref.lstrip("/")

def create_signed_url(path: str, expires_in: int) -> Optional[str]:
    """
    URL signée à durée limitée pour un objet du bucket.
    - Accepte les deux clés de réponse du SDK (signedURL / signedUrl)
    - None en cas d’échec
    """
    clean = (path or "").lstrip("/")
    if not clean:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .storage.from_(config.NOTES_BUCKET)
            .create_signed_url(clean, expires_in)
        )
    except Exception:
        logger.exception("delivery.storage.create_signed_url failed path=%s", clean)
        return None
    if not isinstance(res, dict):
        return None
    return res.get("signedURL") or res.get("signedUrl") or None

def upload_file(path: str, data: bytes, content_type: str) -> bool:
    """Dépose un fichier dans le bucket (sans écrasement). Retour: True si succès."""
    try:
        (
            supabase_client.get_service_supabase()
            .storage.from_(config.NOTES_BUCKET)
            .upload(path, data, {"content-type": content_type, "upsert": "false"})
        )
        return True
    except Exception:
        logger.exception("delivery.storage.upload_file failed path=%s", path)
        return False
