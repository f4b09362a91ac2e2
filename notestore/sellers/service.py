"""
Proposition de notes par les vendeurs: dépôt du document dans le bucket puis demande en attente
de validation par un administrateur.
"""
from typing import Any, Dict, List, Optional
import logging
import time

from notestore import config
from notestore.delivery import storage
from notestore.errors import NotFound, UpstreamError, ValidationFailure
from . import repository

logger = logging.getLogger(__name__)

STATUSES = ("pending", "approved", "rejected")
ALLOWED_TYPES = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
}

def _extension(filename: Optional[str], content_type: Optional[str]) -> str:
    ext = ALLOWED_TYPES.get((content_type or "").split(";")[0].strip().lower())
    name_ext = (filename or "").rsplit(".", 1)[-1].lower() if "." in (filename or "") else ""
    if not ext or (name_ext and name_ext != ext):
        raise ValidationFailure("Format non supporté: PDF, DOC ou DOCX uniquement")
    return ext

def submit_request(
    user: Dict[str, Any],
    subject_name: str,
    exam_score: str,
    filename: Optional[str],
    content_type: Optional[str],
    data: bytes,
) -> Dict[str, Any]:
    user_id = user.get("id")
    email = (user.get("email") or "").strip()
    if not user_id or not email:
        raise ValidationFailure("Email requis pour proposer une note")
    subject_name = (subject_name or "").strip()
    exam_score = (exam_score or "").strip()
    if not subject_name or not exam_score:
        raise ValidationFailure("Matière et note d’examen requises")
    if not data:
        raise ValidationFailure("Fichier manquant")
    if len(data) > config.SELLER_UPLOAD_MAX_BYTES:
        raise ValidationFailure(f"Fichier trop volumineux (max {config.SELLER_UPLOAD_MAX_BYTES // (1024 * 1024)} Mo)")
    ext = _extension(filename, content_type)

    path = f"{config.SELLER_UPLOAD_PREFIX}/{user_id}-{int(time.time() * 1000)}.{ext}"
    if not storage.upload_file(path, data, content_type or "application/octet-stream"):
        raise UpstreamError("Dépôt du fichier impossible")

    row = repository.insert_request({
        "user_id": user_id,
        "email": email,
        "subject_name": subject_name,
        "exam_score": exam_score,
        "file_path": path,
        "status": "pending",
    })
    if row is None:
        # Fichier déposé mais demande absente: à nettoyer manuellement
        logger.error("sellers.submit: demande non enregistrée user_id=%s path=%s", user_id, path)
        raise UpstreamError("Enregistrement de la demande impossible")
    logger.info("sellers.submit user_id=%s path=%s", user_id, path)
    return {"id": row.get("id"), "status": "pending", "file_path": path}

def list_my_requests(user_id: str) -> List[dict]:
    return repository.list_by_user(user_id)

def list_requests(status: Optional[str] = None) -> List[dict]:
    if status and status not in STATUSES:
        raise ValidationFailure(f"Statut inconnu: {status}")
    return repository.list_all(status)

def set_request_status(request_id: str, status: str) -> dict:
    if status not in STATUSES:
        raise ValidationFailure(f"Statut inconnu: {status}")
    row = repository.update_status(request_id, status)
    if row is None:
        raise NotFound("Demande introuvable")
    return row
