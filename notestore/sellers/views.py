from typing import Any, Dict
from fastapi import APIRouter, Depends, File, Form, UploadFile
from notestore import config
from notestore.utils.security import require_user
from notestore.utils.rate_limit import optional_rate_limit
from . import service as sellers_service

router = APIRouter(prefix="/api/v1/sellers", tags=["Sellers API"])

@router.post("/requests", dependencies=[Depends(optional_rate_limit(times=5, seconds=300))])
async def submit_seller_request(
    subject_name: str = Form(...),
    exam_score: str = Form(...),
    file: UploadFile = File(...),
    user: Dict[str, Any] = Depends(require_user),
):
    """Formulaire multipart: matière, note obtenue à l’examen et document (PDF/DOC/DOCX, 10 Mo max)."""
    # Lecture bornée: un octet de plus suffit à détecter un fichier trop gros
    data = await file.read(config.SELLER_UPLOAD_MAX_BYTES + 1)
    return sellers_service.submit_request(
        user, subject_name, exam_score, file.filename, file.content_type, data
    )

@router.get("/requests")
def my_seller_requests(user: Dict[str, Any] = Depends(require_user)):
    return {"requests": sellers_service.list_my_requests(user.get("id"))}
