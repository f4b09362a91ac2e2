from typing import Any, Dict, List
import logging
from fastapi import APIRouter
from notestore.errors import NotFound, UpstreamError
from notestore.delivery import service as delivery_service
from .models import Product
from . import repository as catalog_repo

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/notes", tags=["Catalog API"])

def _public(product: Product) -> Dict[str, Any]:
    data = product.public_dict()
    data["preview_url"] = None
    if product.preview_url:
        try:
            data["preview_url"] = delivery_service.preview_for(product.preview_url).url
        except UpstreamError:
            logger.warning("catalog: aperçu non signé note_id=%s", product.id)
    return data

@router.get("")
def list_notes() -> Dict[str, List[Dict[str, Any]]]:
    return {"notes": [_public(p) for p in catalog_repo.list_products()]}

@router.get("/{note_id}")
def get_note(note_id: str) -> Dict[str, Any]:
    product = catalog_repo.get_product(note_id)
    if product is None:
        raise NotFound("Note introuvable")
    return _public(product)
