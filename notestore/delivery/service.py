"""
Livraison des documents: une URL signée, à durée limitée, régénérée à chaque demande.
Le document principal n’est délivré qu’après vérification d’un achat pour (user, note);
l’aperçu est public.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

from notestore import config
from notestore.catalog import repository as catalog_repo
from notestore.purchases import service as purchases_service
from notestore.errors import DeliveryDenied, NotFound, UpstreamError
from . import storage

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class SignedAsset:
    url: str
    expires_in: Optional[int]

    def as_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "expires_in": self.expires_in}

def get_download_url(user_id: str, note_id: str) -> SignedAsset:
    # Droit d’accès vérifié avant toute lecture du catalogue
    if not purchases_service.has_entitlement(user_id, note_id):
        logger.info("delivery.download denied user_id=%s note_id=%s", user_id, note_id)
        raise DeliveryDenied()
    product = catalog_repo.get_product(note_id)
    if product is None or not product.file_url:
        raise NotFound("Document introuvable")
    path = storage.object_path(product.file_url)
    if not path:
        logger.error("delivery.download: référence hors bucket note_id=%s", note_id)
        raise NotFound("Document introuvable")
    ttl = config.SIGNED_URL_TTL_SECONDS
    url = storage.create_signed_url(path, ttl)
    if not url:
        raise UpstreamError("Génération du lien de téléchargement impossible")
    return SignedAsset(url=url, expires_in=ttl)

def get_preview_url(note_id: str) -> SignedAsset:
    product = catalog_repo.get_product(note_id)
    if product is None or not product.preview_url:
        raise NotFound("Aperçu introuvable")
    return preview_for(product.preview_url)

def preview_for(reference: str) -> SignedAsset:
    """Une URL complète est renvoyée telle quelle; un chemin du bucket est signé."""
    if storage.is_full_url(reference):
        return SignedAsset(url=reference, expires_in=None)
    ttl = config.SIGNED_URL_TTL_SECONDS
    url = storage.create_signed_url(reference, ttl)
    if not url:
        raise UpstreamError("Génération du lien d’aperçu impossible")
    return SignedAsset(url=url, expires_in=ttl)
