"""
Exceptions métier de notestore.
Chaque exception porte le code HTTP et le code machine (error_code) renvoyés par le handler global (app_setup.exceptions).
"""
from typing import Iterable, List, Optional


class NoteStoreError(Exception):
    """Base des erreurs applicatives."""

    status_code = 500
    error_code = "internal_error"
    default_detail = "Erreur interne"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class AuthenticationFailure(NoteStoreError):
    """Signature webhook invalide ou session non valide."""

    status_code = 401
    error_code = "authentication_failed"
    default_detail = "Authentification invalide"


class AuthError(AuthenticationFailure):
    """Échec de connexion (identifiants refusés par le fournisseur d'identité)."""

    error_code = "invalid_credentials"
    default_detail = "Identifiants invalides"


class ValidationFailure(NoteStoreError):
    status_code = 400
    error_code = "validation_failed"
    default_detail = "Requête invalide"


class InvalidUser(ValidationFailure):
    error_code = "invalid_user"
    default_detail = "Utilisateur inconnu"


class NotFound(NoteStoreError):
    status_code = 404
    error_code = "not_found"
    default_detail = "Ressource introuvable"


class AccessDenied(NoteStoreError):
    status_code = 403
    error_code = "access_denied"
    default_detail = "Accès interdit"


class DeliveryDenied(AccessDenied):
    error_code = "delivery_denied"
    default_detail = "Accès refusé: note non achetée"


class AttributionFailure(NoteStoreError):
    """Paiement reçu mais impossible à rattacher à un utilisateur et à des notes."""

    status_code = 200
    error_code = "unattributed_payment"
    default_detail = "Métadonnées de paiement manquantes"


class PartialReconciliationFailure(NoteStoreError):
    """Une partie des achats n'a pas pu être enregistrée; Stripe doit relivrer l'événement."""

    status_code = 500
    error_code = "partial_reconciliation"

    def __init__(
        self,
        failed: Iterable[str],
        created: Iterable[str] = (),
        skipped: Iterable[str] = (),
        detail: Optional[str] = None,
    ):
        self.failed: List[str] = list(failed)
        self.created: List[str] = list(created)
        self.skipped: List[str] = list(skipped)
        super().__init__(detail or f"Réconciliation partielle, notes en échec: {','.join(self.failed)}")


class UpstreamError(NoteStoreError):
    """Échec d'un service tiers (Stripe, Storage, OpenAI) sur un chemin de requête."""

    status_code = 502
    error_code = "upstream_unavailable"
    default_detail = "Service externe indisponible"


class ConfigurationError(NoteStoreError):
    status_code = 500
    error_code = "configuration_missing"
    default_detail = "Configuration manquante"
