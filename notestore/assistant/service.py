"""
Assistant de révision: conversation (thread OpenAI Assistants) rattachée à une note achetée.
Un assistant par type de note (ASSISTANT_IDS); le raisonnement du modèle n’est pas géré ici.
"""
from typing import Any, Dict, Optional
import logging

import openai
from openai import OpenAI

from notestore import config
from notestore.catalog import repository as catalog_repo
from notestore.purchases import service as purchases_service
from notestore.errors import (
    AccessDenied,
    ConfigurationError,
    DeliveryDenied,
    NotFound,
    UpstreamError,
    ValidationFailure,
)

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 4000

_client: Optional[OpenAI] = None

def get_openai_client() -> OpenAI:
    global _client
    if not config.OPENAI_API_KEY:
        raise ConfigurationError("OPENAI_API_KEY manquant")
    if _client is None:
        _client = OpenAI(api_key=config.OPENAI_API_KEY, timeout=60)
    return _client

def _assistant_text(messages) -> Optional[str]:
    for message in getattr(messages, "data", None) or []:
        if getattr(message, "role", None) != "assistant":
            continue
        parts = [
            block.text.value
            for block in (getattr(message, "content", None) or [])
            if getattr(block, "type", None) == "text"
        ]
        if parts:
            return "\n".join(parts)
    return None

def _thread_for(client: OpenAI, user_id: str, note_id: str, thread_id: Optional[str]) -> str:
    """Nouveau thread si absent; un thread existant doit appartenir à (user, note)."""
    if not thread_id:
        thread = client.beta.threads.create(metadata={"user_id": user_id, "note_id": note_id})
        return thread.id
    thread = client.beta.threads.retrieve(thread_id)
    meta = getattr(thread, "metadata", None) or {}
    if meta.get("user_id") != user_id or meta.get("note_id") != note_id:
        raise AccessDenied("Conversation inconnue")
    return thread_id

def ask(user_id: str, note_id: str, query: str, thread_id: Optional[str] = None) -> Dict[str, Any]:
    query = (query or "").strip()
    if not query:
        raise ValidationFailure("Question vide")
    if len(query) > MAX_QUERY_LENGTH:
        raise ValidationFailure("Question trop longue")
    if not purchases_service.has_entitlement(user_id, note_id):
        raise DeliveryDenied()
    product = catalog_repo.get_product(note_id)
    if product is None:
        raise NotFound("Note introuvable")
    assistant_id = config.ASSISTANT_IDS.get(product.note_type or "")
    if not assistant_id:
        raise ValidationFailure("Aucun assistant disponible pour cette note")

    client = get_openai_client()
    try:
        thread_id = _thread_for(client, user_id, note_id, thread_id)
        client.beta.threads.messages.create(thread_id=thread_id, role="user", content=query)
        run = client.beta.threads.runs.create_and_poll(thread_id=thread_id, assistant_id=assistant_id)
        if run.status != "completed":
            logger.error("assistant.ask run status=%s thread_id=%s", run.status, thread_id)
            raise UpstreamError("L’assistant n’a pas pu répondre")
        messages = client.beta.threads.messages.list(thread_id=thread_id, run_id=run.id, order="desc")
    except openai.NotFoundError:
        raise AccessDenied("Conversation inconnue")
    except openai.OpenAIError:
        logger.exception("assistant.ask failed thread_id=%s", thread_id)
        raise UpstreamError("Assistant indisponible")

    text = _assistant_text(messages)
    if not text:
        raise UpstreamError("Réponse de l’assistant vide")
    return {"response": text, "thread_id": thread_id}
