from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from notestore.utils.security import require_user
from notestore.utils.rate_limit import optional_rate_limit
from . import service as assistant_service

router = APIRouter(prefix="/api/v1/chat", tags=["Assistant API"])

class ChatRequest(BaseModel):
    noteId: str = Field(min_length=1)
    query: str
    threadId: Optional[str] = None

@router.post("", dependencies=[Depends(optional_rate_limit(times=20, seconds=60))])
def chat(body: ChatRequest, user: Dict[str, Any] = Depends(require_user)):
    result = assistant_service.ask(user.get("id"), body.noteId, body.query, thread_id=body.threadId)
    return {"response": result["response"], "threadId": result["thread_id"]}
