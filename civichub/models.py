"""
DATA MODELS MODULE
==================

Pydantic models used for API requests, responses, and stored chat sessions.
FastAPI uses these to validate incoming JSON and to serialize responses; the
chat store uses them when saving/loading sessions as JSON files.

The public API speaks camelCase (sessionId, ignoreHistory, ...) like the web
frontend; Python code uses snake_case field names with aliases.

MODELS:
  ChatTurn            - One message in a conversation (role + content + timestamp).
  ChatSession         - Stored conversation: session_id, optional owner, ordered turns.
  ChatRequest         - Body of POST /chat.
  ChatResponse        - Body returned by POST /chat.
  ChatHistoryResponse - Body returned by GET /chat/history/{session_id}.
  MessageResponse     - Plain confirmation message (DELETE /chat/history/{session_id}).
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from config import MAX_MESSAGE_LENGTH


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ==============================================================================
# STORED CHAT MODELS
# ==============================================================================

class ChatTurn(BaseModel):
    """
    A single message in a conversation (user or assistant).
    Turns are appended in order and never edited afterwards.
    """
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str = Field(..., max_length=MAX_MESSAGE_LENGTH)
    timestamp: datetime = Field(default_factory=utcnow)


class ChatSession(BaseModel):
    """
    Full conversation for one session id. user_id is None for anonymous chats.
    Serialized to database/chats_data/chat_<session_id>.json by the chat store.
    """
    session_id: str
    user_id: Optional[str] = None
    messages: List[ChatTurn] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ==============================================================================
# API REQUEST / RESPONSE MODELS
# ==============================================================================

class ChatRequest(BaseModel):
    """
    Request body for POST /chat.

    - message: Required, 1-5,000 characters (empty or too long returns 422).
    - sessionId: Optional. If omitted, the server picks the signed-in user's
      latest session or creates a new anonymous one and returns its id.
    - ignoreHistory: When true, earlier turns are not sent to the provider.
      The exchange is still saved.
    """
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    ignore_history: bool = Field(default=False, alias="ignoreHistory")


class ChatResponse(BaseModel):
    """Response body for POST /chat."""
    model_config = ConfigDict(populate_by_name=True)

    response: str
    session_id: str = Field(..., alias="sessionId")
    detected_language: str = Field(..., alias="detectedLanguage")
    language_name: str = Field(..., alias="languageName")


class ChatHistoryResponse(BaseModel):
    """Response body for GET /chat/history/{session_id}. Empty list if no session matches."""
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    messages: List[ChatTurn]


class MessageResponse(BaseModel):
    message: str
