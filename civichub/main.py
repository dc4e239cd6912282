"""
CIVICHUB CHAT API
=================

This module defines the FastAPI application and its HTTP endpoints for the
Jan Awaaz / CivicHub AI chat assistant.

ENDPOINTS:
  GET    /                        - Returns API name and list of endpoints.
  GET    /health                  - Returns status of the services and the active provider.
  POST   /chat                    - Send a message; the assistant answers in the user's language
                                    when it can be translated.
  GET    /chat/history/{id}       - Returns all turns of a session.
  DELETE /chat/history/{id}       - Deletes a session.

SESSION:
  If you omit sessionId, the server continues the signed-in user's latest chat or
  starts a new anonymous one (anon-<hex>) and returns its id; send it back on
  the next request to continue the conversation. Sessions are saved to disk and
  survive restarts.

IDENTITY:
  An optional "Authorization: Bearer <jwt>" header identifies a signed-in user.
  Without it (or with an invalid token) the chat is anonymous.

STARTUP:
  The lifespan function reads the configuration once, loads stored sessions,
  and creates the translation and chat services.
"""


from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from config import CORS_ORIGINS, Settings, load_settings
from civichub.errors import ChatError
from civichub.models import ChatHistoryResponse, ChatRequest, ChatResponse, MessageResponse
from civichub.services.chat_service import ChatService
from civichub.services.chat_store import ChatHistoryStore
from civichub.services.translation import TranslationService
from civichub.utils.auth import user_id_from_authorization


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("CivicHub")


# -----------------------------------------------------------------------------
# GLOBAL SERVICE REFERENCES
# -----------------------------------------------------------------------------
# Set during startup (lifespan) and used by all route handlers.
settings: Optional[Settings] = None
chat_service: Optional[ChatService] = None


# -------------------------------------------------------------------------
# LIFESPAN (STARTUP / SHUTDOWN)
# -------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the services once at startup and release them at shutdown.

    Order matters: settings first (everything else is configured from them),
    then the history store and translator, then the chat service that uses both.
    """
    global settings, chat_service

    logger.info("=" * 60)
    logger.info("CivicHub chat - Starting Up...")
    logger.info("=" * 60)

    try:
        settings = load_settings()

        logger.info("Loading chat history store...")
        store = ChatHistoryStore(settings.chats_data_dir)

        translator = TranslationService(
            settings.libretranslate_url,
            api_key=settings.libretranslate_api_key,
            timeout=settings.translation_timeout,
        )
        chat_service = ChatService(settings, store, translator)

        provider = chat_service.active_provider()
        logger.info("=" * 60)
        logger.info("Service Status:")
        logger.info("    - Chat history: %d sessions", len(store.sessions))
        logger.info("    - Translation: %s", settings.libretranslate_url)
        if provider:
            logger.info("    - AI provider: %s", provider)
        else:
            logger.warning("    - AI provider: NONE CONFIGURED (chat requests will fail)")
        logger.info("=" * 60)

        yield

        logger.info("Shutting down CivicHub chat...")
        translator.close()

    except Exception as e:
        logger.error(f"Fatal error during startup: {e}", exc_info=True)
        raise


# -------------------------------------------------------------------------
# FASTAPI APP AND CORS
# -------------------------------------------------------------------------
app = FastAPI(
    title="Jan Awaaz Chat API",
    description="AI assistant for civic issue reporting",
    lifespan=lifespan
)

# Allowed origins come from CORS_ORIGINS (comma separated, "*" by default).
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# -------------------------------------------------------------------------
# DEPENDENCIES
# -------------------------------------------------------------------------

def get_chat_service() -> ChatService:
    if not chat_service:
        raise HTTPException(status_code=503, detail="Chat service not initialized")
    return chat_service


def get_optional_user_id(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    """User id from the bearer token, or None for anonymous requests."""
    secret = settings.jwt_secret if settings else ""
    return user_id_from_authorization(authorization, secret)


# =========================================================================
# API ENDPOINTS
# =========================================================================

@app.get("/")
def root():
    """Return the API name and a short description of each endpoint (for discovery)."""
    return {
        "message": "Jan Awaaz Chat API",
        "endpoints": {
            "/chat": "Chat with the civic assistant",
            "/chat/history/{session_id}": "Get (GET) or clear (DELETE) chat history",
            "/health": "System health check"
        }
    }


@app.get("/health")
def health():
    """Return 'healthy' and whether the chat service is up and which provider it would use."""
    return {
        "status": "healthy",
        "chat_service": chat_service is not None,
        "provider": chat_service.active_provider() if chat_service else None,
    }


@app.post("/chat", response_model=ChatResponse)
def chat(
    request: ChatRequest,
    service: ChatService = Depends(get_chat_service),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    """
    Send a message to the civic assistant.

    REQUEST BODY:
    {
        "message": "There is a pothole on MG Road",
        "sessionId": "optional-session-id",
        "ignoreHistory": false
    }

    RESPONSE:
    {
        "response": "Thanks for letting us know...",
        "sessionId": "session-id-here",
        "detectedLanguage": "en",
        "languageName": "English"
    }

    Errors: 500 if no AI provider is configured, 502 if the provider fails,
    400/403 for bad or foreign session ids.
    """
    try:
        result = service.process_message(
            request.message,
            session_id=request.session_id,
            user_id=user_id,
            ignore_history=request.ignore_history,
        )
    except ChatError:
        raise
    except Exception as e:
        logger.error(f"Error processing chat: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process chat message", "details": str(e)},
        )
    return ChatResponse(
        response=result.response,
        session_id=result.session_id,
        detected_language=result.detected_language,
        language_name=result.language_name,
    )


@app.get("/chat/history/{session_id}", response_model=ChatHistoryResponse)
def get_chat_history(
    session_id: str,
    service: ChatService = Depends(get_chat_service),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    """
    Get all turns of a session in chronological order.

    NOTE: If the session doesn't exist, returns an empty messages array.
    """
    session = service.get_chat_history(session_id, user_id)
    return ChatHistoryResponse(
        session_id=session.session_id if session else session_id,
        messages=session.messages if session else [],
    )


@app.delete("/chat/history/{session_id}", response_model=MessageResponse)
def clear_chat_history(
    session_id: str,
    service: ChatService = Depends(get_chat_service),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    """Delete a session. Clearing a session that does not exist is not an error."""
    service.clear_chat_history(session_id, user_id)
    return MessageResponse(message="Chat history cleared")


# -------------------------------------------------------------------------
# STANDALONE RUN (python -m civichub.main)
# -------------------------------------------------------------------------
def run():
    """Start the uvicorn server (same as run.py); used if someone does python -m civichub.main"""
    uvicorn.run(
        "civichub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )

if __name__ == "__main__":
    run()
