"""
CIVICHUB CHAT PACKAGE
=====================

Backend for the Jan Awaaz / CivicHub AI chat assistant.

  from civichub.main import app
  from civichub.models import ChatRequest
  from civichub.services.chat_service import ChatService

FILE STRUCTURE:
  civichub/
    __init__.py   - This file; marks 'civichub' as a package.
    main.py       - FastAPI app and HTTP endpoints (/chat, /chat/history/{id}, /health).
    models.py     - Pydantic models for API requests, responses, and stored chat sessions.
    errors.py     - Error codes and the exception hierarchy rendered as JSON errors.
    services/     - Chat orchestration, provider selection, translation, history store.
    utils/        - Helpers: script-based language detection, optional bearer identity.
"""
