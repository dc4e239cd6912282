"""
SERVICES PACKAGE
=================

Business logic lives here. The API layer (civichub.main) calls these services;
they don't handle HTTP, only the chat flow, provider calls, and data.

MODULES:
    chat_service - ChatService: detect language, call provider, translate, persist
    providers    - Ordered provider descriptors (OpenRouter, Gemini, Hugging Face)
    translation  - LibreTranslate client with graceful degradation
    chat_store   - JSON-on-disk chat sessions keyed by session id / user id
"""
