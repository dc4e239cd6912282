"""
CHAT SERVICE MODULE
===================

ChatService answers one chat message at a time. For each request:

  1. Detect the user's language from the message script.
  2. Load the last MAX_CHAT_HISTORY_TURNS turns of the session (unless the
     caller asked to ignore history or sent no session/user identifier).
  3. Select the first configured provider and build the prompt
     [system, ...history, user].
  4. Call the provider once.
  5. Translate the English reply into the user's language when possible,
     otherwise append a short note explaining why it is in English.
  6. Append the user and assistant turns to the session.

History is best-effort in this flow: if it cannot be read the reply is
generated without it, and if it cannot be saved the reply is still returned.
Ownership violations (SessionAccessError) are never swallowed.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from config import MAX_CHAT_HISTORY_TURNS, MAX_MESSAGE_LENGTH, Settings
from civichub.errors import StorageError
from civichub.models import ChatSession, ChatTurn
from civichub.services.chat_store import (
    BySession,
    ChatHistoryStore,
    SessionKey,
    make_session_key,
    new_session_id,
)
from civichub.services.providers import (
    ProviderDescriptor,
    build_providers,
    invoke_provider,
    select_provider,
)
from civichub.services.translation import TranslationService
from civichub.utils.language import detect_language, get_language_name

logger = logging.getLogger("CivicHub")


@dataclass
class ChatResult:
    response: str
    session_id: str
    detected_language: str
    language_name: str
    provider: str


def build_prompt(
    system_prompt: str,
    history: Optional[Sequence[ChatTurn]],
    message: str,
    max_turns: int = MAX_CHAT_HISTORY_TURNS,
) -> List[Dict[str, str]]:
    """Return [system, ...last max_turns history turns, user] as role/content dicts."""
    messages = [{"role": "system", "content": system_prompt}]
    if history:
        recent = list(history)[-max_turns:] if max_turns > 0 else []
        messages.extend({"role": turn.role, "content": turn.content} for turn in recent)
    messages.append({"role": "user", "content": message})
    return messages


def translation_note(language_name: str, reason: str) -> str:
    if reason == "unsupported":
        return (
            f"\n\n(Note: Replies in {language_name} are not fully supported yet, "
            "so this answer is in English.)"
        )
    return (
        f"\n\n(Note: This answer could not be translated to {language_name} right now, "
        "so it is shown in English.)"
    )


class ChatService:
    """
    Orchestrates language detection, provider call, translation and history.

    Settings are injected once; the provider list is derived from them at
    construction time so selection is the same for every request.
    """

    def __init__(
        self,
        settings: Settings,
        store: ChatHistoryStore,
        translator: TranslationService,
        providers: Optional[List[ProviderDescriptor]] = None,
    ):
        self.settings = settings
        self.store = store
        self.translator = translator
        self.providers = providers if providers is not None else build_providers(settings)

    # -------------------------------------------------------------------------
    # Provider info
    # -------------------------------------------------------------------------

    def active_provider(self) -> Optional[str]:
        """Name of the provider that would answer, or None if none is configured."""
        for provider in self.providers:
            if provider.is_configured():
                return provider.name
        return None

    # -------------------------------------------------------------------------
    # Chat
    # -------------------------------------------------------------------------

    def _load_history(self, key: SessionKey) -> List[ChatTurn]:
        try:
            session = self.store.read(key)
        except StorageError as e:
            logger.warning("Could not read chat history, continuing without it: %s", e)
            return []
        return list(session.messages) if session else []

    def process_message(
        self,
        message: str,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
        ignore_history: bool = False,
    ) -> ChatResult:
        detected = detect_language(message)
        language_name = get_language_name(detected)

        key = make_session_key(session_id, user_id)
        history: List[ChatTurn] = []
        if key is None:
            key = BySession(new_session_id())
        else:
            # read() checks ownership; it must run before the provider call.
            history = self._load_history(key)
            if ignore_history:
                history = []

        logger.info(
            "Chat message: session=%s user=%s lang=%s history_turns=%d",
            session_id or "-",
            user_id or "anonymous",
            detected,
            len(history),
        )

        provider = select_provider(self.providers)
        prompt = build_prompt(self.settings.system_prompt, history, message)
        reply = invoke_provider(provider, prompt)

        if detected != "en":
            result = self.translator.translate_detailed(reply, "en", detected)
            if result.translated:
                reply = result.text
            else:
                note = translation_note(language_name, result.reason)
                reply = reply[:MAX_MESSAGE_LENGTH - len(note)] + note
        reply = reply[:MAX_MESSAGE_LENGTH]

        resolved_session_id = self._save_exchange(key, message, reply)
        return ChatResult(
            response=reply,
            session_id=resolved_session_id,
            detected_language=detected,
            language_name=language_name,
            provider=provider.name,
        )

    def _save_exchange(self, key: SessionKey, message: str, reply: str) -> str:
        turns = [
            ChatTurn(role="user", content=message[:MAX_MESSAGE_LENGTH]),
            ChatTurn(role="assistant", content=reply),
        ]
        try:
            session = self.store.append(key, turns)
        except StorageError as e:
            logger.error("Could not save chat history: %s", e)
            return getattr(key, "session_id", "")
        return session.session_id

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def get_chat_history(self, session_id: str, user_id: Optional[str] = None) -> Optional[ChatSession]:
        key = make_session_key(session_id, user_id)
        return self.store.read(key) if key else None

    def clear_chat_history(self, session_id: str, user_id: Optional[str] = None) -> bool:
        key = make_session_key(session_id, user_id)
        return self.store.clear(key) if key else False
