"""
Tests for ChatService: prompt assembly, history use, translation, persistence.
"""

import pytest
from unittest.mock import MagicMock, patch

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from config import MAX_MESSAGE_LENGTH
from civichub.errors import ConfigurationError, ProviderError, SessionAccessError, StorageError
from civichub.models import ChatTurn
from civichub.services.chat_service import ChatService, build_prompt
from civichub.services.chat_store import BySession, ByUser
from tests.conftest import fake_llm, make_provider


def _turns(n):
    return [
        ChatTurn(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}")
        for i in range(n)
    ]


class TestBuildPrompt:

    def test_shape_without_history(self):
        assert build_prompt("sys", None, "hello") == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hello"},
        ]

    def test_keeps_ten_most_recent_turns_in_order(self):
        history = _turns(15)
        prompt = build_prompt("sys", history, "now")
        middle = prompt[1:-1]
        assert [m["content"] for m in middle] == [f"turn {i}" for i in range(5, 15)]
        assert prompt[0]["role"] == "system"
        assert prompt[-1] == {"role": "user", "content": "now"}

    def test_does_not_mutate_history(self):
        history = _turns(12)
        build_prompt("sys", history, "now")
        assert len(history) == 12


class TestProcessMessage:

    def test_first_message_creates_session_with_two_turns(self, chat_service, store, openrouter_llm):
        result = chat_service.process_message("Hello", session_id="s1")
        assert result.provider == "openrouter"
        assert result.response == "reply 1"
        assert result.session_id == "s1"
        assert result.detected_language == "en"
        assert result.language_name == "English"
        session = store.read(BySession("s1"))
        assert [(t.role, t.content) for t in session.messages] == [
            ("user", "Hello"), ("assistant", "reply 1")
        ]

    def test_second_message_sends_first_exchange_as_history(self, chat_service, store, openrouter_llm):
        chat_service.process_message("Hello", session_id="s1")
        chat_service.process_message("Hello", session_id="s1")

        assert len(store.read(BySession("s1")).messages) == 4
        sent = openrouter_llm.invoke.call_args_list[1][0][0]
        assert [type(m) for m in sent] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]
        assert [m.content for m in sent[1:]] == ["Hello", "reply 1", "Hello"]

    def test_ignore_history_sends_no_history(self, chat_service, store, openrouter_llm):
        store.append(BySession("s1"), _turns(6))
        chat_service.process_message("fresh start", session_id="s1", ignore_history=True)
        sent = openrouter_llm.invoke.call_args[0][0]
        assert len(sent) == 2
        # The exchange is still stored.
        assert len(store.read(BySession("s1")).messages) == 8

    def test_prompt_history_capped_at_ten(self, chat_service, store, openrouter_llm):
        store.append(BySession("s1"), _turns(14))
        chat_service.process_message("next", session_id="s1")
        sent = openrouter_llm.invoke.call_args[0][0]
        assert [m.content for m in sent[1:-1]] == [f"turn {i}" for i in range(4, 14)]

    def test_anonymous_without_session_id_gets_generated_id(self, chat_service, store):
        result = chat_service.process_message("Hello")
        assert result.session_id.startswith("anon-")
        assert store.read(BySession(result.session_id)) is not None

    def test_signed_in_user_continues_latest_session(self, chat_service, store):
        first = chat_service.process_message("Hello", user_id="u1")
        second = chat_service.process_message("Again", user_id="u1")
        assert second.session_id == first.session_id
        assert len(store.read(ByUser("u1")).messages) == 4

    def test_foreign_session_is_rejected(self, chat_service, store, openrouter_llm):
        chat_service.process_message("mine", session_id="s1", user_id="u1")
        with pytest.raises(SessionAccessError):
            chat_service.process_message("not mine", session_id="s1", user_id="u2")
        assert openrouter_llm.invoke.call_count == 1

    def test_foreign_session_is_rejected_when_ignoring_history(self, chat_service, openrouter_llm):
        chat_service.process_message("mine", session_id="s1", user_id="u1")
        with pytest.raises(SessionAccessError):
            chat_service.process_message("not mine", session_id="s1", user_id="u2", ignore_history=True)
        assert openrouter_llm.invoke.call_count == 1

    def test_no_provider_configured(self, settings, store, translator):
        service = ChatService(settings, store, translator, providers=[
            make_provider("openrouter", api_key=""),
            make_provider("gemini", api_key=""),
            make_provider("huggingface", api_key=""),
        ])
        with pytest.raises(ConfigurationError):
            service.process_message("Hello", session_id="s1")
        assert store.read(BySession("s1")) is None

    def test_provider_failure_does_not_fall_through(self, settings, store, translator):
        broken = MagicMock()
        broken.invoke.side_effect = RuntimeError("boom")
        backup = fake_llm("should not be used")
        service = ChatService(settings, store, translator, providers=[
            make_provider("openrouter", broken),
            make_provider("gemini", backup),
        ])
        with pytest.raises(ProviderError):
            service.process_message("Hello", session_id="s1")
        backup.invoke.assert_not_called()
        assert store.read(BySession("s1")) is None

    def test_gemini_used_when_openrouter_unconfigured(self, settings, store, translator):
        gemini = fake_llm("from gemini")
        service = ChatService(settings, store, translator, providers=[
            make_provider("openrouter", api_key=""),
            make_provider("gemini", gemini),
            make_provider("huggingface", fake_llm("from hf")),
        ])
        result = service.process_message("Hello", session_id="s1")
        assert result.provider == "gemini"
        assert result.response == "from gemini"


class TestTranslationFlow:

    def test_bengali_reply_is_translated(self, chat_service, translate_recorder):
        result = chat_service.process_message("রাস্তায় গর্ত আছে", session_id="s1")
        assert result.detected_language == "bn"
        assert result.language_name == "Bengali"
        assert result.response == "[bn] reply 1"
        assert result.response != "reply 1"
        assert translate_recorder.requests[0]["source"] == "en"

    def test_english_message_is_not_translated(self, chat_service, translate_recorder):
        chat_service.process_message("Hello", session_id="s1")
        assert translate_recorder.requests == []

    def test_unsupported_language_gets_note(self, chat_service, translate_recorder):
        result = chat_service.process_message("சாலையில் குழி உள்ளது", session_id="s1")
        assert result.detected_language == "ta"
        assert result.response.startswith("reply 1")
        assert "Tamil" in result.response
        assert translate_recorder.requests == []

    def test_translation_failure_degrades_to_english(self, chat_service, translate_recorder):
        translate_recorder.status_code = 503
        result = chat_service.process_message("सड़क पर गड्ढा है", session_id="s1")
        assert result.detected_language == "hi"
        assert result.response.startswith("reply 1")
        assert "could not be translated to Hindi" in result.response

    def test_stored_reply_is_what_the_user_saw(self, chat_service, store):
        result = chat_service.process_message("রাস্তায় গর্ত আছে", session_id="s1")
        assert store.read(BySession("s1")).messages[-1].content == result.response

    def test_long_untranslated_reply_keeps_note_and_matches_stored_turn(self, settings, store, translator):
        service = ChatService(settings, store, translator, providers=[
            make_provider("openrouter", fake_llm("x" * MAX_MESSAGE_LENGTH)),
        ])
        result = service.process_message("சாலையில் குழி உள்ளது", session_id="s1")
        assert len(result.response) == MAX_MESSAGE_LENGTH
        assert result.response.endswith("so this answer is in English.)")
        assert store.read(BySession("s1")).messages[-1].content == result.response


class TestBestEffortHistory:

    def test_append_failure_still_returns_reply(self, chat_service, store):
        with patch.object(store, "append", side_effect=StorageError("disk full")):
            result = chat_service.process_message("Hello", session_id="s1")
        assert result.response == "reply 1"
        assert result.session_id == "s1"

    def test_read_failure_continues_without_history(self, chat_service, store, openrouter_llm):
        with patch.object(store, "read", side_effect=StorageError("unreadable")):
            result = chat_service.process_message("Hello", session_id="s1")
        assert result.response == "reply 1"
        assert len(openrouter_llm.invoke.call_args[0][0]) == 2


class TestHistoryAccess:

    def test_get_and_clear(self, chat_service):
        chat_service.process_message("Hello", session_id="s1")
        assert len(chat_service.get_chat_history("s1").messages) == 2
        assert chat_service.clear_chat_history("s1") is True
        assert chat_service.get_chat_history("s1") is None

    def test_active_provider(self, chat_service):
        assert chat_service.active_provider() == "openrouter"
