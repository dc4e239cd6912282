"""
Shared pytest fixtures for the chat backend tests.

Providers are faked at the chat-model level: each descriptor's factory returns
a MagicMock whose invoke() returns an AIMessage, so tests can inspect exactly
which langchain messages a provider received. The translator talks to an
httpx.MockTransport instead of LibreTranslate.
"""

import json

import httpx
import pytest
from unittest.mock import MagicMock

from langchain_core.messages import AIMessage

from config import Settings
from civichub.services.chat_service import ChatService
from civichub.services.chat_store import ChatHistoryStore
from civichub.services.providers import ProviderDescriptor
from civichub.services.translation import TranslationService

# Long enough for HS256 without key-length warnings.
TEST_JWT_SECRET = "civichub-test-secret-0123456789abcdef"


def fake_llm(*replies):
    """Chat model double returning the given replies in order."""
    llm = MagicMock()
    llm.invoke.side_effect = [AIMessage(content=r) for r in replies]
    return llm


def make_provider(name, llm=None, api_key="test-key", model="test-model"):
    return ProviderDescriptor(
        name=name,
        label=name.title(),
        api_key=api_key,
        model=model,
        factory=lambda _provider: llm,
    )


class TranslateRecorder:
    """MockTransport handler that records requests and answers like LibreTranslate."""

    def __init__(self, reply=None, status_code=200):
        self.requests = []
        self.reply = reply
        self.status_code = status_code

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append(payload)
        body = self.reply if self.reply is not None else {"translatedText": f"[{payload['target']}] {payload['q']}"}
        return httpx.Response(self.status_code, json=body)


@pytest.fixture
def store(tmp_path):
    return ChatHistoryStore(tmp_path / "chats")


@pytest.fixture
def translate_recorder():
    return TranslateRecorder()


@pytest.fixture
def translator(translate_recorder):
    client = httpx.Client(transport=httpx.MockTransport(translate_recorder))
    return TranslationService("http://translate.test/translate", client=client)


@pytest.fixture
def settings(tmp_path):
    return Settings(chats_data_dir=tmp_path / "chats", jwt_secret=TEST_JWT_SECRET)


@pytest.fixture
def openrouter_llm():
    llm = MagicMock()
    llm.invoke.side_effect = lambda messages: AIMessage(content=f"reply {llm.invoke.call_count}")
    return llm


@pytest.fixture
def chat_service(settings, store, translator, openrouter_llm):
    """ChatService with only OpenRouter configured."""
    providers = [
        make_provider("openrouter", openrouter_llm),
        make_provider("gemini", MagicMock(), api_key=""),
        make_provider("huggingface", MagicMock(), api_key=""),
    ]
    return ChatService(settings, store, translator, providers=providers)
