"""
AI PROVIDER MODULE
==================

Three hosted chat-completion providers can answer a chat turn. They are held in
a fixed, ordered list and the first configured one is used:

  1. OpenRouter   (OpenAI-compatible API)
  2. Gemini       (Google generateContent API)
  3. Hugging Face (OpenAI-compatible router)

Only unconfigured providers are skipped. Once a provider is selected and the
call fails, the request fails with ProviderError; there is no retry and no
fallthrough to the next provider. If none is configured the chat endpoint
answers with a ConfigurationError.

Each provider is reached through its langchain chat model, with the client's
own retries switched off.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from config import APP_TITLE, Settings
from civichub.errors import ConfigurationError, ProviderError

logger = logging.getLogger("CivicHub")

# User-friendly message when a provider rejects us for quota / rate limits.
RATE_LIMIT_MESSAGE = (
    "The AI assistant has reached its usage limit for now. "
    "Please try again in a little while."
)


def _is_rate_limit_error(exc: Exception) -> bool:
    """True if the exception looks like a provider rate limit (429 / quota)."""
    msg = str(exc).lower()
    return "429" in msg or "rate limit" in msg or "quota" in msg or "resource_exhausted" in msg


def mask_key(key: str) -> str:
    """Show only the edges of an API key in logs."""
    if not key:
        return "<unset>"
    if len(key) <= 10:
        return "***"
    return f"{key[:8]}...{key[-4:]}"


@dataclass(frozen=True)
class ProviderDescriptor:
    """
    One entry of the ordered provider list.

    factory builds the langchain chat model for this provider; it is only called
    when the provider has been selected for a request.
    """
    name: str
    label: str
    api_key: str
    model: str
    factory: Callable[["ProviderDescriptor"], BaseChatModel]
    base_url: str = ""

    def is_configured(self) -> bool:
        return bool(self.api_key) and bool(self.model)


# ==============================================================================
# CHAT MODEL FACTORIES
# ==============================================================================

def _openrouter_factory(site_url: str) -> Callable[[ProviderDescriptor], BaseChatModel]:
    def build(provider: ProviderDescriptor) -> BaseChatModel:
        return ChatOpenAI(
            model=provider.model,
            api_key=provider.api_key,
            base_url=provider.base_url,
            default_headers={"HTTP-Referer": site_url, "X-Title": APP_TITLE},
            max_retries=0,
        )
    return build


def _gemini_factory(provider: ProviderDescriptor) -> BaseChatModel:
    return ChatGoogleGenerativeAI(
        model=provider.model,
        google_api_key=provider.api_key,
        max_retries=0,
    )


def _huggingface_factory(provider: ProviderDescriptor) -> BaseChatModel:
    return ChatOpenAI(
        model=provider.model,
        api_key=provider.api_key,
        base_url=provider.base_url,
        max_retries=0,
    )


def build_providers(settings: Settings) -> List[ProviderDescriptor]:
    """Return the providers in precedence order for this settings snapshot."""
    return [
        ProviderDescriptor(
            name="openrouter",
            label="OpenRouter",
            api_key=settings.openrouter.api_key,
            model=settings.openrouter.model,
            base_url=settings.openrouter.base_url,
            factory=_openrouter_factory(settings.site_url),
        ),
        ProviderDescriptor(
            name="gemini",
            label="Gemini",
            api_key=settings.gemini.api_key,
            model=settings.gemini.model,
            factory=_gemini_factory,
        ),
        ProviderDescriptor(
            name="huggingface",
            label="Hugging Face",
            api_key=settings.huggingface.api_key,
            model=settings.huggingface.model,
            base_url=settings.huggingface.base_url,
            factory=_huggingface_factory,
        ),
    ]


def select_provider(providers: List[ProviderDescriptor]) -> ProviderDescriptor:
    """First configured provider in list order."""
    for provider in providers:
        if provider.is_configured():
            return provider
    raise ConfigurationError(
        "AI service not configured on server",
        details="Set OPENROUTER_API_KEY, GEMINI_API_KEY or HF_TOKEN",
    )


def to_lc_messages(messages: List[Dict[str, str]]) -> List[BaseMessage]:
    """Convert [{"role", "content"}] dicts into langchain messages."""
    converted: List[BaseMessage] = []
    for item in messages:
        role = item["role"]
        content = item["content"]
        if role == "system":
            converted.append(SystemMessage(content=content))
        elif role == "assistant":
            converted.append(AIMessage(content=content))
        else:
            converted.append(HumanMessage(content=content))
    return converted


def invoke_provider(provider: ProviderDescriptor, messages: List[Dict[str, str]]) -> str:
    """
    Send the assembled messages to the provider once and return the reply text.

    Raises ProviderError for transport/API failures and for replies without text.
    """
    logger.info(
        "Calling %s (model=%s, key=%s) with %d messages",
        provider.label,
        provider.model,
        mask_key(provider.api_key),
        len(messages),
    )
    try:
        llm = provider.factory(provider)
        result = llm.invoke(to_lc_messages(messages))
    except Exception as e:
        if _is_rate_limit_error(e):
            logger.warning("%s rate limit hit: %s", provider.label, e)
            raise ProviderError(
                RATE_LIMIT_MESSAGE, details=str(e), provider=provider.name, error_type="rate_limit"
            ) from e
        logger.error("%s API error: %s", provider.label, e)
        raise ProviderError("AI service error", details=str(e), provider=provider.name) from e

    content = getattr(result, "content", None)
    if not isinstance(content, str) or not content.strip():
        logger.error("%s returned no text: %r", provider.label, result)
        raise ProviderError(
            "AI service error",
            details=f"{provider.label} returned an empty or malformed response",
            provider=provider.name,
            error_type="invalid",
        )

    logger.info("%s responded with %d chars", provider.label, len(content))
    return content.strip()
