"""
CONFIGURATION MODULE
====================

PURPOSE:
  Central place for all CivicHub chat settings: provider API keys, model names,
  translation endpoint, storage paths, limits, and the assistant system prompt.

WHAT THIS FILE DOES:
  - Loads environment variables from .env (so API keys stay out of code).
  - Defines the path to database/chats_data and creates it if missing.
  - Defines history and message limits used by the chat flow.
  - Holds the system prompt that defines the civic assistant's behaviour.
  - Builds an immutable Settings snapshot with load_settings(). The server calls
    it once at startup and passes the result to the services; nothing reads
    provider keys from the environment per request.

USAGE:
  from config import load_settings, SYSTEM_PROMPT, CHATS_DATA_DIR
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List
from dotenv import load_dotenv


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# ENVIRONMENT
# -----------------------------------------------------------------------------
# Load environment variables from .env file (if it exists).
load_dotenv()


# -----------------------------------------------------------------------------
# BASE PATH
# -----------------------------------------------------------------------------
BASE_DIR = Path(__file__).parent

# ============================================================================
# DATABASE PATHS
# ============================================================================
# chats_data: one JSON file per chat session (see civichub.services.chat_store).

CHATS_DATA_DIR = Path(os.getenv("CHATS_DATA_DIR", "") or (BASE_DIR / "database" / "chats_data"))
CHATS_DATA_DIR.mkdir(parents=True, exist_ok=True)

# ============================================================================
# CHAT LIMITS
# ============================================================================
# Only the most recent turns are sent to the provider; all turns stay on disk.
MAX_CHAT_HISTORY_TURNS = 10

# Maximum length (characters) of one stored turn and of an incoming message.
MAX_MESSAGE_LENGTH = 5_000

# ============================================================================
# PROVIDER DEFAULTS
# ============================================================================
# Providers are tried in this order: OpenRouter, Gemini, Hugging Face.
# Each one is enabled by its API key; the model has a sensible default.

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_OPENROUTER_MODEL = "openai/gpt-3.5-turbo"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_HF_BASE_URL = "https://router.huggingface.co/v1"
DEFAULT_HF_MODEL = "meta-llama/Llama-3.1-8B-Instruct"
APP_TITLE = "Jan Awaaz - Civic Engagement Platform"


# ============================================================================
# TRANSLATION
# ============================================================================
# LibreTranslate-compatible endpoint. The public instance only translates a few
# Indian languages well; replies in other languages stay in English.

DEFAULT_LIBRETRANSLATE_URL = "https://libretranslate.com/translate"
TRANSLATION_TIMEOUT_SECONDS = 15.0
WELL_SUPPORTED_LANGUAGES = ("en", "hi", "bn", "gu", "mr", "pa")

# ============================================================================
# ASSISTANT PERSONALITY
# ============================================================================

SYSTEM_PROMPT = (
    "You are a helpful civic engagement assistant for Jan Awaaz. "
    "Help users report city issues, find information about their community, "
    "and answer questions about civic services. Be concise and friendly. "
    "Always reply in English; replies are translated for the user when needed."
)


@dataclass(frozen=True)
class ProviderSettings:
    """Credentials and model for one hosted chat-completion provider."""
    api_key: str = ""
    model: str = ""
    base_url: str = ""


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration snapshot.

    Built once by load_settings() and injected into the chat services, so the
    provider precedence only depends on this object.
    """
    openrouter: ProviderSettings = field(default_factory=ProviderSettings)
    gemini: ProviderSettings = field(default_factory=ProviderSettings)
    huggingface: ProviderSettings = field(default_factory=ProviderSettings)
    site_url: str = "http://localhost:5173"
    libretranslate_url: str = DEFAULT_LIBRETRANSLATE_URL
    libretranslate_api_key: str = ""
    translation_timeout: float = TRANSLATION_TIMEOUT_SECONDS
    jwt_secret: str = ""
    chats_data_dir: Path = CHATS_DATA_DIR
    system_prompt: str = SYSTEM_PROMPT


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name, "") or "").strip() or default


def _parse_origins(raw: str) -> List[str]:
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


# Read at import time: the CORS middleware is installed when the app module loads.
CORS_ORIGINS = _parse_origins(_env("CORS_ORIGINS", "*"))


def load_settings() -> Settings:
    """
    Read the environment once and return a Settings snapshot.

    Missing provider keys are not an error here; the chat endpoint reports a
    configuration error only when no provider at all is usable.
    """
    settings = Settings(
        openrouter=ProviderSettings(
            api_key=_env("OPENROUTER_API_KEY"),
            model=_env("OPENROUTER_MODEL", DEFAULT_OPENROUTER_MODEL),
            base_url=OPENROUTER_BASE_URL,
        ),
        gemini=ProviderSettings(
            api_key=_env("GEMINI_API_KEY"),
            model=_env("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        ),
        huggingface=ProviderSettings(
            api_key=_env("HF_TOKEN"),
            model=_env("HF_MODEL", DEFAULT_HF_MODEL),
            base_url=_env("HF_BASE_URL", DEFAULT_HF_BASE_URL),
        ),
        site_url=_env("SITE_URL", "http://localhost:5173"),
        libretranslate_url=_env("LIBRETRANSLATE_URL", DEFAULT_LIBRETRANSLATE_URL),
        libretranslate_api_key=_env("LIBRETRANSLATE_API_KEY"),
        jwt_secret=_env("JWT_SECRET"),
        chats_data_dir=CHATS_DATA_DIR,
    )
    if not settings.jwt_secret:
        logger.warning("JWT_SECRET not set. Bearer tokens will be ignored and all chats are anonymous.")
    return settings
