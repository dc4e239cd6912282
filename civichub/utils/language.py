"""
LANGUAGE DETECTION UTILITY
==========================

Guesses the user's language from the Unicode script of their message. Used by
ChatService to decide whether the English reply should be translated.

Scripts are checked in a fixed order and the first match wins. Marathi is
written in Devanagari like Hindi, so Devanagari text always resolves to "hi";
"mr" is never returned here even though it has a display name.
"""

import re
from typing import List, Tuple

# (language code, script range) in check order.
SCRIPT_RANGES: List[Tuple[str, "re.Pattern[str]"]] = [
    ("hi", re.compile(r"[\u0900-\u097F]")),  # Devanagari
    ("kn", re.compile(r"[\u0C80-\u0CFF]")),  # Kannada
    ("ta", re.compile(r"[\u0B80-\u0BFF]")),  # Tamil
    ("te", re.compile(r"[\u0C00-\u0C7F]")),  # Telugu
    ("ml", re.compile(r"[\u0D00-\u0D7F]")),  # Malayalam
    ("bn", re.compile(r"[\u0980-\u09FF]")),  # Bengali
    ("gu", re.compile(r"[\u0A80-\u0AFF]")),  # Gujarati
    ("pa", re.compile(r"[\u0A00-\u0A7F]")),  # Gurmukhi (Punjabi)
]

LANGUAGE_NAMES = {
    "en": "English",
    "hi": "Hindi",
    "kn": "Kannada",
    "ta": "Tamil",
    "te": "Telugu",
    "ml": "Malayalam",
    "bn": "Bengali",
    "gu": "Gujarati",
    "pa": "Punjabi",
    "mr": "Marathi",
}


def detect_language(text: str) -> str:
    """Return the language code for the first matching script, or "en"."""
    if not isinstance(text, str) or not text:
        return "en"
    for code, pattern in SCRIPT_RANGES:
        if pattern.search(text):
            return code
    return "en"


def get_language_name(code: str) -> str:
    """English display name for a language code; unknown codes are returned as-is."""
    return LANGUAGE_NAMES.get(code, code)
