"""
Booking Agent Stack - Localization
===================================

Maps a language code to the directory holding that locale's prompt files.
Pure path composition; nothing here touches the filesystem.
"""

from enum import Enum
from pathlib import Path
from typing import Optional, Union

from booking_agent_stack.errors import UnsupportedLanguageError


class SupportedLanguage(str, Enum):
    """Locales with a prompt directory."""
    EN = "en"
    KO = "ko"
    JP = "jp"


DEFAULT_LANGUAGE = SupportedLanguage.EN

SUPPORTED_LANGUAGES = frozenset(lang.value for lang in SupportedLanguage)


def normalize_language(lang: Optional[Union[str, SupportedLanguage]] = None) -> SupportedLanguage:
    """Return the supported language for `lang`, or the default when unset."""
    if isinstance(lang, SupportedLanguage):
        return lang
    if lang is None or not str(lang).strip():
        return DEFAULT_LANGUAGE

    code = str(lang).strip().lower()
    if code not in SUPPORTED_LANGUAGES:
        raise UnsupportedLanguageError(code, SUPPORTED_LANGUAGES)
    return SupportedLanguage(code)


def resolve_localization_dir(
    lang: Optional[Union[str, SupportedLanguage]],
    prompts_dir: Union[str, Path],
) -> Path:
    """Directory of prompt files for `lang` under `prompts_dir`."""
    return Path(prompts_dir) / normalize_language(lang).value
