"""Test data factories for i18n system testing.

Provides deterministic test data builders for:
- SupportedLanguages and DetectionChain
- TranslationTable
- Locale bundle directories
- RecordingBackend (in-memory ResourceBackend)
- I18nSettings
"""

import asyncio
import json
from pathlib import Path
from typing import Optional, Sequence

import yaml

from infrastructure.configuration import I18nSettings
from infrastructure.i18n import (
    DetectionChain,
    ResourceBackend,
    ResourceNotFound,
    SupportedLanguages,
    TranslationTable,
    build_signals,
)


def make_supported_languages(
    languages: Sequence[str] = ("en", "fr"), default: str = "en"
) -> SupportedLanguages:
    """Create a SupportedLanguages instance.

    Args:
        languages: Supported tags.
        default: Default tag.

    Returns:
        SupportedLanguages instance.
    """
    return SupportedLanguages(languages=tuple(languages), default=default)


def make_detection_chain(
    order: Sequence[str] = ("explicit", "cookie", "runtime"),
    languages: Sequence[str] = ("en", "fr"),
    default: str = "en",
    cookie_name: str = "i18next",
) -> DetectionChain:
    """Create a DetectionChain from signal names."""
    return DetectionChain(
        build_signals(order, cookie_name=cookie_name),
        make_supported_languages(languages, default),
    )


def make_translation_table(
    language: str = "fr",
    namespace: str = "common",
    messages: Optional[dict] = None,
) -> TranslationTable:
    """Create a TranslationTable instance.

    Args:
        language: Language tag.
        namespace: Namespace.
        messages: Bundle data, possibly nested.

    Returns:
        TranslationTable instance.
    """
    if messages is None:
        messages = {"greeting": "Bonjour"}
    return TranslationTable.from_mapping(language, namespace, messages)


def make_bundles() -> dict:
    """Bundle data keyed by (language, namespace)."""
    return {
        ("en", "common"): {
            "title": "Welcome",
            "greeting": "Hello",
            "welcome_user": "Welcome back, {{name}}",
            "errors": {"not_found": "Page not found"},
        },
        ("fr", "common"): {
            "title": "Bienvenue",
            "greeting": "Bonjour",
            "welcome_user": "Bon retour, {{name}}",
            "errors": {"not_found": "Page introuvable"},
        },
        ("en", "event"): {"title": "Events", "starts_at": "Starts at {time}"},
        ("fr", "event"): {"title": "Événements", "starts_at": "Commence à {time}"},
    }


def make_locales_dir(root: Path, bundles: Optional[dict] = None) -> Path:
    """Write bundles to ``<root>/locales/<language>/<namespace>.yml``.

    The ("fr", "event") bundle is written as JSON so both formats are
    covered.

    Args:
        root: Parent directory (usually tmp_path).
        bundles: Bundle data keyed by (language, namespace).

    Returns:
        Path to the locales directory.
    """
    locales = root / "locales"
    for (language, namespace), data in (bundles or make_bundles()).items():
        language_dir = locales / language
        language_dir.mkdir(parents=True, exist_ok=True)
        if (language, namespace) == ("fr", "event"):
            with open(language_dir / f"{namespace}.json", "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
        else:
            with open(language_dir / f"{namespace}.yml", "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, allow_unicode=True)
    return locales


def make_i18n_settings(**overrides) -> I18nSettings:
    """Create I18nSettings with test defaults, bypassing the environment.

    Args:
        **overrides: Field values by name (e.g. ``default_language="fr"``).

    Returns:
        I18nSettings instance.
    """
    values = {
        "supported_languages": ["en", "fr"],
        "default_language": "en",
        "detection_order": ["explicit", "cookie", "runtime"],
    }
    values.update(overrides)
    return I18nSettings(**values)


class RecordingBackend(ResourceBackend):
    """In-memory backend counting load calls per (language, namespace).

    Loads wait on ``gate`` so tests can observe in-flight state.

    Attributes:
        bundles: Bundle data keyed by (language, namespace).
        calls: Every (language, namespace) load, in call order.
        gate: Event a load waits on before answering (set by default).
    """

    def __init__(self, bundles: Optional[dict] = None):
        self.bundles = dict(bundles or {})
        self.calls = []
        self.gate = asyncio.Event()
        self.gate.set()

    async def load(self, language, namespace):
        self.calls.append((language, namespace))
        await self.gate.wait()
        data = self.bundles.get((language, namespace))
        if data is None:
            raise ResourceNotFound(language, namespace, "not registered")
        return TranslationTable.from_mapping(language, namespace, data)

    def count(self, language, namespace):
        return self.calls.count((language, namespace))
