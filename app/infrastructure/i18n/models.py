"""Translation models for i18n system.

Defines core data structures for language tags, translation tables, and
the state shared between the detection chain and the runtime.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional, Tuple


def primary_language(tag: str) -> str:
    """Get the language part of a tag (e.g., "fr" from "fr-CA")."""
    return tag.replace("_", "-").split("-")[0].lower()


def matches_language(requested: str, available: str, strict: bool = False) -> bool:
    """Check if an available language matches a requested language.

    Args:
        requested: Requested language tag (e.g., "en-US").
        available: Available language tag (e.g., "en").
        strict: If True, requires exact match. If False, allows language-only match.

    Returns:
        True if languages match.
    """
    requested_norm = requested.replace("_", "-").lower()
    available_norm = available.replace("_", "-").lower()
    if requested_norm == available_norm:
        return True

    if strict:
        return False

    return primary_language(requested_norm) == primary_language(available_norm)


@dataclass(frozen=True)
class SupportedLanguages:
    """The fixed set of language tags the application ships.

    Attributes:
        languages: Supported tags in their canonical spelling.
        default: Tag used when no signal yields a supported language.
    """

    languages: Tuple[str, ...]
    default: str

    def __post_init__(self):
        object.__setattr__(self, "languages", tuple(self.languages))
        if not self.languages:
            raise ValueError("At least one supported language is required")
        canonical = self.match(self.default, strict=True)
        if canonical is None:
            raise ValueError(
                f"Default language {self.default} is not in supported languages"
            )
        object.__setattr__(self, "default", canonical)

    def __contains__(self, tag: object) -> bool:
        return isinstance(tag, str) and self.match(tag, strict=True) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self.languages)

    def __len__(self) -> int:
        return len(self.languages)

    def match(self, tag: Optional[str], strict: bool = False) -> Optional[str]:
        """Return the canonical supported tag matching ``tag``, if any.

        Exact (case-insensitive) matches win over language-only matches,
        so "fr-CA" resolves to "fr" only when "fr-CA" itself is unsupported.

        Args:
            tag: Candidate language tag.
            strict: If True, only exact matches are accepted.

        Returns:
            Canonical supported tag, or None.
        """
        if not tag or not isinstance(tag, str):
            return None
        tag = tag.strip()
        if not tag:
            return None

        for available in self.languages:
            if matches_language(tag, available, strict=True):
                return available

        if strict:
            return None

        for available in self.languages:
            if matches_language(tag, available, strict=False):
                return available
        return None

    def negotiate(self, requested: Iterable[str]) -> Optional[str]:
        """Find the best supported match for a preference-ordered list.

        Args:
            requested: Language tags in preference order.

        Returns:
            First supported match, or None if nothing matches.
        """
        for tag in requested:
            matched = self.match(tag)
            if matched is not None:
                return matched
        return None


@dataclass(frozen=True)
class TranslationKey:
    """Represents a translation key for accessing translated messages.

    Keys may carry their own namespace using "namespace:key" syntax
    (e.g., "common:greeting"); otherwise the caller's namespace applies.

    Attributes:
        namespace: Bundle the key belongs to (e.g., "common", "event").
        message_key: Key within the bundle (e.g., "greeting", "errors.not_found").
    """

    namespace: str
    message_key: str

    def __str__(self) -> str:
        return f"{self.namespace}:{self.message_key}"

    @classmethod
    def from_string(cls, key_string: str, default_namespace: str) -> "TranslationKey":
        """Create TranslationKey from a "namespace:key" or bare key string.

        Args:
            key_string: Key, optionally prefixed with "namespace:".
            default_namespace: Namespace used when the key has no prefix.

        Returns:
            TranslationKey instance.
        """
        namespace, sep, message_key = key_string.partition(":")
        if sep and namespace and message_key:
            return cls(namespace=namespace, message_key=message_key)
        return cls(namespace=default_namespace, message_key=key_string)


def _flatten(data: Mapping[str, Any], prefix: str = "") -> dict:
    flat = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(_flatten(value, full_key))
        elif value is not None:
            flat[full_key] = str(value)
    return flat


@dataclass(frozen=True)
class TranslationTable:
    """Immutable translations for one (language, namespace) pair.

    Nested bundle structures are flattened to dot-separated keys, so
    ``{"errors": {"not_found": "..."}}`` is looked up as "errors.not_found".

    Attributes:
        language: Language tag of the bundle.
        namespace: Namespace of the bundle.
        messages: Read-only mapping of message key to localized string.
    """

    language: str
    namespace: str
    messages: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}), hash=False
    )

    @classmethod
    def from_mapping(
        cls, language: str, namespace: str, data: Mapping[str, Any]
    ) -> "TranslationTable":
        """Build a table from parsed bundle data.

        Args:
            language: Language tag.
            namespace: Namespace identifier.
            data: Parsed bundle, possibly nested.

        Returns:
            TranslationTable with flattened, read-only messages.
        """
        return cls(
            language=language,
            namespace=namespace,
            messages=MappingProxyType(_flatten(data)),
        )

    @classmethod
    def empty(cls, language: str, namespace: str) -> "TranslationTable":
        """Table used when a bundle cannot be loaded."""
        return cls(language=language, namespace=namespace)

    def get(self, key: str) -> Optional[str]:
        return self.messages.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.messages

    def __len__(self) -> int:
        return len(self.messages)


class ResolverState(str, Enum):
    """Lifecycle of the session language state."""

    UNINITIALIZED = "uninitialized"
    RESOLVING = "resolving"
    READY = "ready"


class ExecutionEnvironment(str, Enum):
    """Capability set of the context running the detection chain.

    SERVER contexts have no runtime locale preference and cannot rely on
    cookie writes; CLIENT contexts have both.
    """

    SERVER = "server"
    CLIENT = "client"


@dataclass(frozen=True)
class Detection:
    """Outcome of running the detection chain.

    Attributes:
        language: Resolved supported language tag.
        source: Name of the signal that produced it, or "default".
    """

    language: str
    source: str

    @property
    def is_default(self) -> bool:
        return self.source == "default"


@dataclass(frozen=True)
class RuntimeEvent:
    """Notification delivered to runtime listeners.

    Attributes:
        kind: One of "language_changed", "namespace_loaded", "namespace_failed".
        language: Language the event concerns.
        namespace: Namespace the event concerns, if any.
    """

    kind: str
    language: str
    namespace: Optional[str] = None
