"""Language detection chain.

Provides the ordered signal sources used to pick a language:
1. Explicit tag supplied by the caller (path, query or header resolved upstream)
2. Language cookie from a previous visit
3. Runtime locale preference (client only)
4. Configured default

Signals are consulted strictly in order; a signal is never queried once an
earlier one produced a supported language. A signal whose candidate is not
supported counts as absent.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from infrastructure.i18n.cookies import CookieStore, NullCookieStore
from infrastructure.i18n.models import (
    Detection,
    ExecutionEnvironment,
    SupportedLanguages,
)
from infrastructure.logging import get_module_logger

logger = get_module_logger()


@dataclass(frozen=True)
class DetectionContext:
    """Inputs and capabilities available to the detection chain.

    The execution environment is passed explicitly instead of being
    inferred from globals, which keeps detection a pure function.

    Attributes:
        environment: SERVER or CLIENT capability set.
        explicit_tag: Tag already chosen upstream, if any.
        cookies: Cookie store to read the persisted language from.
        runtime_preferences: Preference-ordered tags from the runtime (client only).
        headers: Request headers (lower-case names), when running in a request.
    """

    environment: ExecutionEnvironment = ExecutionEnvironment.CLIENT
    explicit_tag: Optional[str] = None
    cookies: CookieStore = field(default_factory=NullCookieStore)
    runtime_preferences: Tuple[str, ...] = ()
    headers: Mapping[str, str] = field(default_factory=dict)


def parse_accept_language(header: Optional[str]) -> List[str]:
    """Parse an Accept-Language style string into tags by preference.

    Example: "fr-CA,fr;q=0.9,en;q=0.8" -> ["fr-CA", "fr", "en"]

    Wildcards and ranges with q=0 are dropped. Unparseable quality values
    count as 1.0.

    Args:
        header: Accept-Language header value.

    Returns:
        Language tags sorted by descending quality, stable for ties.
    """
    if not header:
        return []

    preferences = []
    for part in header.split(","):
        lang_range = part.split(";")[0].strip()
        if not lang_range or lang_range == "*":
            continue

        quality = 1.0
        if ";" in part and "q=" in part:
            try:
                quality = float(part.split("q=")[1].split(";")[0])
            except ValueError:
                quality = 1.0

        if quality <= 0:
            continue
        preferences.append((lang_range, quality))

    return [lang for lang, _ in sorted(preferences, key=lambda x: x[1], reverse=True)]


def preferences_from_environment(environ: Mapping[str, str]) -> Tuple[str, ...]:
    """Read preferred languages from POSIX locale variables.

    Checks LANGUAGE (colon-separated list), then LC_ALL, LC_MESSAGES and LANG.
    Encodings and modifiers are stripped ("fr_CA.UTF-8@euro" -> "fr-CA");
    the "C" and "POSIX" locales are ignored.

    Args:
        environ: Environment mapping, typically ``os.environ``.

    Returns:
        Tuple of language tags in preference order, without duplicates.
    """
    raw: List[str] = []
    language = environ.get("LANGUAGE")
    if language:
        raw.extend(language.split(":"))
    for var in ("LC_ALL", "LC_MESSAGES", "LANG"):
        value = environ.get(var)
        if value:
            raw.append(value)

    tags: List[str] = []
    for value in raw:
        tag = value.split(".")[0].split("@")[0].strip().replace("_", "-")
        if not tag or tag.upper() in ("C", "POSIX"):
            continue
        if tag not in tags:
            tags.append(tag)
    return tuple(tags)


class Signal(ABC):
    """A named source of a candidate language tag.

    Attributes:
        name: Identifier used in configuration and logs.
        client_only: Whether the signal only exists in client contexts.
    """

    name: str = ""
    client_only: bool = False

    @abstractmethod
    def lookup(
        self, context: DetectionContext, supported: SupportedLanguages
    ) -> Optional[str]:
        """Return this signal's candidate tag, or None if it has none."""
        pass


class ExplicitTagSignal(Signal):
    """Tag chosen upstream (deep link, programmatic override)."""

    name = "explicit"

    def lookup(self, context, supported):
        return context.explicit_tag


class CookieSignal(Signal):
    """Language persisted by a previous resolution."""

    name = "cookie"

    def __init__(self, cookie_name: str):
        self.cookie_name = cookie_name

    def lookup(self, context, supported):
        return context.cookies.read(self.cookie_name)


class RuntimePreferenceSignal(Signal):
    """Ambient runtime preference list (browser/OS languages)."""

    name = "runtime"
    client_only = True

    def lookup(self, context, supported):
        return supported.negotiate(context.runtime_preferences)


class AcceptLanguageSignal(Signal):
    """Request Accept-Language header. Not part of the default order."""

    name = "header"

    def lookup(self, context, supported):
        return supported.negotiate(
            parse_accept_language(context.headers.get("accept-language"))
        )


SignalFactory = Callable[..., Signal]

SIGNAL_FACTORIES: Dict[str, SignalFactory] = {
    "explicit": lambda **_: ExplicitTagSignal(),
    "cookie": lambda cookie_name, **_: CookieSignal(cookie_name),
    "runtime": lambda **_: RuntimePreferenceSignal(),
    "header": lambda **_: AcceptLanguageSignal(),
}


def build_signals(order: Iterable[str], cookie_name: str) -> List[Signal]:
    """Instantiate signals from configured names.

    Args:
        order: Signal names in priority order.
        cookie_name: Cookie used by the "cookie" signal.

    Returns:
        Signals in the given order.

    Raises:
        ValueError: If a name is unknown or repeated.
    """
    signals = []
    seen = set()
    for name in order:
        if name not in SIGNAL_FACTORIES:
            raise ValueError(
                f"Unknown detection signal: {name} "
                f"(known: {', '.join(sorted(SIGNAL_FACTORIES))})"
            )
        if name in seen:
            raise ValueError(f"Detection signal listed twice: {name}")
        seen.add(name)
        signals.append(SIGNAL_FACTORIES[name](cookie_name=cookie_name))
    return signals


class DetectionChain:
    """Consults signals in priority order until one yields a supported tag.

    Attributes:
        signals: Signals in priority order.
        supported: Supported languages and the default.
    """

    def __init__(self, signals: Sequence[Signal], supported: SupportedLanguages):
        self.signals = list(signals)
        self.supported = supported

    @property
    def signal_names(self) -> List[str]:
        return [signal.name for signal in self.signals]

    def detect(self, context: DetectionContext) -> Detection:
        """Pick the language for a context.

        Args:
            context: Detection inputs and capabilities.

        Returns:
            Detection with the winning tag and the signal that produced it.
        """
        log = logger.bind(environment=context.environment.value)
        for signal in self.signals:
            if (
                signal.client_only
                and context.environment is ExecutionEnvironment.SERVER
            ):
                continue

            try:
                candidate = signal.lookup(context, self.supported)
            except Exception as e:  # pylint: disable=broad-except
                log.warning("detection_signal_failed", signal=signal.name, error=str(e))
                continue

            if candidate is None:
                continue

            language = self.supported.match(candidate)
            if language is None:
                log.debug(
                    "detection_signal_unsupported",
                    signal=signal.name,
                    candidate=candidate,
                )
                continue

            log.debug("language_detected", signal=signal.name, language=language)
            return Detection(language=language, source=signal.name)

        log.debug("language_defaulted", language=self.supported.default)
        return Detection(language=self.supported.default, source="default")
