"""Session language runtime.

Owns the session language state, runs detection once, persists the result,
and serves translations from cached tables. Lookups never wait: a table that
is not cached yet is fetched in the background while the raw key is
returned, and listeners are notified once it arrives so dependent views can
re-render.

States: UNINITIALIZED -> RESOLVING -> READY, and READY -> RESOLVING -> READY
on an explicit language change.
"""

import asyncio
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from infrastructure.i18n.backends import CoalescingBackend, ResourceBackend
from infrastructure.i18n.cookies import CookieOptions, CookieStore
from infrastructure.i18n.detection import DetectionChain, DetectionContext
from infrastructure.i18n.exceptions import ResourceNotFound, UnsupportedLanguage
from infrastructure.i18n.models import (
    Detection,
    ResolverState,
    RuntimeEvent,
    TranslationKey,
    TranslationTable,
)
from infrastructure.logging import get_module_logger

logger = get_module_logger()

Listener = Callable[[RuntimeEvent], None]

_DOUBLE_BRACE = re.compile(r"\{\{\s*(\w+)\s*\}\}")
_SINGLE_BRACE = re.compile(r"\{(\w+)\}")


def interpolate(message: str, variables: Dict[str, Any]) -> str:
    """Replace {{name}} and {name} placeholders with variable values.

    Placeholders without a matching variable are left as they are.

    Args:
        message: Message with placeholders.
        variables: Variable name -> value.

    Returns:
        Interpolated message.
    """
    missing: List[str] = []

    def _replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        if name not in missing:
            missing.append(name)
        return match.group(0)

    result = _DOUBLE_BRACE.sub(_replace, message)
    if variables:
        result = _SINGLE_BRACE.sub(
            lambda m: str(variables[m.group(1)]) if m.group(1) in variables else m.group(0),
            result,
        )
    if missing:
        logger.warning(
            "missing_interpolation_variable",
            variables=missing,
            available_variables=list(variables.keys()),
        )
    return result


class LanguageRuntime:
    """Resolver and translation runtime for one session or request.

    Attributes:
        chain: Detection chain used for the first resolution.
        supported: Supported languages (from the chain).
        backend: Coalescing resource backend.
        context: Detection inputs for this session.
        state: Current ResolverState.
        detection: Last Detection (from the chain or an explicit change).
    """

    def __init__(
        self,
        chain: DetectionChain,
        backend: ResourceBackend,
        context: DetectionContext,
        *,
        cookie_name: str,
        cookie_options: Optional[CookieOptions] = None,
        persist_to: Optional[Sequence[CookieStore]] = None,
        default_namespace: str = "common",
    ):
        """Initialize the runtime.

        Args:
            chain: Detection chain.
            backend: Resource backend; wrapped for coalescing if it is not already.
            context: Detection inputs and capabilities.
            cookie_name: Cookie persisting the resolved language.
            cookie_options: Attributes for cookie writes.
            persist_to: Stores receiving the resolved language. Defaults to
                the context's cookie store.
            default_namespace: Namespace for lookups that do not name one.
        """
        self.chain = chain
        self.supported = chain.supported
        if not isinstance(backend, CoalescingBackend):
            backend = CoalescingBackend(backend)
        self.backend = backend
        self.context = context
        self.cookie_name = cookie_name
        self.cookie_options = cookie_options or CookieOptions()
        self.stores: List[CookieStore] = (
            list(persist_to) if persist_to is not None else [context.cookies]
        )
        self.default_namespace = default_namespace

        self.state = ResolverState.UNINITIALIZED
        self.detection: Optional[Detection] = None
        self._language: Optional[str] = None
        self._tables: Dict[Tuple[str, str], TranslationTable] = {}
        self._pending: Dict[Tuple[str, str], asyncio.Task] = {}
        # dict keeps first-reference order for prefetching
        self._referenced: Dict[str, None] = {}
        self._listeners: List[Listener] = []

    @property
    def language(self) -> Optional[str]:
        """Resolved language, or None before the first resolution."""
        return self._language

    @property
    def is_ready(self) -> bool:
        return self.state is ResolverState.READY

    @property
    def referenced_namespaces(self) -> List[str]:
        return list(self._referenced)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for runtime events.

        Args:
            listener: Called with a RuntimeEvent on language changes and
                namespace loads.

        Returns:
            Callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def resolve_language(self) -> str:
        """Resolve the session language.

        Runs the detection chain only if the runtime is not READY, then
        persists the result and moves to READY. Later calls return the
        cached language without running detection again.

        Returns:
            Resolved language tag.
        """
        if self.state is ResolverState.READY and self._language is not None:
            return self._language

        self.state = ResolverState.RESOLVING
        detection = self.chain.detect(self.context)
        self.detection = detection
        self._language = detection.language
        self._persist(detection.language)
        self.state = ResolverState.READY

        logger.info(
            "language_resolved",
            language=detection.language,
            source=detection.source,
            environment=self.context.environment.value,
        )
        return detection.language

    def change_language(self, tag: str) -> None:
        """Switch the session to another supported language.

        Re-persists the cookie, notifies listeners, and starts prefetching
        every namespace referenced so far in the new language. Loads still
        in flight for the previous language are left to finish.

        Args:
            tag: Language tag to switch to.

        Raises:
            UnsupportedLanguage: If ``tag`` is not supported. State is unchanged.
        """
        language = self.supported.match(tag, strict=True)
        if language is None:
            logger.warning(
                "unsupported_language_rejected",
                requested=tag,
                current=self._language,
            )
            raise UnsupportedLanguage(tag, list(self.supported))

        previous = self._language
        self.state = ResolverState.RESOLVING
        self._language = language
        self.detection = Detection(language=language, source="user")
        self._persist(language)
        self.state = ResolverState.READY

        logger.info("language_changed", language=language, previous=previous)
        self._emit(RuntimeEvent(kind="language_changed", language=language))

        for namespace in self._referenced:
            self._schedule_load(language, namespace)

    def translate(self, key: str, namespace: Optional[str] = None, **variables: Any) -> str:
        """Look up a message in the current language.

        Never blocks and never raises for missing data. If the table for
        (language, namespace) is not cached, a background load starts. Until
        it completes, and for keys the table lacks, the message comes from
        an already cached default-language table, else the raw key.

        Args:
            key: Message key, optionally prefixed with "namespace:".
            namespace: Namespace; defaults to the runtime's default namespace.
            **variables: Interpolation values for {{name}} placeholders.

        Returns:
            Translated message, or the raw key.
        """
        if self.state is ResolverState.UNINITIALIZED:
            self.resolve_language()

        language = self._language or self.supported.default
        translation_key = TranslationKey.from_string(
            key, namespace or self.default_namespace
        )
        ns = translation_key.namespace
        self._referenced.setdefault(ns, None)

        message = None
        table = self._tables.get((language, ns))
        if table is None:
            self._schedule_load(language, ns)
        else:
            message = table.get(translation_key.message_key)

        if message is None and language != self.supported.default:
            fallback = self._tables.get((self.supported.default, ns))
            if fallback is not None:
                message = fallback.get(translation_key.message_key)

        if message is None:
            return translation_key.message_key

        return interpolate(message, variables)

    def get_fixed_translate(self, namespace: str) -> Callable[..., str]:
        """Return a lookup function bound to one namespace.

        Args:
            namespace: Namespace used by every lookup.

        Returns:
            Callable ``t(key, **variables) -> str``.
        """
        self._referenced.setdefault(namespace, None)

        def t(key: str, **variables: Any) -> str:
            return self.translate(key, namespace, **variables)

        return t

    def has_table(self, namespace: str, language: Optional[str] = None) -> bool:
        return ((language or self._language), namespace) in self._tables

    def get_table(
        self, namespace: str, language: Optional[str] = None
    ) -> Optional[TranslationTable]:
        return self._tables.get(((language or self._language), namespace))

    async def load_namespaces(
        self, *namespaces: str, language: Optional[str] = None
    ) -> Dict[str, TranslationTable]:
        """Load namespaces and wait for them.

        Used where rendering must not start before strings are available,
        such as server rendering. Failures degrade to empty tables.

        Args:
            *namespaces: Namespaces to load.
            language: Language to load; defaults to the resolved language.

        Returns:
            Dict of namespace -> TranslationTable.

        Raises:
            UnsupportedLanguage: If ``language`` is given and not supported.
        """
        if language is None:
            target = self.resolve_language()
        else:
            target = self.supported.match(language, strict=True)
            if target is None:
                raise UnsupportedLanguage(language, list(self.supported))

        tasks = []
        for namespace in namespaces:
            self._referenced.setdefault(namespace, None)
            task = self._schedule_load(target, namespace)
            if task is not None:
                tasks.append(task)

        if tasks:
            await asyncio.gather(*tasks)

        return {ns: self._tables[(target, ns)] for ns in namespaces}

    async def settle(self) -> None:
        """Wait until no background load is in flight."""
        while self._pending:
            await asyncio.gather(*list(self._pending.values()))

    def _persist(self, language: str) -> None:
        for store in self.stores:
            store.write(self.cookie_name, language, self.cookie_options)

    def _schedule_load(self, language: str, namespace: str) -> Optional[asyncio.Task]:
        key = (language, namespace)
        if key in self._tables:
            return None

        task = self._pending.get(key)
        if task is not None:
            return task

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(
                "translation_load_deferred",
                language=language,
                namespace=namespace,
                reason="no running event loop",
            )
            return None

        task = loop.create_task(self._load(language, namespace))
        self._pending[key] = task

        def _done(done: asyncio.Task, key: Tuple[str, str] = key) -> None:
            if self._pending.get(key) is done:
                del self._pending[key]

        task.add_done_callback(_done)
        return task

    async def _load(self, language: str, namespace: str) -> TranslationTable:
        try:
            table = await self.backend.load(language, namespace)
            kind = "namespace_loaded"
        except ResourceNotFound as e:
            logger.warning(
                "translations_not_found",
                language=language,
                namespace=namespace,
                reason=e.reason,
            )
            table = TranslationTable.empty(language, namespace)
            kind = "namespace_failed"
        except Exception as e:  # pylint: disable=broad-except
            logger.error(
                "translations_load_failed",
                language=language,
                namespace=namespace,
                error=str(e),
            )
            table = TranslationTable.empty(language, namespace)
            kind = "namespace_failed"

        # Tables are created once per pair and never replaced
        table = self._tables.setdefault((language, namespace), table)
        self._emit(RuntimeEvent(kind=kind, language=language, namespace=namespace))
        return table

    def _emit(self, event: RuntimeEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:  # pylint: disable=broad-except
                logger.error("runtime_listener_failed", kind=event.kind, error=str(e))
