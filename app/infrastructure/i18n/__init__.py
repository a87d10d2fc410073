"""i18n system - language resolution and on-demand translation loading.

Decides which language a user sees, persists that decision in a cookie,
and loads translation bundles lazily per namespace.

Main components:
- models: SupportedLanguages, TranslationKey, TranslationTable, Detection
- cookies: CookieStore accessors (header, jar, response, null)
- detection: DetectionChain and its signals
- backends: LoaderRegistry, RegistryBackend, CoalescingBackend
- runtime: LanguageRuntime (session language state and translate())
- server: server-side pre-resolution for rendered documents
"""

from infrastructure.i18n.backends import (
    CachingBackend,
    CoalescingBackend,
    LoaderRegistry,
    RegistryBackend,
    ResourceBackend,
)
from infrastructure.i18n.cookies import (
    CookieJar,
    CookieOptions,
    CookieStore,
    HeaderCookieStore,
    NullCookieStore,
    ResponseCookieStore,
    format_cookie,
    parse_cookie_header,
)
from infrastructure.i18n.detection import (
    DetectionChain,
    DetectionContext,
    Signal,
    build_signals,
    parse_accept_language,
    preferences_from_environment,
)
from infrastructure.i18n.exceptions import (
    I18nError,
    PersistenceUnavailable,
    ResourceNotFound,
    UnsupportedLanguage,
)
from infrastructure.i18n.models import (
    Detection,
    ExecutionEnvironment,
    ResolverState,
    RuntimeEvent,
    SupportedLanguages,
    TranslationKey,
    TranslationTable,
)
from infrastructure.i18n.runtime import LanguageRuntime
from infrastructure.i18n.server import (
    create_request_runtime,
    pre_resolve,
    render_document_root,
    server_context,
)

__all__ = [
    # Models
    "Detection",
    "ExecutionEnvironment",
    "ResolverState",
    "RuntimeEvent",
    "SupportedLanguages",
    "TranslationKey",
    "TranslationTable",
    # Errors
    "I18nError",
    "PersistenceUnavailable",
    "ResourceNotFound",
    "UnsupportedLanguage",
    # Cookies
    "CookieJar",
    "CookieOptions",
    "CookieStore",
    "HeaderCookieStore",
    "NullCookieStore",
    "ResponseCookieStore",
    "format_cookie",
    "parse_cookie_header",
    # Detection
    "DetectionChain",
    "DetectionContext",
    "Signal",
    "build_signals",
    "parse_accept_language",
    "preferences_from_environment",
    # Backends
    "CachingBackend",
    "CoalescingBackend",
    "LoaderRegistry",
    "RegistryBackend",
    "ResourceBackend",
    # Runtime
    "LanguageRuntime",
    # Server
    "create_request_runtime",
    "pre_resolve",
    "render_document_root",
    "server_context",
]
