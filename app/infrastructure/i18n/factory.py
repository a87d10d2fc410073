"""Factory functions for creating i18n components.

Provides convenience functions for building the detection chain, the
resource backend, and runtimes from I18nSettings.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

import httpx

from infrastructure.configuration import I18nSettings
from infrastructure.i18n.backends import (
    CachingBackend,
    CoalescingBackend,
    LoaderRegistry,
    RegistryBackend,
    ResourceBackend,
)
from infrastructure.i18n.cookies import CookieJar, CookieOptions, CookieStore
from infrastructure.i18n.detection import (
    DetectionChain,
    DetectionContext,
    build_signals,
    preferences_from_environment,
)
from infrastructure.i18n.models import ExecutionEnvironment, SupportedLanguages
from infrastructure.i18n.runtime import LanguageRuntime
from infrastructure.logging import get_module_logger

logger = get_module_logger()


def default_locales_dir() -> Path:
    """Packaged locales directory (app/locales)."""
    # This file is at .../app/infrastructure/i18n/factory.py
    return Path(__file__).resolve().parents[2] / "locales"


def create_supported_languages(i18n: I18nSettings) -> SupportedLanguages:
    return SupportedLanguages(
        languages=tuple(i18n.supported_languages),
        default=i18n.default_language,
    )


def create_detection_chain(i18n: I18nSettings) -> DetectionChain:
    """Build the detection chain from the configured signal order.

    Raises:
        ValueError: If the order names an unknown signal.
    """
    chain = DetectionChain(
        build_signals(i18n.detection_order, cookie_name=i18n.cookie_name),
        create_supported_languages(i18n),
    )
    logger.info(
        "detection_chain_created",
        signals=chain.signal_names,
        default_language=chain.supported.default,
    )
    return chain


def create_cookie_options(i18n: I18nSettings, secure: bool = False) -> CookieOptions:
    return CookieOptions(
        max_age=i18n.cookie_max_age,
        path=i18n.cookie_path,
        same_site=i18n.cookie_same_site,
        secure=secure,
    )


def create_http_client(i18n: I18nSettings) -> httpx.AsyncClient:
    """HTTP client for remote bundles, using the configured timeout."""
    return httpx.AsyncClient(timeout=i18n.http_timeout)


def create_loader_registry(
    i18n: I18nSettings,
    client: Optional[httpx.AsyncClient] = None,
    namespaces: Optional[Iterable[str]] = None,
) -> LoaderRegistry:
    """Build the bundle registry.

    Uses the HTTP origin when ``I18N_BACKEND_URL`` is set, otherwise scans
    the locales directory. The caller owns ``client`` and closes it.

    Args:
        i18n: I18n settings.
        client: HTTP client for remote bundles (default: create_http_client).
        namespaces: Namespaces served remotely (default: i18n.remote_namespaces).

    Returns:
        LoaderRegistry.

    Raises:
        ValueError: If the locales directory does not exist.
    """
    supported = create_supported_languages(i18n)
    if i18n.backend_url:
        registry = LoaderRegistry.from_http(
            client or create_http_client(i18n),
            i18n.backend_url,
            supported.languages,
            namespaces or i18n.remote_namespaces,
        )
        logger.info(
            "loader_registry_http",
            backend_url=i18n.backend_url,
            bundle_count=len(registry),
            namespaces=registry.namespaces(),
        )
        return registry

    locales_dir = Path(i18n.locales_dir) if i18n.locales_dir else default_locales_dir()
    return LoaderRegistry.from_directory(locales_dir, supported)


def create_backend(
    i18n: I18nSettings,
    registry: Optional[LoaderRegistry] = None,
    cache_tables: bool = False,
    client: Optional[httpx.AsyncClient] = None,
) -> ResourceBackend:
    """Build the coalescing resource backend.

    Args:
        i18n: I18n settings.
        registry: Pre-built registry; built from settings when omitted.
        cache_tables: Keep loaded tables across runtimes (server use).
        client: HTTP client passed to the registry when it is built here.

    Returns:
        CoalescingBackend wrapping the registry backend.
    """
    if registry is None:
        registry = create_loader_registry(i18n, client=client)
    backend: ResourceBackend = RegistryBackend(registry)
    if cache_tables:
        backend = CachingBackend(backend)
    return CoalescingBackend(backend)


def create_language_runtime(
    i18n: I18nSettings,
    *,
    cookies: Optional[CookieStore] = None,
    runtime_preferences: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    explicit_tag: Optional[str] = None,
    backend: Optional[ResourceBackend] = None,
    chain: Optional[DetectionChain] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> LanguageRuntime:
    """Create a client runtime.

    Runtime preferences are passed explicitly; ``environ`` (for example
    ``os.environ``) is only read when no preference list is given. With
    ``I18N_BACKEND_URL`` set, pass a shared ``client`` (or a ready
    ``backend``) so runtimes do not each open their own connection pool.

    Args:
        i18n: I18n settings.
        cookies: Cookie store (default: empty CookieJar).
        runtime_preferences: Preferred languages, most preferred first.
        environ: Environment to read POSIX locale variables from.
        explicit_tag: Tag chosen upstream, e.g. the server-declared language.
        backend: Resource backend (default: built from settings).
        chain: Detection chain (default: built from settings).
        client: HTTP client used when the backend is built here.

    Returns:
        LanguageRuntime in the UNINITIALIZED state.

    Usage:
        async with create_http_client(settings.i18n) as client:
            runtime = create_language_runtime(
                settings.i18n,
                cookies=CookieJar("i18next=fr"),
                runtime_preferences=["de-DE", "en"],
                client=client,
            )
            runtime.resolve_language()
            await runtime.load_namespaces("common")
            runtime.translate("greeting")
    """
    if runtime_preferences is None:
        runtime_preferences = preferences_from_environment(environ or {})

    context = DetectionContext(
        environment=ExecutionEnvironment.CLIENT,
        explicit_tag=explicit_tag,
        cookies=cookies if cookies is not None else CookieJar(),
        runtime_preferences=tuple(runtime_preferences),
    )
    return LanguageRuntime(
        chain or create_detection_chain(i18n),
        backend or create_backend(i18n, client=client),
        context,
        cookie_name=i18n.cookie_name,
        cookie_options=create_cookie_options(i18n),
        default_namespace=i18n.default_namespace,
    )


@dataclass
class I18nComponents:
    """Application-scoped i18n components shared by all requests.

    None of these hold session state: the chain is a pure function of its
    context, and the backend only caches immutable tables.

    Attributes:
        settings: I18n settings the components were built from.
        chain: Detection chain.
        registry: Bundle registry scanned at startup.
        backend: Coalescing, caching backend for request runtimes.
        client: HTTP client behind the registry when bundles are remote.
    """

    settings: I18nSettings
    chain: DetectionChain
    registry: LoaderRegistry
    backend: ResourceBackend
    client: Optional[httpx.AsyncClient] = None

    def cookie_options(self, secure: bool = False) -> CookieOptions:
        return create_cookie_options(self.settings, secure=secure)

    async def aclose(self) -> None:
        """Close the HTTP client, if any."""
        if self.client is not None and not self.client.is_closed:
            await self.client.aclose()
            logger.info("i18n_http_client_closed")


def create_i18n_components(i18n: I18nSettings) -> I18nComponents:
    """Build the components a web application needs at startup.

    The returned components own their HTTP client; call ``aclose`` at
    shutdown.

    Raises:
        ValueError: If the signal order or locales directory is invalid.
    """
    client = create_http_client(i18n) if i18n.backend_url else None
    registry = create_loader_registry(i18n, client=client)
    return I18nComponents(
        settings=i18n,
        chain=create_detection_chain(i18n),
        registry=registry,
        backend=create_backend(i18n, registry=registry, cache_tables=True),
        client=client,
    )
