"""Tests for infrastructure.i18n.factory module."""

import httpx
import pytest

from infrastructure.i18n import CachingBackend, CoalescingBackend, CookieJar, ResolverState
from infrastructure.i18n.factory import (
    create_backend,
    create_cookie_options,
    create_detection_chain,
    create_http_client,
    create_i18n_components,
    create_language_runtime,
    create_loader_registry,
    default_locales_dir,
)
from tests.factories.i18n import make_i18n_settings


class TestFactories:
    """Tests for the i18n factory functions."""

    def test_default_locales_dir_ships_bundles(self):
        locales = default_locales_dir()
        assert (locales / "en" / "common.yml").is_file()
        assert (locales / "fr" / "common.yml").is_file()

    def test_create_detection_chain_uses_configured_order(self):
        chain = create_detection_chain(
            make_i18n_settings(detection_order=["cookie", "header"], default_language="fr")
        )
        assert chain.signal_names == ["cookie", "header"]
        assert chain.supported.default == "fr"

    def test_create_detection_chain_rejects_unknown_signal(self):
        with pytest.raises(ValueError):
            create_detection_chain(make_i18n_settings(detection_order=["geoip"]))

    def test_create_cookie_options(self):
        options = create_cookie_options(make_i18n_settings(), secure=True)
        assert options.max_age == 31536000
        assert options.path == "/"
        assert options.same_site == "lax"
        assert options.secure is True

    def test_create_loader_registry_from_directory(self, i18n_settings):
        registry = create_loader_registry(i18n_settings)
        assert ("fr", "event") in registry

    def test_create_loader_registry_missing_directory(self, tmp_path):
        with pytest.raises(ValueError):
            create_loader_registry(make_i18n_settings(locales_dir=str(tmp_path / "missing")))

    def test_create_loader_registry_over_http(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={}))
        )
        registry = create_loader_registry(
            make_i18n_settings(backend_url="https://example.ca"),
            client=client,
            namespaces=["common", "event"],
        )
        assert registry.pairs() == [
            ("en", "common"),
            ("en", "event"),
            ("fr", "common"),
            ("fr", "event"),
        ]

    def test_create_loader_registry_uses_configured_namespaces(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={}))
        )
        registry = create_loader_registry(
            make_i18n_settings(backend_url="https://example.ca", namespaces=["event"]),
            client=client,
        )
        assert registry.namespaces("fr") == ["common", "event"]
        assert registry.namespaces("en") == ["common", "event"]

    def test_create_http_client_uses_timeout(self):
        client = create_http_client(make_i18n_settings(http_timeout=2.5))
        assert client.timeout == httpx.Timeout(2.5)

    def test_create_backend(self, i18n_settings):
        backend = create_backend(i18n_settings)
        assert isinstance(backend, CoalescingBackend)
        cached = create_backend(i18n_settings, cache_tables=True)
        assert isinstance(cached.backend, CachingBackend)


class TestCreateLanguageRuntime:
    """Tests for create_language_runtime()."""

    @pytest.mark.asyncio
    async def test_client_runtime_end_to_end(self, i18n_settings):
        jar = CookieJar()
        runtime = create_language_runtime(
            i18n_settings, cookies=jar, runtime_preferences=["fr-CA", "en"]
        )
        assert runtime.state is ResolverState.UNINITIALIZED

        assert runtime.resolve_language() == "fr"
        assert jar.read("i18next") == "fr"
        assert jar.set_cookie_headers == ["i18next=fr; Max-Age=31536000; Path=/; SameSite=Lax"]

        assert runtime.translate("greeting") == "greeting"
        await runtime.settle()
        assert runtime.translate("greeting") == "Bonjour"
        assert runtime.translate("event:starts_at", time="9:00") == "starts_at"
        await runtime.settle()
        assert runtime.translate("event:starts_at", time="9:00") == "Commence à 9:00"

    @pytest.mark.asyncio
    async def test_http_backend_loads_non_default_namespace(self):
        bundles = {
            "/locales/fr/common": {"greeting": "Bonjour"},
            "/locales/fr/event": {"title": "Événements"},
        }

        def handler(request):
            if request.url.path in bundles:
                return httpx.Response(200, json=bundles[request.url.path])
            return httpx.Response(404)

        settings = make_i18n_settings(backend_url="http://origin", namespaces=["event"])
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            runtime = create_language_runtime(
                settings, runtime_preferences=["fr"], client=client
            )
            assert runtime.translate("title", "event") == "title"
            await runtime.settle()
            assert runtime.translate("title", "event") == "Événements"
            assert runtime.translate("greeting") == "greeting"
            await runtime.settle()
            assert runtime.translate("greeting") == "Bonjour"

    def test_reads_environment_preferences(self, i18n_settings):
        runtime = create_language_runtime(
            i18n_settings, environ={"LANG": "fr_CA.UTF-8"}
        )
        assert runtime.resolve_language() == "fr"

    def test_explicit_tag(self, i18n_settings):
        runtime = create_language_runtime(
            i18n_settings, cookies=CookieJar("i18next=fr"), explicit_tag="en"
        )
        assert runtime.resolve_language() == "en"


class TestCreateI18nComponents:
    def test_components(self, i18n_settings):
        components = create_i18n_components(i18n_settings)
        assert components.settings is i18n_settings
        assert len(components.registry) == 4
        assert components.chain.signal_names == ["explicit", "cookie", "runtime"]
        assert components.cookie_options(secure=True).secure is True

    def test_directory_components_have_no_client(self, i18n_settings):
        assert create_i18n_components(i18n_settings).client is None

    @pytest.mark.asyncio
    async def test_http_components_own_and_close_client(self):
        components = create_i18n_components(
            make_i18n_settings(backend_url="https://example.ca", http_timeout=3.0)
        )
        assert components.client is not None
        assert components.client.timeout == httpx.Timeout(3.0)
        assert components.registry.namespaces("fr") == ["common"]

        await components.aclose()
        assert components.client.is_closed

        await components.aclose()
