"""Tests for the language routes."""

import httpx
import pytest


class TestDocumentRoot:
    """Test the server-rendered document root."""

    def test_defaults_to_english(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.headers["content-type"] == "text/html; charset=utf-8"
        assert '<html lang="en">' in response.text
        assert "<h1>Hello</h1>" in response.text
        assert "<title>Welcome</title>" in response.text
        assert response.headers["content-language"] == "en"

    def test_cookie_selects_language(self, client):
        response = client.get("/", headers={"Cookie": "i18next=fr"})
        assert '<html lang="fr">' in response.text
        assert "<h1>Bonjour</h1>" in response.text

    def test_query_parameter_beats_cookie(self, client):
        response = client.get("/?lng=fr", headers={"Cookie": "i18next=en"})
        assert '<html lang="fr">' in response.text

    def test_unsupported_cookie_falls_back_to_default(self, client):
        response = client.get("/", headers={"Cookie": "i18next=de"})
        assert '<html lang="en">' in response.text

    def test_accept_language_ignored_by_default_order(self, client):
        response = client.get("/", headers={"Accept-Language": "fr"})
        assert '<html lang="en">' in response.text

    def test_does_not_set_cookie(self, client):
        response = client.get("/", headers={"Cookie": "i18next=fr"})
        assert "set-cookie" not in response.headers


class TestGetLanguage:
    def test_reports_source(self, client):
        response = client.get("/language", headers={"Cookie": "i18next=fr"})
        assert response.status_code == 200
        assert response.json() == {
            "language": "fr",
            "source": "cookie",
            "supported": ["en", "fr"],
            "default": "en",
        }

    def test_reports_default(self, client):
        assert client.get("/language").json()["source"] == "default"


class TestChangeLanguage:
    """Test PUT /language/{tag}."""

    def test_sets_cookie(self, client):
        response = client.put("/language/fr")
        assert response.status_code == 200
        assert response.json() == {"language": "fr", "source": "user"}
        assert response.headers["content-language"] == "fr"

        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("i18next=fr;")
        assert "Max-Age=31536000" in set_cookie
        assert "Path=/" in set_cookie
        assert "SameSite=lax" in set_cookie

    def test_cookie_is_used_by_next_request(self, client):
        client.put("/language/fr")
        response = client.get("/")
        assert '<html lang="fr">' in response.text

    def test_tag_is_canonicalized(self, client):
        response = client.put("/language/FR")
        assert response.json()["language"] == "fr"

    @pytest.mark.parametrize("tag", ["de", "fr-CA"])
    def test_unsupported_language_is_rejected(self, client, tag):
        response = client.put(f"/language/{tag}", headers={"Cookie": "i18next=en"})
        assert response.status_code == 400
        assert response.json() == {
            "error": "unsupported_language",
            "message": f"Unsupported language: {tag}",
            "requested": tag,
            "supported": ["en", "fr"],
        }
        assert "set-cookie" not in response.headers

    def test_rate_limited(self, client):
        for _ in range(30):
            assert client.put("/language/fr").status_code == 200
        response = client.put("/language/fr")
        assert response.status_code == 429
        assert response.json()["error"] == "rate_limit_exceeded"


class TestGetBundle:
    """Test GET /locales/{language}/{namespace}."""

    def test_serves_flat_bundle(self, client):
        response = client.get("/locales/fr/common")
        assert response.status_code == 200
        body = response.json()
        assert body["greeting"] == "Bonjour"
        assert body["errors.not_found"] == "Page introuvable"

    def test_serves_json_bundle(self, client):
        assert client.get("/locales/fr/event").json()["title"] == "Événements"

    def test_language_is_matched_case_insensitively(self, client):
        response = client.get("/locales/FR/common")
        assert response.status_code == 200
        assert response.json()["greeting"] == "Bonjour"

    @pytest.mark.parametrize("path", ["/locales/fr/missing-namespace", "/locales/de/common"])
    def test_unknown_pair_is_404(self, client, path):
        assert client.get(path).status_code == 404

    def test_unreadable_bundle_is_404(self, client, locales_dir):
        (locales_dir / "en" / "event.yml").write_text("- not\n- a mapping\n")
        assert client.get("/locales/en/event").status_code == 404

    @pytest.mark.asyncio
    async def test_client_backend_loads_from_server(self, app, i18n_settings):
        """A client runtime can use the route as its HTTP bundle origin."""
        from infrastructure.i18n.factory import (
            create_backend,
            create_language_runtime,
            create_loader_registry,
        )

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            remote = i18n_settings.model_copy(update={"backend_url": "http://test"})
            registry = create_loader_registry(remote, client=http)
            runtime = create_language_runtime(
                remote,
                runtime_preferences=["fr"],
                backend=create_backend(remote, registry=registry),
            )
            tables = await runtime.load_namespaces("common")

        assert tables["common"].get("greeting") == "Bonjour"
        assert runtime.translate("errors.not_found") == "Page introuvable"
