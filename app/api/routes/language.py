"""Language routes.

Serves the server-rendered document root, reports and changes the request
language, and exposes translation bundles to clients loading them over HTTP.
"""

from html import escape

from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import HTMLResponse

from api.dependencies.language import I18nDep, RequestLanguageDep, RequestRuntimeDep
from api.dependencies.rate_limits import get_limiter
from infrastructure.i18n import (
    LanguageRuntime,
    ResourceNotFound,
    ResponseCookieStore,
    render_document_root,
    server_context,
)
from infrastructure.logging import get_module_logger

router = APIRouter(tags=["Language"])
limiter = get_limiter()
logger = get_module_logger()


@router.get("/", response_class=HTMLResponse)
async def document_root(runtime: RequestRuntimeDep):
    """
    Document root declaring the pre-resolved language.

    Waits for the default namespace so the first render already carries
    translated strings.

    Returns:
        HTMLResponse: Page with ``<html lang>`` set to the request language.
    """
    await runtime.load_namespaces(runtime.default_namespace)
    t = runtime.get_fixed_translate(runtime.default_namespace)

    body = (
        "<main>"
        f"<h1>{escape(t('greeting'))}</h1>"
        f"<p>{escape(t('tagline'))}</p>"
        "</main>"
    )
    return HTMLResponse(
        content=render_document_root(runtime.language, body=body, title=t("title"))
    )


@router.get("/language")
def get_language(detection: RequestLanguageDep, i18n: I18nDep):
    """Report the request language and the signal that produced it."""
    supported = i18n.chain.supported
    return {
        "language": detection.language,
        "source": detection.source,
        "supported": list(supported),
        "default": supported.default,
    }


@router.put("/language/{tag}")
@limiter.limit("30/minute")
def change_language(request: Request, response: Response, tag: str, i18n: I18nDep):
    """Switch the session language and persist it in the language cookie.

    Raises:
        UnsupportedLanguage: Mapped to a 400 response; no cookie is written.
    """
    store = ResponseCookieStore(request.cookies, response)
    runtime = LanguageRuntime(
        i18n.chain,
        i18n.backend,
        server_context(cookies=store),
        cookie_name=i18n.settings.cookie_name,
        cookie_options=i18n.cookie_options(secure=request.url.scheme == "https"),
        default_namespace=i18n.settings.default_namespace,
    )
    runtime.change_language(tag)

    response.headers["Content-Language"] = runtime.language
    return {"language": runtime.language, "source": runtime.detection.source}


@router.get("/locales/{language}/{namespace}")
async def get_bundle(language: str, namespace: str, i18n: I18nDep):
    """Serve one translation bundle as a flat key -> message mapping.

    The language is matched case-insensitively against the supported tags.

    Raises:
        HTTPException: 404 when no bundle is registered or it cannot be read.
    """
    language = i18n.chain.supported.match(language, strict=True) or language
    if (language, namespace) not in i18n.registry:
        raise HTTPException(
            status_code=404, detail=f"No translations for {language}/{namespace}"
        )

    try:
        table = await i18n.backend.load(language, namespace)
    except ResourceNotFound as e:
        logger.warning(
            "bundle_unavailable",
            language=language,
            namespace=namespace,
            reason=e.reason,
        )
        raise HTTPException(status_code=404, detail=str(e)) from e

    return dict(table.messages)
