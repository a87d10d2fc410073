"""Server-side language pre-resolution.

Resolves the language for one request before any markup is rendered, using
the same detection chain as the client minus client-only signals. The result
depends only on the request's inputs, so concurrent requests never see each
other's state.
"""

from html import escape
from typing import Mapping, Optional

from infrastructure.i18n.backends import ResourceBackend
from infrastructure.i18n.cookies import CookieOptions, CookieStore, HeaderCookieStore
from infrastructure.i18n.detection import DetectionChain, DetectionContext
from infrastructure.i18n.models import Detection, ExecutionEnvironment
from infrastructure.i18n.runtime import LanguageRuntime


def server_context(
    *,
    explicit_tag: Optional[str] = None,
    cookie_header: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
    cookies: Optional[CookieStore] = None,
) -> DetectionContext:
    """Build a SERVER detection context from request inputs.

    Args:
        explicit_tag: Tag resolved upstream (path, query, header).
        cookie_header: Raw Cookie header, used when ``cookies`` is not given.
        headers: Request headers; names are lower-cased.
        cookies: Cookie store to use instead of parsing ``cookie_header``.

    Returns:
        DetectionContext with no runtime preference.
    """
    return DetectionContext(
        environment=ExecutionEnvironment.SERVER,
        explicit_tag=explicit_tag,
        cookies=cookies if cookies is not None else HeaderCookieStore(cookie_header),
        headers={k.lower(): v for k, v in (headers or {}).items()},
    )


def pre_resolve(
    chain: DetectionChain,
    *,
    explicit_tag: Optional[str] = None,
    cookie_header: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> Detection:
    """Resolve the language to declare on the server-rendered document.

    Args:
        chain: Detection chain shared with the client.
        explicit_tag: Tag resolved upstream, if any.
        cookie_header: Raw Cookie header of the request.
        headers: Request headers.

    Returns:
        Detection for the request.
    """
    context = server_context(
        explicit_tag=explicit_tag, cookie_header=cookie_header, headers=headers
    )
    return chain.detect(context)


def create_request_runtime(
    chain: DetectionChain,
    backend: ResourceBackend,
    context: DetectionContext,
    *,
    cookie_name: str,
    cookie_options: Optional[CookieOptions] = None,
    default_namespace: str = "common",
    persist: bool = False,
) -> LanguageRuntime:
    """Create a request-owned runtime resolved for a SERVER context.

    Cookie writes are not reliable while rendering on the server, so the
    runtime only persists to the context's cookie store when asked.

    Args:
        chain: Detection chain.
        backend: Resource backend (may be shared; only tables are cached).
        context: SERVER detection context for the request.
        cookie_name: Cookie persisting the language.
        cookie_options: Attributes for cookie writes.
        default_namespace: Namespace for lookups that do not name one.
        persist: Write the resolved language to ``context.cookies``.

    Returns:
        LanguageRuntime already in the READY state.

    Raises:
        ValueError: If ``context`` is not a SERVER context.
    """
    if context.environment is not ExecutionEnvironment.SERVER:
        raise ValueError("Request runtimes require a SERVER detection context")

    runtime = LanguageRuntime(
        chain,
        backend,
        context,
        cookie_name=cookie_name,
        cookie_options=cookie_options,
        persist_to=None if persist else [],
        default_namespace=default_namespace,
    )
    runtime.resolve_language()
    return runtime


def render_document_root(language: str, body: str = "", title: str = "") -> str:
    """Render a minimal document root declaring ``language``.

    Args:
        language: Pre-resolved language tag.
        body: Already-escaped body markup.
        title: Document title (escaped here).

    Returns:
        HTML document string.
    """
    return (
        "<!DOCTYPE html>\n"
        f'<html lang="{escape(language, quote=True)}">\n'
        "<head>\n"
        '<meta charset="UTF-8">\n'
        f"<title>{escape(title)}</title>\n"
        "</head>\n"
        f"<body>{body}</body>\n"
        "</html>\n"
    )
