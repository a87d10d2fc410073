"""Cookie store accessors for persisting the resolved language.

A cookie store reads and writes the single cookie that remembers the last
resolved language. Persistence is best effort: a store that cannot be read
behaves as if the cookie were absent, and a store that cannot be written
ignores the write. Locale resolution never fails because persistence did.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional
from urllib.parse import quote, unquote

from infrastructure.i18n.exceptions import PersistenceUnavailable
from infrastructure.logging import get_module_logger

logger = get_module_logger()


@dataclass(frozen=True)
class CookieOptions:
    """Attributes applied when writing a cookie.

    Attributes:
        max_age: Lifetime in seconds; None for a session cookie, 0 or less deletes.
        path: Cookie path.
        same_site: SameSite attribute ("lax", "strict" or "none").
        secure: Whether the cookie is restricted to HTTPS.
        domain: Optional cookie domain.
    """

    max_age: Optional[int] = None
    path: str = "/"
    same_site: str = "lax"
    secure: bool = False
    domain: Optional[str] = None


def parse_cookie_header(raw: Optional[str]) -> Dict[str, str]:
    """Parse a raw cookie string into a name -> value mapping.

    Pairs are separated by ";", trimmed, split on the first "=", and
    URL-decoded. Fragments without "=" are skipped. The first occurrence
    of a name wins, matching how browsers order more specific cookies first.

    Args:
        raw: Cookie header or document.cookie style string.

    Returns:
        Dict of cookie names to decoded values.
    """
    cookies: Dict[str, str] = {}
    if not raw:
        return cookies

    for part in raw.split(";"):
        part = part.strip()
        if not part or "=" not in part:
            continue
        name, value = part.split("=", 1)
        name = name.strip()
        if not name or name in cookies:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        cookies[name] = unquote(value)
    return cookies


def format_cookie(name: str, value: str, options: CookieOptions) -> str:
    """Render a Set-Cookie header value.

    Args:
        name: Cookie name.
        value: Cookie value, URL-encoded on output.
        options: Cookie attributes.

    Returns:
        Set-Cookie header value.
    """
    parts = [f"{name}={quote(value, safe='')}"]
    if options.max_age is not None:
        parts.append(f"Max-Age={options.max_age}")
    if options.domain:
        parts.append(f"Domain={options.domain}")
    if options.path:
        parts.append(f"Path={options.path}")
    if options.same_site:
        parts.append(f"SameSite={options.same_site.capitalize()}")
    if options.secure:
        parts.append("Secure")
    return "; ".join(parts)


class CookieStore(ABC):
    """Base class for cookie stores.

    Subclasses implement ``_get`` and ``_set`` and may raise
    PersistenceUnavailable; ``read`` and ``write`` absorb it.
    """

    @abstractmethod
    def _get(self, name: str) -> Optional[str]:
        pass

    @abstractmethod
    def _set(self, name: str, value: str, options: CookieOptions) -> None:
        pass

    def read(self, name: str) -> Optional[str]:
        """Return the cookie value, or None if absent or unreadable."""
        try:
            return self._get(name)
        except PersistenceUnavailable as e:
            logger.debug("cookie_read_unavailable", cookie=name, reason=str(e))
            return None

    def write(
        self, name: str, value: str, options: Optional[CookieOptions] = None
    ) -> None:
        """Set the cookie; failures are ignored."""
        try:
            self._set(name, value, options or CookieOptions())
        except PersistenceUnavailable as e:
            logger.debug("cookie_write_unavailable", cookie=name, reason=str(e))


class NullCookieStore(CookieStore):
    """Store for contexts with no cookies at all."""

    def _get(self, name: str) -> Optional[str]:
        raise PersistenceUnavailable("no cookie store in this context")

    def _set(self, name: str, value: str, options: CookieOptions) -> None:
        raise PersistenceUnavailable("no cookie store in this context")


class HeaderCookieStore(CookieStore):
    """Read-only store backed by a request's Cookie header."""

    def __init__(self, raw_header: Optional[str]):
        self._cookies = parse_cookie_header(raw_header)

    def _get(self, name: str) -> Optional[str]:
        return self._cookies.get(name)

    def _set(self, name: str, value: str, options: CookieOptions) -> None:
        raise PersistenceUnavailable("request cookies are read-only")


class CookieJar(CookieStore):
    """Writable in-memory jar with document.cookie semantics.

    Used by client-side runtimes. Every write is also recorded as a
    Set-Cookie string so it can be forwarded to a real transport.

    Attributes:
        set_cookie_headers: Set-Cookie values emitted by writes, in order.
    """

    def __init__(self, initial: Optional[str] = None):
        self._cookies = parse_cookie_header(initial)
        self.set_cookie_headers: List[str] = []

    @property
    def cookie(self) -> str:
        """Current cookies as a Cookie header string."""
        return "; ".join(
            f"{name}={quote(value, safe='')}" for name, value in self._cookies.items()
        )

    def _get(self, name: str) -> Optional[str]:
        return self._cookies.get(name)

    def _set(self, name: str, value: str, options: CookieOptions) -> None:
        if options.max_age is not None and options.max_age <= 0:
            self._cookies.pop(name, None)
        else:
            self._cookies[name] = value
        self.set_cookie_headers.append(format_cookie(name, value, options))


class ResponseCookieStore(CookieStore):
    """Server-side store: reads request cookies, writes to a response.

    Args:
        request_cookies: Already-parsed request cookies (e.g. ``request.cookies``).
        response: Starlette/FastAPI response receiving writes. Writes before a
            response is bound are ignored.
    """

    def __init__(self, request_cookies: Mapping[str, str], response=None):
        self._cookies = dict(request_cookies)
        self._response = response

    def bind_response(self, response) -> None:
        self._response = response

    def _get(self, name: str) -> Optional[str]:
        return self._cookies.get(name)

    def _set(self, name: str, value: str, options: CookieOptions) -> None:
        if self._response is None:
            raise PersistenceUnavailable("no response to carry the cookie")
        self._response.set_cookie(
            key=name,
            value=value,
            max_age=options.max_age,
            path=options.path,
            domain=options.domain,
            secure=options.secure,
            samesite=options.same_site,
        )
        self._cookies[name] = value
