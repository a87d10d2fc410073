"""Exceptions for the i18n system.

Every failure in locale resolution has a degraded fallback; these exceptions
mark the boundaries where a caller decides what that fallback is.
"""

from typing import Optional


class I18nError(Exception):
    """Base exception for all i18n errors.

    Example:
        try:
            runtime.change_language(tag)
        except I18nError as e:
            logger.warning("i18n_error", error=str(e))
    """

    pass


class UnsupportedLanguage(I18nError, ValueError):
    """Raised when a language tag is not in the supported set.

    The rejected operation leaves all state unchanged.

    Example:
        >>> runtime.change_language("de")
        Traceback (most recent call last):
        ...
        UnsupportedLanguage: Unsupported language: de
    """

    def __init__(self, tag: str, supported: Optional[list] = None):
        self.tag = tag
        self.supported = list(supported or [])
        super().__init__(f"Unsupported language: {tag}")


class ResourceNotFound(I18nError, LookupError):
    """Raised when no bundle exists for a (language, namespace) pair.

    The runtime degrades to an empty table so lookups render raw keys.

    Example:
        >>> await backend.load("fr", "missing-namespace")
        Traceback (most recent call last):
        ...
        ResourceNotFound: No translations for fr/missing-namespace
    """

    def __init__(self, language: str, namespace: str, reason: Optional[str] = None):
        self.language = language
        self.namespace = namespace
        self.reason = reason
        message = f"No translations for {language}/{namespace}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class PersistenceUnavailable(I18nError):
    """Raised by a cookie store that cannot be read or written.

    Never propagated past the cookie accessor: reads become "absent"
    and writes become no-ops.
    """

    pass
