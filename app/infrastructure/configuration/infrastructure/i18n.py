"""Locale resolution and translation bundle settings."""

import json
from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import NoDecode

from infrastructure.configuration.base import InfrastructureSettings


def _split_list(value: Any) -> Any:
    """Accept comma-separated strings in addition to JSON lists."""
    if isinstance(value, str):
        if value.strip().startswith("["):
            return json.loads(value)
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


class I18nSettings(InfrastructureSettings):
    """Language detection, persistence, and bundle loading configuration.

    Environment Variables:
        I18N_SUPPORTED_LANGUAGES: Supported language tags, JSON list or comma separated (default: ["en", "fr"])
        I18N_DEFAULT_LANGUAGE: Language used when no signal matches (default: en)
        I18N_DEFAULT_NAMESPACE: Namespace used by lookups that do not name one (default: common)
        I18N_COOKIE_NAME: Cookie holding the last resolved language (default: i18next)
        I18N_COOKIE_MAX_AGE: Cookie lifetime in seconds (default: 31536000 = 1 year)
        I18N_COOKIE_PATH: Cookie path (default: /)
        I18N_COOKIE_SAME_SITE: Cookie SameSite attribute (default: lax)
        I18N_LOCALES_DIR: Directory holding <language>/<namespace>.yml bundles
        I18N_DETECTION_ORDER: Signal names (JSON list or comma separated) in priority order
            (default: ["explicit", "cookie", "runtime"])
        I18N_QUERY_PARAMETER: Query parameter carrying an explicit language (default: lng)
        I18N_BACKEND_URL: Origin serving /locales/<language>/<namespace> bundles over HTTP
        I18N_NAMESPACES: Namespaces (JSON list or comma separated) the origin serves;
            the default namespace is always included (default: [])
        I18N_HTTP_TIMEOUT: Timeout in seconds for HTTP bundle fetches (default: 10)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        supported = settings.i18n.supported_languages
        cookie_name = settings.i18n.cookie_name
        ```
    """

    supported_languages: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["en", "fr"],
        alias="I18N_SUPPORTED_LANGUAGES",
        description="Language tags the application ships translations for",
    )
    default_language: str = Field(
        default="en",
        alias="I18N_DEFAULT_LANGUAGE",
        description="Language used when the detection chain is exhausted",
    )
    default_namespace: str = Field(
        default="common",
        alias="I18N_DEFAULT_NAMESPACE",
        description="Namespace used by lookups that do not specify one",
    )
    cookie_name: str = Field(
        default="i18next",
        alias="I18N_COOKIE_NAME",
        description="Name of the cookie persisting the resolved language",
    )
    cookie_max_age: int = Field(
        default=31536000,
        alias="I18N_COOKIE_MAX_AGE",
        description="Lifetime of the language cookie in seconds",
    )
    cookie_path: str = Field(default="/", alias="I18N_COOKIE_PATH")
    cookie_same_site: str = Field(default="lax", alias="I18N_COOKIE_SAME_SITE")
    locales_dir: str | None = Field(
        default=None,
        alias="I18N_LOCALES_DIR",
        description="Bundle directory; defaults to the packaged app/locales",
    )
    detection_order: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["explicit", "cookie", "runtime"],
        alias="I18N_DETECTION_ORDER",
        description="Signal names consulted in priority order",
    )
    query_parameter: str = Field(default="lng", alias="I18N_QUERY_PARAMETER")
    backend_url: str | None = Field(default=None, alias="I18N_BACKEND_URL")
    namespaces: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        alias="I18N_NAMESPACES",
        description="Namespaces served by I18N_BACKEND_URL besides the default one",
    )
    http_timeout: float = Field(default=10.0, alias="I18N_HTTP_TIMEOUT")

    @property
    def remote_namespaces(self) -> list[str]:
        """Namespaces to register for the HTTP origin, default namespace first."""
        namespaces = [self.default_namespace]
        namespaces.extend(ns for ns in self.namespaces if ns != self.default_namespace)
        return namespaces

    @field_validator("supported_languages", "detection_order", "namespaces", mode="before")
    @classmethod
    def validate_lists(cls, v: Any) -> Any:
        """Allow comma-separated values for list settings."""
        return _split_list(v)

    @field_validator("cookie_same_site")
    @classmethod
    def validate_same_site(cls, v: str) -> str:
        """Restrict SameSite to the values browsers understand."""
        value = v.lower()
        if value not in ("lax", "strict", "none"):
            raise ValueError(f"Invalid SameSite value: {v}")
        return value

    @model_validator(mode="after")
    def validate_default_language(self) -> "I18nSettings":
        """The default language must be one of the supported languages."""
        if not self.supported_languages:
            raise ValueError("At least one supported language is required")
        supported = [lang.lower() for lang in self.supported_languages]
        if self.default_language.lower() not in supported:
            raise ValueError(
                f"Default language {self.default_language} is not in "
                f"supported languages {self.supported_languages}"
            )
        return self
