"""Resource backends producing translation tables.

Bundles are never addressed by building paths at lookup time. A
LoaderRegistry maps each known (language, namespace) pair to a loader at
startup, either by scanning a locales directory once or by declaring the
pairs an HTTP origin serves. Backends only consult the registry.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import quote

import httpx
import yaml

from infrastructure.i18n.exceptions import ResourceNotFound
from infrastructure.i18n.models import SupportedLanguages, TranslationTable
from infrastructure.logging import get_module_logger

logger = get_module_logger()

BundleLoader = Callable[[], Awaitable[Mapping[str, Any]]]
BundleKey = Tuple[str, str]

BUNDLE_SUFFIXES = (".yml", ".yaml", ".json")


def read_bundle_file(path: Path) -> Mapping[str, Any]:
    """Parse a YAML or JSON bundle file.

    Args:
        path: Bundle file path.

    Returns:
        Parsed mapping (empty for an empty file).

    Raises:
        ValueError: If the file cannot be parsed or is not a mapping.
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            if path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Bundle {path} must contain a mapping")
    return data


def _file_loader(path: Path) -> BundleLoader:
    async def load() -> Mapping[str, Any]:
        return await asyncio.to_thread(read_bundle_file, path)

    return load


def _http_loader(client: httpx.AsyncClient, url: str) -> BundleLoader:
    async def load() -> Mapping[str, Any]:
        response = await client.get(url)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Bundle at {url} must contain a mapping")
        return data

    return load


class LoaderRegistry:
    """Explicit mapping of (language, namespace) to a bundle loader.

    Attributes:
        loaders: Registered loaders keyed by (language, namespace).
    """

    def __init__(self):
        self.loaders: Dict[BundleKey, BundleLoader] = {}

    def register(self, language: str, namespace: str, loader: BundleLoader) -> None:
        """Register the loader for a pair, replacing any previous one."""
        self.loaders[(language, namespace)] = loader

    def get(self, language: str, namespace: str) -> Optional[BundleLoader]:
        return self.loaders.get((language, namespace))

    def __contains__(self, key: object) -> bool:
        return key in self.loaders

    def __len__(self) -> int:
        return len(self.loaders)

    def pairs(self) -> List[BundleKey]:
        return sorted(self.loaders)

    def namespaces(self, language: Optional[str] = None) -> List[str]:
        """Namespaces registered for a language, or for any language."""
        return sorted(
            {ns for lang, ns in self.loaders if language is None or lang == language}
        )

    @classmethod
    def from_directory(
        cls,
        directory: Path,
        supported: Optional[SupportedLanguages] = None,
    ) -> "LoaderRegistry":
        """Scan ``<directory>/<language>/<namespace>.<ext>`` once.

        Language directories not in ``supported`` are skipped. When a
        namespace exists in several formats, the first of .yml, .yaml,
        .json wins.

        Args:
            directory: Root locales directory.
            supported: Optional supported set used to filter and canonicalize
                language directory names.

        Returns:
            Populated LoaderRegistry.

        Raises:
            ValueError: If the directory does not exist.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise ValueError(f"Locales directory not found: {directory}")

        registry = cls()
        for language_dir in sorted(p for p in directory.iterdir() if p.is_dir()):
            language = language_dir.name
            if supported is not None:
                canonical = supported.match(language, strict=True)
                if canonical is None:
                    logger.warning("skipped_unsupported_locale_dir", language=language)
                    continue
                language = canonical

            for suffix in reversed(BUNDLE_SUFFIXES):
                for bundle in sorted(language_dir.glob(f"*{suffix}")):
                    registry.register(language, bundle.stem, _file_loader(bundle))

        logger.info(
            "loader_registry_scanned",
            locales_dir=str(directory),
            bundle_count=len(registry),
        )
        return registry

    @classmethod
    def from_http(
        cls,
        client: httpx.AsyncClient,
        base_url: str,
        languages: Iterable[str],
        namespaces: Iterable[str],
    ) -> "LoaderRegistry":
        """Declare the pairs served at ``{base_url}/locales/{language}/{namespace}``.

        Args:
            client: HTTP client used for every fetch.
            base_url: Origin serving the bundles.
            languages: Languages to register.
            namespaces: Namespaces to register for every language.

        Returns:
            Populated LoaderRegistry.
        """
        registry = cls()
        root = base_url.rstrip("/")
        namespaces = list(namespaces)
        for language in languages:
            for namespace in namespaces:
                url = f"{root}/locales/{quote(language, safe='')}/{quote(namespace, safe='')}"
                registry.register(language, namespace, _http_loader(client, url))
        return registry


class ResourceBackend(ABC):
    """Asynchronous source of translation tables."""

    @abstractmethod
    async def load(self, language: str, namespace: str) -> TranslationTable:
        """Load the table for a (language, namespace) pair.

        Raises:
            ResourceNotFound: If no bundle exists for the pair.
        """
        pass


class RegistryBackend(ResourceBackend):
    """Backend resolving bundles through a LoaderRegistry."""

    def __init__(self, registry: LoaderRegistry):
        self.registry = registry

    async def load(self, language: str, namespace: str) -> TranslationTable:
        loader = self.registry.get(language, namespace)
        if loader is None:
            raise ResourceNotFound(language, namespace, "not registered")

        try:
            data = await loader()
        except httpx.HTTPStatusError as e:
            raise ResourceNotFound(
                language, namespace, f"HTTP {e.response.status_code}"
            ) from e
        except (OSError, ValueError, httpx.HTTPError) as e:
            raise ResourceNotFound(language, namespace, str(e)) from e

        table = TranslationTable.from_mapping(language, namespace, data)
        logger.info(
            "loaded_translations",
            language=language,
            namespace=namespace,
            key_count=len(table),
        )
        return table


class CoalescingBackend(ResourceBackend):
    """Shares one in-flight load per (language, namespace) pair.

    Concurrent callers for the same pair await the same task and receive
    the same table or the same exception. Nothing is cached once the task
    finishes.
    """

    def __init__(self, backend: ResourceBackend):
        self.backend = backend
        self._inflight: Dict[BundleKey, asyncio.Future] = {}

    async def load(self, language: str, namespace: str) -> TranslationTable:
        key = (language, namespace)
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self.backend.load(language, namespace))
            self._inflight[key] = task

            def _forget(done: asyncio.Future, key: BundleKey = key) -> None:
                if self._inflight.get(key) is done:
                    del self._inflight[key]

            task.add_done_callback(_forget)
        else:
            logger.debug("coalesced_load", language=language, namespace=namespace)

        # A cancelled caller must not cancel the load shared with others
        return await asyncio.shield(task)


class CachingBackend(ResourceBackend):
    """Keeps successfully loaded tables for the life of the process.

    Tables are immutable, so sharing them between request-scoped runtimes
    does not leak any session state. Failures are not cached.
    """

    def __init__(self, backend: ResourceBackend):
        self.backend = backend
        self.cache: Dict[BundleKey, TranslationTable] = {}

    async def load(self, language: str, namespace: str) -> TranslationTable:
        key = (language, namespace)
        table = self.cache.get(key)
        if table is None:
            table = await self.backend.load(language, namespace)
            self.cache[key] = table
        return table
