"""Test data factories for deterministic test data generation."""

from tests.factories.i18n import (
    make_bundles,
    make_detection_chain,
    make_i18n_settings,
    make_locales_dir,
    make_supported_languages,
    make_translation_table,
    RecordingBackend,
)

__all__ = [
    "make_bundles",
    "make_detection_chain",
    "make_i18n_settings",
    "make_locales_dir",
    "make_supported_languages",
    "make_translation_table",
    "RecordingBackend",
]
