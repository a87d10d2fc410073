"""Feature-level fixtures for i18n system tests.

Provides a recording backend and client runtimes wired to it.
"""

import pytest

from infrastructure.i18n import (
    CookieJar,
    DetectionContext,
    ExecutionEnvironment,
    LanguageRuntime,
)
from tests.factories.i18n import RecordingBackend, make_detection_chain


@pytest.fixture
def recording_backend():
    """RecordingBackend serving ("fr", "common") and ("en", "common")."""
    return RecordingBackend(
        {
            ("fr", "common"): {"greeting": "Bonjour", "welcome_user": "Bon retour, {{name}}"},
            ("en", "common"): {"greeting": "Hello", "farewell": "Goodbye"},
        }
    )


@pytest.fixture
def detection_chain():
    return make_detection_chain()


@pytest.fixture
def make_runtime(detection_chain, recording_backend):
    """Factory for client runtimes over the recording backend."""

    def _make(cookie=None, runtime_preferences=(), explicit_tag=None, backend=None):
        jar = CookieJar(cookie)
        context = DetectionContext(
            environment=ExecutionEnvironment.CLIENT,
            explicit_tag=explicit_tag,
            cookies=jar,
            runtime_preferences=tuple(runtime_preferences),
        )
        return LanguageRuntime(
            detection_chain,
            backend or recording_backend,
            context,
            cookie_name="i18next",
        )

    return _make
