import sys
from pathlib import Path

# Ensure the application package root is on sys.path so importing application
# modules (e.g. `infrastructure.i18n`) works during pytest collection.
project_root = str(Path(__file__).resolve().parents[1])
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import pytest
from tests.factories.i18n import make_i18n_settings, make_locales_dir


@pytest.fixture
def locales_dir(tmp_path):
    """Temporary locales directory with en/fr common and event bundles."""
    return make_locales_dir(tmp_path)


@pytest.fixture
def i18n_settings(locales_dir):
    """I18nSettings pointing at the temporary locales directory."""
    return make_i18n_settings(locales_dir=str(locales_dir))
