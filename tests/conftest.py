"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import uploaded_life...' works,
and provides the recording fakes and dataset fixtures shared by the tests.
"""
import json
import sys
from pathlib import Path

import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from uploaded_life.config.settings import reset_settings
from uploaded_life.errors import TransportError


class RecordingModal:
    """Modal surface that records open/close calls in order."""

    def __init__(self, events=None):
        self.events = events if events is not None else []

    def open(self, message):
        self.events.append(("open", message))

    def close(self):
        self.events.append(("close",))


class RecordingMount:
    """Mount point that keeps every rendered text."""

    def __init__(self):
        self.rendered = []

    def render(self, text):
        self.rendered.append(text)


class FakeLoader:
    """
    In-memory content loader.

    Args:
        name: Strategy name.
        files: Relative path -> text. Missing paths raise TransportError.
        available: Value returned by is_available().
    """

    def __init__(self, name, files=None, available=True):
        self.name = name
        self.files = dict(files or {})
        self.available = available
        self.calls = []

    def is_available(self, path):
        return self.available

    async def load_text(self, path):
        self.calls.append(path)
        if path not in self.files:
            raise TransportError(f"{self.name}: {path} not found", transport=self.name, path=path)
        return self.files[path]


SAMPLE_LIBRARY = {
    "scenarios": [
        {
            "id": "a1r7",
            "type": "static",
            "text": "Welcome to Alex’s world.",
            "config": {"choices": [{"label": "Go", "next": "pick-job"}]},
        },
        {
            "id": "pick-job",
            "type": "jobSelection",
            "config": {"jobGroup": "first-month-a", "next": "RANDOM"},
        },
        {
            "id": "starter",
            "type": "hobbyStarter",
            "config": {"dataSource": "hobbyOffers", "next": "RANDOM"},
        },
    ],
    "jobs": [
        {"group": "first-month-a", "label": "Cashier", "effect": "+$1,800/mo"},
        {"group": "first-month-a", "label": "Courier", "effect": "+$2,000/mo"},
        {"group": "first-month-b", "label": "Tutor", "effect": "+$1,600/mo"},
        {"group": "first-month-b", "label": "Cook", "effect": "+$2,100/mo"},
    ],
    "incidentEvents": [
        {"story": "Your phone screen cracks.", "moneyMin": -120, "moneyMax": -60},
    ],
    "goodEvents": [
        {"id": "bonus", "text": "You get a small bonus.", "providers": "Employer"},
        {"id": "refund", "text": "A tax refund arrives."},
    ],
    "badEvents": [
        {"id": "fine", "text": "You get a parking ticket.", "moneyMin": -80, "moneyMax": -40},
    ],
    "hobbyOffers": [
        {"id": "gym", "text": "Gym membership.", "provider": "FitHub", "requiresId": "true"},
        {"id": "chess", "text": "Chess club.", "provider": "Rook & Co"},
    ],
}


@pytest.fixture(autouse=True)
def _reset_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def sample_library():
    return json.loads(json.dumps(SAMPLE_LIBRARY))


@pytest.fixture
def library_json_text(sample_library):
    return json.dumps(sample_library)


@pytest.fixture
def static_root(tmp_path, library_json_text):
    """A static root holding Resources/library.json."""
    resources = tmp_path / "Resources"
    resources.mkdir()
    (resources / "library.json").write_text(library_json_text, encoding="utf-8")
    return tmp_path
