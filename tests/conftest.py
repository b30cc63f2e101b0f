from __future__ import annotations

import datetime as dt
import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so `import receiptscan...` works without an install
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from receiptscan.core.config import settings  # noqa: E402


TODAY = dt.date(2024, 6, 1)


@pytest.fixture
def today() -> dt.date:
    return TODAY


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep operator credentials and preferences from the host env out of tests."""
    monkeypatch.setattr(settings, "OCR_ENGINE", None)
    monkeypatch.setattr(settings, "GOOGLE_VISION_API_KEY", None)
    monkeypatch.setattr(settings, "GEMINI_API_KEY", None)
    monkeypatch.setattr(settings, "AWS_ACCESS_KEY_ID", None)
    monkeypatch.setattr(settings, "AWS_SECRET_ACCESS_KEY", None)
    monkeypatch.setattr(settings, "SENTRY_DSN", None)
    yield
