import os
import sys
from pathlib import Path

import pytest
import sentry_sdk
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Disable outbound Sentry calls during tests
sentry_sdk.init = lambda *args, **kwargs: None  # type: ignore[assignment]
os.environ["SENTRY_DSN"] = ""
os.environ.pop("OPENAI_API_KEY", None)
test_data_dir = ROOT / "artifacts" / "test-data"
test_data_dir.mkdir(parents=True, exist_ok=True)
os.environ["DATA_DIR"] = str(test_data_dir)

from backend.dinver_ai import llm_intent  # noqa: E402
from backend.dinver_ai.main import app  # noqa: E402
from backend.dinver_ai.settings import settings  # noqa: E402


@pytest.fixture(scope="session")
def client() -> TestClient:
    return TestClient(app, base_url="http://api.testserver")


@pytest.fixture(autouse=True)
def offline_ai(monkeypatch):
    """No credentials and a closed router circuit unless a test opts in."""
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    monkeypatch.setattr(settings, "SENTRY_DSN", None)
    monkeypatch.setattr(settings, "AI_REDACT_CONTACT_FIELDS", True)
    monkeypatch.setattr(llm_intent, "_failure_count", 0)
    monkeypatch.setattr(llm_intent, "_disabled_until", 0.0)
    yield
