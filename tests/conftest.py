from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.rate_limiter import reset_rate_limiter_state
from app.forms.fields import FormKind
from app.forms.registry import build_registry
from app.main import create_app
from app.services.notification_service import Notification

# -----------------------------------------------------------------------------
# Doubles
# -----------------------------------------------------------------------------


class RecordingNotifier:
    """Captures notifications instead of sending them."""

    channel = "recording"

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.sent: List[Notification] = []

    async def deliver(self, notification: Notification) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append(notification)


# -----------------------------------------------------------------------------
# Settings & App Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    reset_rate_limiter_state()
    yield
    reset_rate_limiter_state()


@pytest.fixture()
def test_settings(tmp_path) -> Settings:
    """Settings isolated from any local .env, backed by a per-test SQLite file."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        DATABASE_URL=f"sqlite:///{tmp_path / 'intake.db'}",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        LOG_DIR=str(tmp_path / "logs"),
        NOTIFICATION_CHANNEL="none",
        SUBMISSION_RATE_LIMIT_PER_MINUTE=100,
    )


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def app(test_settings, notifier):
    return create_app(test_settings, notifier=notifier)


@pytest.fixture()
def client(app):
    """TestClient running the lifespan, so the database and handler exist."""
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def registry():
    return build_registry()


# -----------------------------------------------------------------------------
# Payloads
# -----------------------------------------------------------------------------


@pytest.fixture()
def contact_payload() -> Dict[str, str]:
    return {
        "name": "Asha Verma",
        "email": "asha@example.com",
        "message": "I would like to know more about your editing services.",
    }


@pytest.fixture()
def writer_payload() -> Dict[str, str]:
    return {
        "name": "Rohan Iyer",
        "email": "rohan@example.com",
        "phone": "9876543210",
        "education": "MA English Literature",
        "motivation": "I have written academic essays for five years.",
        "sample_link": "https://example.com/portfolio",
    }


@pytest.fixture()
def request_payload() -> Dict[str, str]:
    return {
        "name": "Meera Nair",
        "phone": "8123456789",
        "email": "meera@example.com",
        "address": "12 MG Road, Kochi",
        "topic": "Research proposal",
        "message": "Need a twenty page proposal on coastal erosion.",
        "pages": "20",
        "budget": "4500",
    }


@pytest.fixture()
def record_count(client):
    """Number of stored rows for a FormKind."""

    def _count(kind: FormKind) -> int:
        return client.app.state.submission_handler.store.count(kind)

    return _count
