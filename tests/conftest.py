import pathlib
import sys

import pytest
import yaml
from fastapi.testclient import TestClient

# Ensure repo root on sys.path for direct module imports when running tests locally.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from aspire_api.config_loader import Config
from aspire_api.main import create_app

ADMIN_PASSWORD = "admin-pass"

_ENV_OVERRIDES = (
    "CONFIG_PATH",
    "PORT",
    "DATABASE_PATH",
    "JWT_SECRET",
    "ADMIN_PASSWORD",
    "BASE_URL",
    "SMTP_HOST",
    "CLOUDINARY_CLOUD_NAME",
    "CLOUDINARY_API_KEY",
    "CLOUDINARY_API_SECRET",
)


class FakeClock:
    """Manually advanced monotonic clock for cache expiry tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingMailer:
    enabled = True

    def __init__(self):
        self.sent = []

    async def send(self, *, to, subject, text, html=None):
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})
        return True


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "api": {
                    "database": {"path": str(tmp_path / "aspire-test.db")},
                    "auth": {
                        "jwt_secret": "test-secret",
                        "default_admin_password": ADMIN_PASSWORD,
                    },
                    "media": {
                        "base_url": "http://testserver/",
                        "upload_dir": str(tmp_path / "uploads"),
                        "max_upload_mb": 1,
                    },
                }
            }
        )
    )
    return Config(path)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def client(app_config, mailer):
    app = create_app(app_config, mailer=mailer)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client):
    response = client.post(
        "/api/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
