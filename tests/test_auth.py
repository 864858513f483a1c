import pathlib
import sys

import pytest

# Ensure repo root on sys.path for direct module imports when running tests locally.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from aspire_api.auth import TokenService
from aspire_api.passwords import hash_password, verify_password

ADMIN_PASSWORD = "admin-pass"


def test_password_hash_round_trip():
    encoded = hash_password("s3cret")

    assert encoded.startswith("$2b$12$")
    assert verify_password("s3cret", encoded)
    assert not verify_password("wrong", encoded)
    assert not verify_password("s3cret", "not-a-hash")


def test_token_service_rejects_foreign_and_expired_tokens():
    tokens = TokenService("secret-a")
    token = tokens.issue(7, "admin")

    assert tokens.decode(token)["sub"] == "7"
    assert TokenService("secret-b").decode(token) is None
    assert TokenService("secret-a", expire_hours=-1).decode(
        TokenService("secret-a", expire_hours=-1).issue(7, "admin")
    ) is None


def test_login_returns_token_for_seeded_admin(client):
    response = client.post(
        "/api/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD}
    )

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["user"]["username"] == "admin"
    assert body["token"]


@pytest.mark.parametrize(
    ("payload", "status"),
    [
        ({"username": "admin"}, 400),
        ({"username": "admin", "password": "nope"}, 401),
        ({"username": "ghost", "password": ADMIN_PASSWORD}, 401),
    ],
)
def test_login_failures(client, payload, status):
    assert client.post("/api/auth/login", json=payload).status_code == status


def test_verify_reports_token_validity(client, admin_headers):
    token = admin_headers["Authorization"].split(" ")[1]

    valid = client.post("/api/auth/verify", json={"token": token}).json()
    invalid = client.post("/api/auth/verify", json={"token": "garbage"}).json()

    assert valid["valid"] is True
    assert valid["user"]["username"] == "admin"
    assert invalid == {"valid": False, "error": "Invalid or expired token"}


def test_change_password(client, admin_headers):
    token = admin_headers["Authorization"].split(" ")[1]

    wrong = client.post(
        "/api/auth/change-password",
        json={"currentPassword": "bad", "newPassword": "next-pass", "token": token},
    )
    changed = client.post(
        "/api/auth/change-password",
        json={"currentPassword": ADMIN_PASSWORD, "newPassword": "next-pass", "token": token},
    )
    relogin = client.post(
        "/api/auth/login", json={"username": "admin", "password": "next-pass"}
    )

    assert wrong.status_code == 401
    assert changed.status_code == 200
    assert relogin.status_code == 200


@pytest.mark.parametrize(
    ("headers", "detail"),
    [
        ({}, "Authentication required"),
        ({"Authorization": "Token abc"}, "Invalid authorization format"),
        ({"Authorization": "Bearer abc"}, "Invalid or expired token"),
    ],
)
def test_admin_routes_require_a_valid_bearer_token(client, headers, detail):
    response = client.post("/api/media/photos", json={"title": "x"}, headers=headers)

    assert response.status_code == 401
    assert response.json()["detail"] == detail


def test_token_for_deleted_admin_is_rejected(client, app_config):
    token = TokenService(app_config.jwt_secret).issue(999, "ghost")

    response = client.get("/api/cache/stats", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid admin user"
