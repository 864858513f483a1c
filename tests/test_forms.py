import pathlib
import sys

import aiosmtplib
import pytest
from fastapi.testclient import TestClient

# Ensure repo root on sys.path for direct module imports when running tests locally.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from aspire_api.cache import CACHE_STATUS_HEADER
from aspire_api.main import create_app


class _FailingMailer:
    enabled = True

    async def send(self, *, to, subject, text, html=None):
        raise aiosmtplib.SMTPException("relay down")


CONTACT = {"name": "Ada", "email": "ada@example.com", "message": "I would like a quote."}


def test_contact_submission_notifies_recipient(client, mailer):
    response = client.post("/api/contact/submit", json=CONTACT)

    assert response.status_code == 201
    assert response.json()["success"] is True
    assert len(mailer.sent) == 1
    assert mailer.sent[0]["to"] == "admin@aspirearchitecture.com"
    assert "ada@example.com" in mailer.sent[0]["text"]


def test_contact_submission_survives_mail_failure(app_config):
    with TestClient(create_app(app_config, mailer=_FailingMailer())) as failing_client:
        response = failing_client.post("/api/contact/submit", json=CONTACT)

    assert response.status_code == 201


@pytest.mark.parametrize(
    "payload",
    [
        {**CONTACT, "name": "A"},
        {**CONTACT, "email": "not-an-email"},
        {**CONTACT, "message": "Hi"},
        {"name": "Ada"},
    ],
)
def test_contact_submission_validation(client, mailer, payload):
    assert client.post("/api/contact/submit", json=payload).status_code == 400
    assert mailer.sent == []


def test_contact_admin_workflow(client, admin_headers):
    submission_id = client.post("/api/contact/submit", json=CONTACT).json()["data"]["id"]

    updated = client.put(
        f"/api/contact/submissions/{submission_id}/status",
        json={"status": "replied"},
        headers=admin_headers,
    )
    invalid = client.put(
        f"/api/contact/submissions/{submission_id}/status",
        json={"status": "lost"},
        headers=admin_headers,
    )
    stats = client.get("/api/contact/submissions/stats", headers=admin_headers).json()["data"]

    assert updated.json()["data"]["status"] == "replied"
    assert invalid.status_code == 400
    assert stats == {"total": 1, "new": 0, "read": 0, "replied": 1}
    assert client.get("/api/contact/submissions").status_code == 401


def test_contact_info_cache_is_invalidated_by_info_writes(client, admin_headers):
    seeded = client.get("/api/contact/info").json()["data"]
    assert [entry["type"] for entry in seeded] == ["address", "phone", "email"]
    assert client.get("/api/contact/info").headers[CACHE_STATUS_HEADER] == "HIT"

    created = client.post(
        "/api/contact/info",
        json={"type": "hours", "title": "Opening hours", "value": "9-5", "displayOrder": 4},
        headers=admin_headers,
    )
    refreshed = client.get("/api/contact/info")

    assert created.status_code == 201
    assert refreshed.headers[CACHE_STATUS_HEADER] == "MISS"
    assert refreshed.json()["data"][-1]["title"] == "Opening hours"


def test_disabled_notifications_skip_email(client, admin_headers, mailer):
    settings = client.get("/api/contact/email-settings", headers=admin_headers).json()["data"]
    client.put(
        f"/api/contact/email-settings/{settings['id']}",
        json={"enabled": False},
        headers=admin_headers,
    )

    client.post("/api/contact/submit", json=CONTACT)

    assert mailer.sent == []


def test_newsletter_subscription_flow(client, admin_headers):
    created = client.post("/api/newsletter/subscribe", json={"email": "Reader@Example.com"})
    duplicate = client.post("/api/newsletter/subscribe", json={"email": "reader@example.com"})
    invalid = client.post("/api/newsletter/subscribe", json={"email": "reader"})

    assert created.status_code == 201
    assert duplicate.status_code == 409
    assert invalid.status_code == 400

    subscribers = client.get("/api/newsletter/subscribers", headers=admin_headers).json()
    assert subscribers["count"] == 1
    assert subscribers["data"][0]["email"] == "reader@example.com"

    assert client.delete("/api/newsletter/unsubscribe/reader@example.com").status_code == 200
    assert client.delete("/api/newsletter/unsubscribe/reader@example.com").status_code == 404


def test_membership_application(client, admin_headers):
    response = client.post(
        "/api/get-involved/membership",
        json={
            "fullName": "Grace Hopper",
            "email": "grace@example.com",
            "membershipType": "professional",
            "interests": ["urbanism", "heritage"],
        },
    )
    listing = client.get("/api/get-involved/admin/membership", headers=admin_headers).json()

    assert response.status_code == 201
    assert listing["data"][0]["fullName"] == "Grace Hopper"
    assert listing["data"][0]["interests"] == ["urbanism", "heritage"]
    assert listing["data"][0]["status"] == "pending"


def test_submission_validation(client):
    bad_email = client.post(
        "/api/get-involved/feedback",
        json={"fullName": "X", "email": "nope", "category": "site", "message": "ok"},
    )
    missing = client.post("/api/get-involved/donate", json={"fullName": "X"})

    assert bad_email.status_code == 400
    assert missing.status_code == 422


def test_story_changes_invalidate_story_listing(client, admin_headers):
    stories = client.get("/api/get-involved/stories").json()["data"]
    assert len(stories) == 2
    assert client.get("/api/get-involved/stories").headers[CACHE_STATUS_HEADER] == "HIT"

    created = client.post(
        "/api/get-involved/admin/stories",
        json={
            "authorName": "Lin",
            "storyTitle": "Found my studio",
            "storyContent": "Met my partners at a workshop.",
        },
        headers=admin_headers,
    )
    refreshed = client.get("/api/get-involved/stories")

    assert created.status_code == 201
    assert refreshed.headers[CACHE_STATUS_HEADER] == "MISS"
    assert len(refreshed.json()["data"]) == 3
