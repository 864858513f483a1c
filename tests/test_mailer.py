import pathlib
import sys

import pytest

# Ensure repo root on sys.path for direct module imports when running tests locally.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from aspire_api import mailer as mailer_module
from aspire_api.mailer import Mailer


class _SendRecorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, message, **kwargs):
        self.calls.append((message, kwargs))
        return {}, "OK"


@pytest.mark.asyncio
async def test_send_delivers_through_smtp_relay(monkeypatch):
    recorder = _SendRecorder()
    monkeypatch.setattr(mailer_module.aiosmtplib, "send", recorder)
    mailer = Mailer(host="smtp.example.com", port=2525, username="bot", password="pw")

    sent = await mailer.send(to="admin@example.com", subject="Hi", text="Body", html="<p>Body</p>")

    message, kwargs = recorder.calls[0]
    assert sent is True
    assert message["To"] == "admin@example.com"
    assert message["Subject"] == "Hi"
    assert kwargs["hostname"] == "smtp.example.com"
    assert kwargs["port"] == 2525
    assert kwargs["username"] == "bot"
    assert kwargs["start_tls"] is True


@pytest.mark.asyncio
async def test_send_without_host_is_skipped(monkeypatch):
    recorder = _SendRecorder()
    monkeypatch.setattr(mailer_module.aiosmtplib, "send", recorder)

    sent = await Mailer(host="").send(to="admin@example.com", subject="Hi", text="Body")

    assert sent is False
    assert recorder.calls == []


@pytest.mark.asyncio
async def test_anonymous_relay_sends_no_credentials(monkeypatch):
    recorder = _SendRecorder()
    monkeypatch.setattr(mailer_module.aiosmtplib, "send", recorder)

    await Mailer(host="localhost", use_tls=False).send(to="a@example.com", subject="s", text="t")

    _, kwargs = recorder.calls[0]
    assert kwargs["username"] is None
    assert kwargs["password"] is None
    assert kwargs["start_tls"] is False
