"""
Tests for email templates and the email service.
"""
import pytest

from app.config import settings
from app.services.email import EmailService
from app.services.email_templates import TEMPLATES, normalize_language, render


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code


class FakeSendGrid:
    def __init__(self, status_code=202, error=None):
        self.status_code = status_code
        self.error = error
        self.sent = []

    def send(self, mail):
        if self.error:
            raise self.error
        self.sent.append(mail)
        return FakeResponse(self.status_code)


# ============================================================
# TEMPLATE TESTS
# ============================================================

def test_every_template_has_both_languages():
    for name, languages in TEMPLATES.items():
        assert set(languages) == {"pl", "en"}, name
        for parts in languages.values():
            assert set(parts) == {"subject", "html", "text"}


def test_render_escapes_values_in_html():
    rendered = render(
        "new-job-matching",
        "en",
        {"name": "Jan", "job_title": "<b>Logo</b> & more", "job_url": "https://example.com/jobs/1"},
    )

    assert rendered.subject == "New job matching your skills: <b>Logo</b> & more"
    assert "&lt;b&gt;Logo&lt;/b&gt; &amp; more" in rendered.html
    assert "<b>Logo</b> & more" in rendered.text
    assert "Hi Jan!" in rendered.text


def test_render_keeps_prebuilt_html_fragments():
    rendered = render(
        "daily-digest",
        "pl",
        {"name": None, "count": 1, "jobs_html": '<li><a href="x">Logo</a></li>', "jobs_text": "- Logo: x"},
    )

    assert '<li><a href="x">Logo</a></li>' in rendered.html
    assert "- Logo: x" in rendered.text
    assert "<li>" not in rendered.text
    assert rendered.text.startswith("Cześć!")


def test_unknown_language_falls_back_to_polish():
    assert normalize_language("de") == "pl"
    assert normalize_language(None) == "pl"
    assert normalize_language("EN") == "en"

    rendered = render("welcome", "de", {"name": "Ola", "login_url": "https://example.com/login"})
    assert rendered.subject == "Witamy na platformie!"


def test_missing_variable_raises():
    with pytest.raises(KeyError):
        render("job-rejected", "en", {"name": "Ola"})

    with pytest.raises(KeyError):
        render("no-such-template", "en", {})


# ============================================================
# EMAIL SERVICE TESTS
# ============================================================

@pytest.mark.asyncio
async def test_dev_mode_logs_envelope_only(monkeypatch, caplog):
    """Bodies are never logged in dev mode; they can contain credentials."""
    monkeypatch.setattr(settings, "email_mode", "dev")
    service = EmailService()

    with caplog.at_level("INFO", logger="app.services.email"):
        result = await service.send("a@example.com", "Your login details", "<p>Password: s3cret</p>", "Password: s3cret")

    assert result is True
    assert "Your login details" in caplog.text
    assert "s3cret" not in caplog.text


@pytest.mark.asyncio
async def test_prod_without_api_key_skips(monkeypatch):
    monkeypatch.setattr(settings, "email_mode", "prod")
    monkeypatch.setattr(settings, "sendgrid_api_key", None)
    service = EmailService()

    assert not service.is_configured()
    assert await service.send("a@example.com", "Hi", "<p>Hi</p>") is True


@pytest.mark.asyncio
async def test_prod_send_reports_delivery(monkeypatch):
    monkeypatch.setattr(settings, "email_mode", "prod")
    monkeypatch.setattr(settings, "sendgrid_api_key", "SG.test-key")
    service = EmailService()

    service.sendgrid_client = FakeSendGrid(status_code=202)
    assert await service.send("a@example.com", "Hi", "<p>Hi</p>", "Hi") is True
    assert len(service.sendgrid_client.sent) == 1

    service.sendgrid_client = FakeSendGrid(status_code=500)
    assert await service.send("a@example.com", "Hi", "<p>Hi</p>") is False

    service.sendgrid_client = FakeSendGrid(error=ConnectionError("SendGrid unreachable"))
    assert await service.send("a@example.com", "Hi", "<p>Hi</p>") is False
