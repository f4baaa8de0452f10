"""
Email templates in Polish and English.

render() substitutes `{key}` placeholders. Values are HTML-escaped in the
HTML part except for keys ending in `_html`, which carry pre-built
fragments that were escaped by the caller.
"""
from dataclasses import dataclass
from html import escape
from typing import Any, Optional

SUPPORTED_LANGUAGES = ("pl", "en")
DEFAULT_LANGUAGE = "pl"


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: Optional[str] = None


def _layout(body: str) -> str:
    return f"""
        <html>
            <body style="font-family: Arial, sans-serif; background-color: #f4f4f4; padding: 20px;">
                <div style="max-width: 600px; margin: 0 auto; background-color: white; padding: 40px; border-radius: 8px;">
                    {body}
                </div>
            </body>
        </html>
        """


def _button(url_key: str, label: str) -> str:
    return (
        f'<p style="margin: 30px 0;"><a href="{{{url_key}}}" style="background-color: #007bff; '
        f'color: white; padding: 12px 30px; text-decoration: none; border-radius: 5px; '
        f'display: inline-block; font-weight: bold;">{label}</a></p>'
    )


TEMPLATES: dict[str, dict[str, dict[str, str]]] = {
    "new-job-matching": {
        "pl": {
            "subject": "Nowe zlecenie pasujące do Twoich umiejętności: {job_title}",
            "html": _layout(
                "<h2>{greeting}</h2>"
                "<p>Opublikowano zlecenie pasujące do Twoich umiejętności: <strong>{job_title}</strong>.</p>"
                + _button("job_url", "Zobacz zlecenie")
            ),
            "text": "{greeting}\n\nOpublikowano zlecenie pasujące do Twoich umiejętności: {job_title}\n{job_url}\n",
        },
        "en": {
            "subject": "New job matching your skills: {job_title}",
            "html": _layout(
                "<h2>{greeting}</h2>"
                "<p>A job matching your skills was just published: <strong>{job_title}</strong>.</p>"
                + _button("job_url", "View job")
            ),
            "text": "{greeting}\n\nA job matching your skills was just published: {job_title}\n{job_url}\n",
        },
    },
    "daily-digest": {
        "pl": {
            "subject": "Dzienne podsumowanie: {count} nowych zleceń dla Ciebie",
            "html": _layout(
                "<h2>{greeting}</h2>"
                "<p>Nowe zlecenia pasujące do Twoich umiejętności:</p>"
                "<ul>{jobs_html}</ul>"
            ),
            "text": "{greeting}\n\nNowe zlecenia pasujące do Twoich umiejętności:\n{jobs_text}\n",
        },
        "en": {
            "subject": "Daily digest: {count} new jobs for you",
            "html": _layout(
                "<h2>{greeting}</h2>"
                "<p>New jobs matching your skills:</p>"
                "<ul>{jobs_html}</ul>"
            ),
            "text": "{greeting}\n\nNew jobs matching your skills:\n{jobs_text}\n",
        },
    },
    "category-newsletter": {
        "pl": {
            "subject": "Nowe zlecenia w obserwowanych kategoriach ({count})",
            "html": _layout(
                "<h2>{greeting}</h2>"
                "<p>W ciągu ostatniej doby w obserwowanych kategoriach pojawiły się nowe zlecenia:</p>"
                "<ul>{jobs_html}</ul>"
            ),
            "text": "{greeting}\n\nNowe zlecenia w obserwowanych kategoriach:\n{jobs_text}\n",
        },
        "en": {
            "subject": "New jobs in categories you follow ({count})",
            "html": _layout(
                "<h2>{greeting}</h2>"
                "<p>New jobs were published in the last 24 hours in categories you follow:</p>"
                "<ul>{jobs_html}</ul>"
            ),
            "text": "{greeting}\n\nNew jobs in categories you follow:\n{jobs_text}\n",
        },
    },
    "new-application": {
        "pl": {
            "subject": "Nowa aplikacja do zlecenia: {job_title}",
            "html": _layout(
                "<h2>{greeting}</h2>"
                "<p><strong>{applicant_name}</strong> aplikuje do Twojego zlecenia <strong>{job_title}</strong>.</p>"
                + _button("job_url", "Zobacz aplikacje")
            ),
            "text": "{greeting}\n\n{applicant_name} aplikuje do Twojego zlecenia {job_title}.\n{job_url}\n",
        },
        "en": {
            "subject": "New application to your job: {job_title}",
            "html": _layout(
                "<h2>{greeting}</h2>"
                "<p><strong>{applicant_name}</strong> applied to your job <strong>{job_title}</strong>.</p>"
                + _button("job_url", "View applications")
            ),
            "text": "{greeting}\n\n{applicant_name} applied to your job {job_title}.\n{job_url}\n",
        },
    },
    "job-rejected": {
        "pl": {
            "subject": "Zlecenie wymaga poprawek: {job_title}",
            "html": _layout(
                "<h2>{greeting}</h2>"
                "<p>Twoje zlecenie <strong>{job_title}</strong> nie zostało zaakceptowane.</p>"
                "<p>Powód: {reason}</p>"
                + _button("edit_url", "Edytuj zlecenie")
            ),
            "text": "{greeting}\n\nTwoje zlecenie {job_title} nie zostało zaakceptowane.\nPowód: {reason}\n{edit_url}\n",
        },
        "en": {
            "subject": "Your job needs changes: {job_title}",
            "html": _layout(
                "<h2>{greeting}</h2>"
                "<p>Your job <strong>{job_title}</strong> was not approved.</p>"
                "<p>Reason: {reason}</p>"
                + _button("edit_url", "Edit job")
            ),
            "text": "{greeting}\n\nYour job {job_title} was not approved.\nReason: {reason}\n{edit_url}\n",
        },
    },
    "proposal-invitation": {
        "pl": {
            "subject": "Przygotowaliśmy dla Ciebie ogłoszenie: {offer_title}",
            "html": _layout(
                "<h2>Dzień dobry!</h2>"
                "<p>Przygotowaliśmy ogłoszenie <strong>{offer_title}</strong>. Możesz je obejrzeć przed decyzją.</p>"
                + _button("preview_url", "Zobacz ogłoszenie")
                + _button("accept_url", "Akceptuję i publikuję")
                + '<p><a href="{reject_url}">Nie, dziękuję</a></p>'
            ),
            "text": (
                "Dzień dobry!\n\nPrzygotowaliśmy ogłoszenie {offer_title}.\n"
                "Podgląd: {preview_url}\nAkceptuj: {accept_url}\nOdrzuć: {reject_url}\n"
            ),
        },
        "en": {
            "subject": "We prepared a job listing for you: {offer_title}",
            "html": _layout(
                "<h2>Hello!</h2>"
                "<p>We prepared the listing <strong>{offer_title}</strong>. You can preview it before deciding.</p>"
                + _button("preview_url", "Preview listing")
                + _button("accept_url", "Accept and publish")
                + '<p><a href="{reject_url}">No, thank you</a></p>'
            ),
            "text": (
                "Hello!\n\nWe prepared the listing {offer_title}.\n"
                "Preview: {preview_url}\nAccept: {accept_url}\nDecline: {reject_url}\n"
            ),
        },
    },
    "proposal-credentials": {
        "pl": {
            "subject": "Dane logowania do Twojego konta",
            "html": _layout(
                "<h2>Twoje konto jest gotowe</h2>"
                "<p>Login: <strong>{email}</strong></p>"
                "<p>Hasło: <code>{password}</code></p>"
                "<p>Po zalogowaniu zmień hasło.</p>"
                + _button("login_url", "Zaloguj się")
            ),
            "text": "Twoje konto jest gotowe.\n\nLogin: {email}\nHasło: {password}\n\nZaloguj się: {login_url}\n",
        },
        "en": {
            "subject": "Your login details",
            "html": _layout(
                "<h2>Your account is ready</h2>"
                "<p>Login: <strong>{email}</strong></p>"
                "<p>Password: <code>{password}</code></p>"
                "<p>Please change your password after logging in.</p>"
                + _button("login_url", "Log in")
            ),
            "text": "Your account is ready.\n\nLogin: {email}\nPassword: {password}\n\nLog in: {login_url}\n",
        },
    },
    "welcome": {
        "pl": {
            "subject": "Witamy na platformie!",
            "html": _layout(
                "<h2>{greeting}</h2>"
                "<p>Cieszymy się, że jesteś z nami. Twoje ogłoszenie jest już widoczne dla wykonawców.</p>"
                + _button("login_url", "Przejdź do konta")
            ),
            "text": "{greeting}\n\nCieszymy się, że jesteś z nami.\n{login_url}\n",
        },
        "en": {
            "subject": "Welcome aboard!",
            "html": _layout(
                "<h2>{greeting}</h2>"
                "<p>We are glad to have you. Your listing is now visible to freelancers.</p>"
                + _button("login_url", "Go to your account")
            ),
            "text": "{greeting}\n\nWe are glad to have you.\n{login_url}\n",
        },
    },
}


def normalize_language(lang: Optional[str]) -> str:
    """Map a user or request language to a supported template language."""
    if lang and lang.lower() in SUPPORTED_LANGUAGES:
        return lang.lower()
    return DEFAULT_LANGUAGE


def _greeting(name: Optional[str], lang: str) -> str:
    if lang == "en":
        return f"Hi {name}!" if name else "Hi!"
    return f"Cześć {name}!" if name else "Cześć!"


def render(template_name: str, lang: Optional[str], variables: dict[str, Any]) -> RenderedEmail:
    """
    Render a template for the given language.

    Raises:
        KeyError: Unknown template or a placeholder missing from `variables`
    """
    lang = normalize_language(lang)
    template = TEMPLATES[template_name][lang]

    values = {key: "" if value is None else str(value) for key, value in variables.items()}
    values.setdefault("greeting", _greeting(variables.get("name"), lang))

    html_values = {
        key: value if key.endswith("_html") else escape(value)
        for key, value in values.items()
    }
    text_values = {key: value for key, value in values.items() if not key.endswith("_html")}

    return RenderedEmail(
        subject=template["subject"].format_map(text_values),
        html=template["html"].format_map(html_values),
        text=template["text"].format_map(text_values),
    )
