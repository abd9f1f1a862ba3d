# =============================================================================
# lib/email_templates.py - Transactional Email Templates
# =============================================================================
# Templates are keyed by name; an EmailJob names the template and carries
# the data used to fill it in.
# =============================================================================

from dataclasses import dataclass
from html import escape, unescape
from string import Template
from typing import Any


class UnknownTemplateError(ValueError):
    """Raised when a job references a template that doesn't exist."""


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    html: str


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str


TEMPLATES: dict[str, EmailTemplate] = {
    "welcome": EmailTemplate(
        subject="Welcome to $app_name",
        html=(
            "<h1>Welcome, $name!</h1>"
            "<p>Your $app_name account is ready. Start your first campaign today.</p>"
        ),
    ),
    "campaign_created": EmailTemplate(
        subject="Your campaign \"$title\" was created",
        html=(
            "<h1>$title</h1>"
            "<p>Your campaign has been created with a goal of $currency $goal_amount.</p>"
            "<p>Campaign ID: $campaign_id</p>"
        ),
    ),
    "donation_initialized": EmailTemplate(
        subject="Complete your donation to \"$title\"",
        html=(
            "<p>Thanks for supporting <strong>$title</strong>.</p>"
            "<p>Finish your payment here: <a href=\"$authorization_url\">$authorization_url</a></p>"
        ),
    ),
}


def render_template(name: str, data: dict[str, Any], defaults: dict[str, Any] | None = None) -> RenderedEmail:
    """
    Render a template by name.

    Values are normalized to plain text first, since request data arrives
    already entity-escaped, then HTML-escaped once in the body. Placeholders
    with no value are left as-is rather than failing the job.

    Raises:
        UnknownTemplateError: If name is not in TEMPLATES
    """
    template = TEMPLATES.get(name)
    if template is None:
        raise UnknownTemplateError(f"Unknown email template: {name}")

    values = {key: unescape(str(value)) for key, value in {**(defaults or {}), **data}.items()}
    return RenderedEmail(
        subject=Template(template.subject).safe_substitute(values),
        html=Template(template.html).safe_substitute({key: escape(value) for key, value in values.items()}),
    )
