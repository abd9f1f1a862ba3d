# =============================================================================
# tests/test_mailer.py - Email Provider and Template Tests
# =============================================================================

import json

import httpx
import pytest

from lib.email_templates import TEMPLATES, UnknownTemplateError, render_template
from lib.mailer import EmailDeliveryError, EmailRejectedError, EmailSender


def make_sender(handler) -> EmailSender:
    return EmailSender(
        api_url="https://mail.example.test/",
        api_key="key-123",
        sender="CampaignHub <noreply@example.test>",
        transport=httpx.MockTransport(handler),
    )


class TestEmailSender:
    """Tests for EmailSender.send."""

    def test_posts_message_with_idempotency_key(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "msg-9"})

        message_id = make_sender(handler).send("ada@example.com", "Hello", "<p>Hi</p>", idempotency_key="job-1")

        assert message_id == "msg-9"
        assert seen["url"] == "https://mail.example.test/emails"
        assert seen["headers"]["Authorization"] == "Bearer key-123"
        assert seen["headers"]["Idempotency-Key"] == "job-1"
        assert seen["body"] == {
            "from": "CampaignHub <noreply@example.test>",
            "to": ["ada@example.com"],
            "subject": "Hello",
            "html": "<p>Hi</p>",
        }

    @pytest.mark.parametrize("status", [429, 500, 503])
    def test_transient_status_is_delivery_error(self, status):
        sender = make_sender(lambda request: httpx.Response(status))

        with pytest.raises(EmailDeliveryError):
            sender.send("ada@example.com", "Hello", "<p>Hi</p>")

    def test_client_error_is_rejected(self):
        sender = make_sender(lambda request: httpx.Response(422, json={"message": "invalid to"}))

        with pytest.raises(EmailRejectedError):
            sender.send("not-an-address", "Hello", "<p>Hi</p>")

    def test_network_error_is_delivery_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(EmailDeliveryError):
            make_sender(handler).send("ada@example.com", "Hello", "<p>Hi</p>")


class TestRenderTemplate:
    """Tests for render_template."""

    def test_defaults_and_data(self):
        rendered = render_template("welcome", {"name": "Ada"}, defaults={"app_name": "CampaignHub"})

        assert rendered.subject == "Welcome to CampaignHub"
        assert "Welcome, Ada!" in rendered.html

    def test_html_values_are_escaped(self):
        rendered = render_template("campaign_created", {"title": "<script>x</script>", "goal_amount": 10})

        assert "<script>" not in rendered.html
        assert "&lt;script&gt;" in rendered.html
        assert rendered.subject == 'Your campaign "<script>x</script>" was created'

    @pytest.mark.parametrize("title", ["A<B", "A&lt;B"])
    def test_request_escaped_values_are_not_escaped_twice(self, title):
        rendered = render_template("campaign_created", {"title": title, "goal_amount": 10})

        assert "A&lt;B" in rendered.html
        assert "&amp;lt;" not in rendered.html
        assert rendered.subject == 'Your campaign "A<B" was created'

    def test_missing_values_are_left_in_place(self):
        rendered = render_template("donation_initialized", {"title": "Water"})

        assert "$authorization_url" in rendered.html

    def test_unknown_template(self):
        with pytest.raises(UnknownTemplateError):
            render_template("does_not_exist", {})

    def test_known_templates(self):
        assert set(TEMPLATES) == {"welcome", "campaign_created", "donation_initialized"}
