"""
Tests for notification formatting and the email/webhook subscribers.
"""

from datetime import datetime

import pytest
import requests

from domain_watch.change_monitor.models import ChangeAction, ChangeEvent, ChangeKind
from domain_watch.config import SmtpConfig, WebhookConfig
from domain_watch.notifications import subscribers as subscribers_module
from domain_watch.notifications.formatters import change_to_notification
from domain_watch.notifications.models import NotificationSeverity
from domain_watch.notifications.subscribers import EmailSubscriber, WebhookSubscriber


def _change(snapshot_factory, kind=ChangeKind.SPF, old="v=spf1 ~all", new="v=spf1 -all"):
    field_name = kind.snapshot_field.value
    previous = snapshot_factory(**{field_name: old})
    return ChangeEvent(
        kind=kind,
        action=ChangeAction.CHANGE,
        timestamp=datetime(2025, 1, 15, 10, 30, 0),
        snapshot=previous.model_copy(update={field_name: new}),
        previous=previous,
    )


class TestFormatter:
    """ChangeEvent -> Notification."""

    def test_spf_change(self, snapshot_factory):
        notification = change_to_notification(_change(snapshot_factory))

        assert notification.subject == "example.com: SPF record changed"
        assert notification.severity == NotificationSeverity.WARNING
        assert "Old Value: v=spf1 ~all" in notification.body
        assert "New Value: v=spf1 -all" in notification.body
        assert notification.tags == ["UPDATE_SPF", "ACTION_CHANGE"]
        assert notification.domain == "example.com"
        assert notification.details["old_value"] == "v=spf1 ~all"

    def test_nameserver_change_is_critical(self, snapshot_factory):
        event = _change(snapshot_factory, ChangeKind.NAMESERVERS, "a.ns, b.ns", "evil.ns")

        notification = change_to_notification(event)

        assert notification.severity == NotificationSeverity.CRITICAL
        assert notification.subject == "example.com: Nameservers changed"

    def test_every_kind_has_a_rendering(self, snapshot_factory):
        for kind in ChangeKind:
            assert change_to_notification(_change(snapshot_factory, kind, "a", "b")).subject

    def test_empty_values_render_as_none(self, snapshot_factory):
        event = _change(snapshot_factory, ChangeKind.DMARC, "v=DMARC1; p=none", "")

        assert "New Value: (none)" in change_to_notification(event).body

    def test_insert_is_info(self, snapshot_factory):
        event = ChangeEvent(
            kind=ChangeKind.SPF,
            action=ChangeAction.INSERT,
            snapshot=snapshot_factory(spf="v=spf1 ~all"),
        )

        notification = change_to_notification(event)

        assert notification.severity == NotificationSeverity.INFO
        assert "Old Value: (none)" in notification.body

    def test_webhook_payload(self, snapshot_factory):
        data = change_to_notification(_change(snapshot_factory)).to_payload()

        assert data["severity"] == "WARNING"
        assert data["detected_at"] == "2025-01-15T10:30:00"
        assert data["details"]["new_value"] == "v=spf1 -all"


class FakeSMTP:
    """Captures what EmailSubscriber does with smtplib.SMTP."""

    instances = []

    def __init__(self, host, port):
        self.host = host
        self.port = port
        self.started_tls = False
        self.login_args = None
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        self.login_args = (user, password)

    def send_message(self, msg):
        self.sent.append(msg)


class TestEmailSubscriber:
    """SMTP delivery."""

    @pytest.fixture(autouse=True)
    def fake_smtp(self, monkeypatch):
        FakeSMTP.instances = []
        monkeypatch.setattr(subscribers_module.smtplib, "SMTP", FakeSMTP)

    def _config(self, **overrides) -> SmtpConfig:
        values = dict(
            host="smtp.example.com",
            port=2525,
            user="watch",
            password="secret",
            from_email="watch@example.com",
            to_email="ops@example.com, noc@example.com",
            use_tls=True,
        )
        values.update(overrides)
        return SmtpConfig(**values)

    def test_sends_multipart_mail(self, snapshot_factory):
        EmailSubscriber(self._config()).notify(_change(snapshot_factory))

        server = FakeSMTP.instances[0]
        assert (server.host, server.port) == ("smtp.example.com", 2525)
        assert server.started_tls is True
        assert server.login_args == ("watch", "secret")

        msg = server.sent[0]
        assert msg["Subject"] == "[WARNING] example.com: SPF record changed"
        assert msg["To"] == "ops@example.com, noc@example.com"
        assert msg.get_content_type() == "multipart/alternative"
        html = msg.get_payload()[1].get_payload(decode=True).decode()
        assert "v=spf1 -all" in html

    def test_no_login_without_user(self, snapshot_factory):
        EmailSubscriber(self._config(user="", use_tls=False)).notify(_change(snapshot_factory))

        server = FakeSMTP.instances[0]
        assert server.login_args is None
        assert server.started_tls is False

    def test_disabled_without_recipients(self, snapshot_factory):
        subscriber = EmailSubscriber(self._config(to_email=""))

        assert subscriber.is_enabled() is False
        subscriber.notify(_change(snapshot_factory))
        assert FakeSMTP.instances == []

    def test_smtp_errors_propagate(self, snapshot_factory, monkeypatch):
        def refuse(host, port):
            raise ConnectionRefusedError("connection refused")

        monkeypatch.setattr(subscribers_module.smtplib, "SMTP", refuse)

        with pytest.raises(ConnectionRefusedError):
            EmailSubscriber(self._config()).notify(_change(snapshot_factory))


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    def __init__(self, status_code=200):
        self.status_code = status_code
        self.posts = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.posts.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return FakeResponse(self.status_code)


class TestWebhookSubscriber:
    """JSON POST delivery."""

    def test_posts_notification(self, snapshot_factory):
        session = FakeSession()
        config = WebhookConfig(url="https://hooks.example.com/dns", token="t0k3n", timeout=3.0)

        WebhookSubscriber(config, session=session).notify(_change(snapshot_factory))

        post = session.posts[0]
        assert post["url"] == "https://hooks.example.com/dns"
        assert post["headers"]["Authorization"] == "Bearer t0k3n"
        assert post["timeout"] == 3.0
        assert post["json"]["tags"] == ["UPDATE_SPF", "ACTION_CHANGE"]
        assert post["json"]["domain"] == "example.com"

    def test_no_token_no_auth_header(self, snapshot_factory):
        session = FakeSession()

        WebhookSubscriber(WebhookConfig(url="https://hooks.example.com"), session=session).notify(
            _change(snapshot_factory)
        )

        assert "Authorization" not in session.posts[0]["headers"]

    def test_http_error_propagates(self, snapshot_factory):
        subscriber = WebhookSubscriber(
            WebhookConfig(url="https://hooks.example.com"), session=FakeSession(status_code=502)
        )

        with pytest.raises(requests.HTTPError):
            subscriber.notify(_change(snapshot_factory))
