"""
Notification subscribers - deliver change events to external channels.
"""

import logging
import smtplib
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

import requests

from domain_watch.change_monitor.models import ChangeEvent
from domain_watch.config import SmtpConfig, WebhookConfig
from .formatters import change_to_notification
from .models import Notification

logger = logging.getLogger(__name__)


class NotificationSubscriber(ABC):
    """Base class for anything that wants to hear about changes."""

    @abstractmethod
    def notify(self, event: ChangeEvent) -> None:
        """
        Deliver a change event.

        Args:
            event: Event to deliver

        Raises:
            Exception: Any delivery failure; the dispatcher contains it
        """
        pass

    def is_enabled(self) -> bool:
        """Check if the subscriber is properly configured."""
        return True

    @property
    def name(self) -> str:
        return self.__class__.__name__


class EmailSubscriber(NotificationSubscriber):
    """
    Email subscriber using SMTP.

    Configuration comes from SmtpConfig (SMTP_HOST, SMTP_PORT, SMTP_USER,
    SMTP_PASSWORD, SMTP_FROM_EMAIL, SMTP_TO_EMAIL, SMTP_USE_TLS).
    """

    def __init__(self, config: SmtpConfig):
        self.config = config

        if self.is_enabled():
            logger.info(
                f"EmailSubscriber configured: {config.host}:{config.port} "
                f"-> {', '.join(config.recipients)}"
            )

    def is_enabled(self) -> bool:
        return self.config.is_enabled()

    def build_message(self, notification: Notification) -> MIMEMultipart:
        """Build the multipart text/HTML message."""
        msg = MIMEMultipart("alternative")
        msg["Subject"] = notification.email_subject
        msg["From"] = self.config.from_email
        msg["To"] = ", ".join(self.config.recipients)

        detected = notification.detected_at.strftime("%Y-%m-%d %H:%M:%S UTC")
        text = f"{notification.subject}\n\n{notification.body}\n\nDetected: {detected}\n"

        color = notification.severity.color
        rows = "".join(
            f'<tr><td style="padding: 6px; font-weight: bold;">{escape(label)}</td>'
            f'<td style="padding: 6px; font-family: monospace;">{escape(value)}</td></tr>'
            for label, value in (
                ("Domain", notification.domain),
                ("Record", notification.details.get("record") or ""),
                ("Old", notification.details.get("old_value") or "(none)"),
                ("New", notification.details.get("new_value") or "(none)"),
                ("Detected", detected),
            )
        )
        html = (
            '<html><body style="font-family: Arial, sans-serif;">'
            f'<h3 style="color: {color};">{escape(notification.email_subject)}</h3>'
            f'<table style="border-left: 4px solid {color}; border-collapse: collapse;">{rows}</table>'
            "</body></html>"
        )

        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))
        return msg

    def notify(self, event: ChangeEvent) -> None:
        if not self.is_enabled():
            logger.warning("Email subscriber not properly configured, skipping")
            return

        notification = change_to_notification(event)
        msg = self.build_message(notification)

        with smtplib.SMTP(self.config.host, self.config.port) as server:
            if self.config.use_tls:
                server.starttls()
            if self.config.user:
                server.login(self.config.user, self.config.password)
            server.send_message(msg)

        logger.info(f"Sent email notification: {notification.subject}")


class WebhookSubscriber(NotificationSubscriber):
    """
    Webhook subscriber.

    Sends the rendered notification as a JSON POST to WEBHOOK_URL, with an
    optional Bearer token from WEBHOOK_TOKEN.
    """

    def __init__(self, config: WebhookConfig, session: requests.Session = None):
        self.config = config
        self.session = session or requests.Session()

        if self.is_enabled():
            logger.info(f"WebhookSubscriber configured: {config.url}")

    def is_enabled(self) -> bool:
        return self.config.is_enabled()

    def notify(self, event: ChangeEvent) -> None:
        if not self.is_enabled():
            logger.warning("Webhook subscriber not properly configured, skipping")
            return

        notification = change_to_notification(event)

        headers = {
            "Content-Type": "application/json",
            "User-Agent": "Domain-Watch/1.0"
        }
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"

        response = self.session.post(
            self.config.url,
            json=notification.to_payload(),
            headers=headers,
            timeout=self.config.timeout
        )
        response.raise_for_status()

        logger.info(f"Sent webhook notification: {notification.subject}")
