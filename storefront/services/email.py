"""
Email service for sending transactional emails
"""

import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Any, Dict, Optional, Tuple
from jinja2 import Template
import logging

from storefront.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


ORDER_PLACED_TEMPLATE = """
<html>
    <body>
        <h2>Order Confirmed</h2>
        <p>Hi {{ username }},</p>
        <p>Your order <strong>{{ order_number }}</strong> has been placed.</p>
        <p>Total Amount: <strong>{{ total_amount }}</strong></p>
        <p>Status: <strong>{{ status }}</strong></p>
        <p>You can follow your order from your account.</p>
    </body>
</html>
"""

ORDER_PAID_TEMPLATE = """
<html>
    <body>
        <h2>Payment Received</h2>
        <p>Hi {{ username }},</p>
        <p>We received the payment of <strong>{{ total_amount }}</strong>
        for order <strong>{{ order_number }}</strong>.</p>
        <p>We will let you know when it ships.</p>
    </body>
</html>
"""

ORDER_STATUS_TEMPLATE = """
<html>
    <body>
        <h2>Order Update</h2>
        <p>Hi {{ username }},</p>
        <p>Order <strong>{{ order_number }}</strong> is now <strong>{{ status }}</strong>.</p>
        {% if tracking_number %}<p>Tracking number: {{ tracking_number }}</p>{% endif %}
    </body>
</html>
"""

WELCOME_TEMPLATE = """
<html>
    <body>
        <h2>Welcome, {{ username }}!</h2>
        <p>Your account has been created. Start shopping today.</p>
    </body>
</html>
"""

EMAIL_TEMPLATES: Dict[str, Tuple[str, str]] = {
    "order_placed": ("Order Confirmation - {order_number}", ORDER_PLACED_TEMPLATE),
    "order_paid": ("Payment Received - {order_number}", ORDER_PAID_TEMPLATE),
    "order_status_changed": ("Order Update - {order_number}", ORDER_STATUS_TEMPLATE),
    "user_registered": ("Welcome to {app_name}", WELCOME_TEMPLATE),
}


class EmailService:
    """Email service using SMTP"""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.enabled = settings.EMAILS_ENABLED
        self.app_name = settings.APP_NAME
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.smtp_use_tls = settings.SMTP_USE_TLS
        self.from_email = settings.SMTP_FROM_EMAIL
        self.from_name = settings.SMTP_FROM_NAME

    def render(self, event: str, context: Dict[str, Any]) -> Tuple[str, str]:
        """
        Build subject and HTML body for a notification event

        Raises:
            KeyError: If no template exists for the event
        """
        subject_format, template = EMAIL_TEMPLATES[event]
        values = {"app_name": self.app_name, **context}
        subject = subject_format.format_map(_Defaulting(values))
        return subject, Template(template).render(**values)

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send email synchronously

        Returns:
            True if sent successfully
        """
        if not self.enabled:
            logger.info(f"Email delivery disabled, skipping '{subject}' to {to_email}")
            return False

        # Create message
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f"{self.from_name} <{self.from_email}>"
        msg['To'] = to_email

        # Add plain text part
        if text_content:
            msg.attach(MIMEText(text_content, 'plain'))

        # Add HTML part
        msg.attach(MIMEText(html_content, 'html'))

        with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
            if self.smtp_use_tls:
                server.starttls()
            if self.smtp_user:
                server.login(self.smtp_user, self.smtp_password)
            server.send_message(msg)

        logger.info(f"Email '{subject}' sent to {to_email}")
        return True

    def send_event_email(self, to_email: str, event: str, context: Dict[str, Any]) -> bool:
        subject, html_content = self.render(event, context)
        return self.send_email(to_email, subject, html_content)


class _Defaulting(dict):
    def __missing__(self, key):
        return ""
