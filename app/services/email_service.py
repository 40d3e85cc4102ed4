# app/services/email_service.py
import logging
import smtplib
from email.message import EmailMessage
from typing import Any, Dict, List, Optional

from flask import render_template

from app.core.errors import UpstreamError

EMAIL_SUBJECTS = {
    'welcome': 'Welcome to Lost & Found Pet Network',
    'email_verification': 'Verify Your Email - Lost & Found Pet Network',
    'password_reset': 'Password Reset Request - Lost & Found Pet Network',
    'post_approved': 'Your Pet Post Has Been Approved - Lost & Found Pet Network',
    'post_edited': 'Your Pet Post Has Been Edited - Lost & Found Pet Network',
    'contact_request': 'Contact Request for Your Pet - Lost & Found Pet Network',
    'report_received': 'Report Received - Lost & Found Pet Network',
    'report_resolved': 'Report Resolved - Lost & Found Pet Network',
}


class EmailService:
    """
    Sends templated HTML mail through an SMTP relay.

    Templates live in app/templates/emails/<name>.html and are rendered with
    Flask's Jinja environment, so an app context is required.
    With `suppress_send` the message is built but only appended to
    `sent_messages` (used by the test suite and local development).
    """

    def __init__(self, host: str, port: int, username: Optional[str], password: Optional[str],
                 use_tls: bool, default_sender: str, suppress_send: bool = False, timeout: int = 30):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.default_sender = default_sender
        self.suppress_send = suppress_send
        self.timeout = timeout
        self.sent_messages: List[EmailMessage] = []

    def build_message(self, to: str, template: str, context: Dict[str, Any]) -> EmailMessage:
        if template not in EMAIL_SUBJECTS:
            raise ValueError(f"Email template '{template}' not found")

        html = render_template(f"emails/{template}.html", **context)
        message = EmailMessage()
        message['Subject'] = EMAIL_SUBJECTS[template]
        message['From'] = self.default_sender
        message['To'] = to
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html, subtype='html')
        return message

    def send(self, to: str, template: str, context: Dict[str, Any]):
        """Renders and delivers one email. Any failure is raised as UpstreamError (500)."""
        try:
            message = self.build_message(to, template, context)
            if self.suppress_send:
                self.sent_messages.append(message)
                logging.info(f"Email '{template}' to {to} captured (sending suppressed)")
                return

            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or '')
                smtp.send_message(message)
            logging.info(f"Email '{template}' sent to {to}")
        except Exception as e:
            logging.error(f"Error sending email '{template}' to {to}: {e}", exc_info=True)
            raise UpstreamError("Email could not be sent", 500)
