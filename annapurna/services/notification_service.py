"""Best-effort customer notifications.

A notifier is built once at startup and handed to the services. `send` never
raises: a broken mail server must not turn a committed booking into an error
response.
"""
import logging

from annapurna.services.email_service import queue_email
from annapurna.services.notification_templates import render_booking_email

logger = logging.getLogger(__name__)


class Notifier:
    def send(self, to: str, context: dict) -> None:
        raise NotImplementedError


class NullNotifier(Notifier):
    def send(self, to: str, context: dict) -> None:
        logger.debug("Notifications disabled; skipping email to %s", to)


class EmailNotifier(Notifier):
    def __init__(self, session_factory):
        self.session_factory = session_factory

    def send(self, to: str, context: dict) -> None:
        if not to:
            return
        try:
            subject, text, html = render_booking_email(context)
            db = self.session_factory()
            try:
                queue_email(db, to, subject, text, html_body=html,
                            related_booking_id=context.get("booking", {}).get("id", ""))
            finally:
                db.close()
        except Exception:
            logger.exception("Notification to %s could not be queued", to)
