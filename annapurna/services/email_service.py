from datetime import datetime, timezone
import logging
import smtplib
from email.message import EmailMessage
from sqlalchemy.orm import Session
import uuid
import requests

from annapurna.core.config import settings
from annapurna.models.email_log import EmailLog

logger = logging.getLogger(__name__)


def queue_email(db: Session, to_email: str, subject: str, body: str, html_body: str | None = None, related_booking_id: str = "") -> str:
    """Store the email, then attempt immediate send. A failed send stays in the log for the worker to retry."""
    eid = str(uuid.uuid4())
    db.add(
        EmailLog(
            id=eid,
            to_email=to_email,
            subject=subject,
            body=body,
            html_body=html_body,
            status="queued",
            related_booking_id=related_booking_id,
        )
    )
    db.commit()

    log = db.get(EmailLog, eid)
    try:
        send_email(to_email, subject, body, html_body)
        log.status = "sent"
        log.sent_at = datetime.now(timezone.utc)
    except Exception as exc:
        logger.warning("Email to %s failed, queued for retry: %s", to_email, exc)
        log.status = "failed"
        log.last_error = str(exc)[:1000]
    log.attempts = (log.attempts or 0) + 1
    db.commit()
    return eid


def send_email(to_email: str, subject: str, body: str, html_body: str | None = None):
    """Send email via SendGrid if configured, otherwise SMTP (MailHog recommended for local)."""

    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, body, html_body)
        return

    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_sendgrid(to_email: str, subject: str, body: str, html_body: str | None):
    from_email = settings.SENDGRID_FROM_EMAIL or settings.SMTP_FROM
    content = [{"type": "text/plain", "value": body}]
    if html_body:
        content.append({"type": "text/html", "value": html_body})
    payload = {
        "personalizations": [{"to": [{"email": to_email}]}],
        "from": {"email": from_email, "name": settings.ORG_NAME},
        "subject": subject,
        "content": content,
    }

    r = requests.post(
        "https://api.sendgrid.com/v3/mail/send",
        json=payload,
        headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"SendGrid error {r.status_code}: {r.text}")


def process_pending_emails(db: Session, limit: int = 50, max_attempts: int = 5) -> dict:
    """Retry up to `limit` queued or failed emails. Returns counts."""
    pending = (
        db.query(EmailLog)
        .filter(
            EmailLog.status.in_(["queued", "failed"]),
            EmailLog.body.isnot(None),
            EmailLog.body != "",
            EmailLog.attempts < max_attempts,
        )
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    sent, failed = 0, 0
    for log in pending:
        log.attempts = (log.attempts or 0) + 1
        try:
            send_email(log.to_email, log.subject, log.body, log.html_body)
            log.status = "sent"
            log.sent_at = datetime.now(timezone.utc)
            sent += 1
        except Exception as exc:
            log.status = "failed"
            log.last_error = str(exc)[:1000]
            failed += 1
    if pending:
        db.commit()
    if failed:
        logger.warning("Email retry: %d sent, %d still failing", sent, failed)
    return {"processed": len(pending), "sent": sent, "failed": failed}
