"""Task-created e-mail notifications.

Delivery is best effort: every outcome (sent, sandboxed, skipped, failed) is
returned to the caller and written to ``email_logs``, and nothing here
raises into the task workflow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

import requests
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import Config, get_config
from app.models import EmailLog, NotificationStatus, Task
from app.utils.validators import escape_html, sanitize_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    to: str | None
    subject: str
    html: str


@dataclass(frozen=True)
class NotificationResult:
    status: NotificationStatus
    recipient: str | None = None
    warning: str | None = None

    @property
    def delivered(self) -> bool:
        return self.status in {NotificationStatus.SENT, NotificationStatus.SANDBOX}


def build_task_created_email(
    to: str | None,
    title: str | None,
    client_name: str | None = None,
    due_date: date | str | None = None,
    notes: str | None = None,
) -> EmailMessage:
    subject = f"New task: {sanitize_text(title, 400) or 'Untitled task'}"
    parts = [
        '<div style="font-family: system-ui; font-size:14px;">',
        "<h2>New task created</h2>",
        f"<p><strong>Title:</strong> {escape_html(title)}</p>",
    ]
    if client_name:
        parts.append(f"<p><strong>Client:</strong> {escape_html(client_name)}</p>")
    if due_date:
        parts.append(f"<p><strong>Due date:</strong> {escape_html(str(due_date))}</p>")
    if notes:
        parts.append(f"<p><strong>Notes:</strong><br>{escape_html(notes).replace(chr(10), '<br>')}</p>")
    parts.append("</div>")
    return EmailMessage(to=to, subject=subject, html="\n".join(parts))


class TaskNotifier:
    """Sends the task-created e-mail to the assignee through the Resend API."""

    def __init__(self, config: Config | None = None, session: requests.Session | None = None) -> None:
        self.config = config or get_config()
        self.http = session or requests.Session()

    def recipient_for(self, assigned_to: str | None) -> str | None:
        if not assigned_to:
            return None
        return self.config.ASSIGNEE_EMAILS.get(assigned_to.strip())

    def notify_task_created(self, db: Session, task: Task, client_name: str | None = None) -> NotificationResult:
        to = self.recipient_for(task.assigned_to)
        message = build_task_created_email(to, task.title, client_name, task.due_date, task.notes)
        result = self._deliver(message)
        self._log(db, task.id, message, result)
        return result

    def _deliver(self, message: EmailMessage) -> NotificationResult:
        if not message.to:
            logger.info("task.notification.no_recipient", extra={"event": "task.notification.no_recipient"})
            return NotificationResult(NotificationStatus.SKIPPED, warning="No e-mail address for the assignee.")

        if self.config.EMAIL_SANDBOX_MODE:
            logger.info(
                "task.notification.sandbox",
                extra={"event": "task.notification.sandbox", "to_email": message.to},
            )
            return NotificationResult(NotificationStatus.SANDBOX, recipient=message.to)

        if not (self.config.RESEND_API_KEY and self.config.TASK_EMAIL_FROM):
            logger.warning(
                "task.notification.not_configured",
                extra={"event": "task.notification.not_configured"},
            )
            return NotificationResult(
                NotificationStatus.SKIPPED, recipient=message.to, warning="E-mail delivery is not configured."
            )

        try:
            response = self.http.post(
                self.config.RESEND_API_URL,
                json={
                    "from": self.config.TASK_EMAIL_FROM,
                    "to": [message.to],
                    "subject": message.subject,
                    "html": message.html,
                },
                headers={"Authorization": f"Bearer {self.config.RESEND_API_KEY}"},
                timeout=self.config.EMAIL_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.exception(
                "task.notification.failed",
                extra={"event": "task.notification.failed", "to_email": message.to},
            )
            return NotificationResult(
                NotificationStatus.FAILED,
                recipient=message.to,
                warning=f"Task saved, but the notification e-mail failed: {exc}",
            )

        logger.info("task.notification.sent", extra={"event": "task.notification.sent", "to_email": message.to})
        return NotificationResult(NotificationStatus.SENT, recipient=message.to)

    def _log(self, db: Session, task_id: str, message: EmailMessage, result: NotificationResult) -> None:
        try:
            db.add(
                EmailLog(
                    entity_type="task",
                    entity_id=task_id,
                    recipient=message.to,
                    subject=sanitize_text(message.subject, 500),
                    body_preview=sanitize_text(message.html, 2000),
                    send_status=result.status.value,
                    error_message=result.warning,
                )
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("email.log.failed", extra={"event": "email.log.failed"})
