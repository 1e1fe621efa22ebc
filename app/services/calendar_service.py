"""iCalendar feed of open tasks with a due date."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import UpstreamUnavailableError
from app.models import Client, Task, TaskStatus
from app.services.base_service import BaseService

CALENDAR_CONTENT_TYPE = "text/calendar; charset=utf-8"
CALENDAR_FILENAME = "tasks.ics"


def escape_ics_text(value: str | None) -> str:
    return (
        (value or "")
        .replace("\\", "\\\\")
        .replace("\r\n", "\n")
        .replace("\n", "\\n")
        .replace(",", "\\,")
        .replace(";", "\\;")
    )


def _ymd(value: date) -> str:
    return value.strftime("%Y%m%d")


def _utc_stamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def build_tasks_calendar(
    tasks: Iterable[Task],
    client_names: Mapping[str, str],
    now: datetime,
    prodid: str,
    uid_domain: str,
) -> str:
    """Render all-day VEVENTs; the UID is derived from the task id so re-imports update in place."""
    dtstamp = _utc_stamp(now)
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{prodid}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]
    for task in tasks:
        if task.due_date is None or task.status is not TaskStatus.OPEN:
            continue
        client_name = client_names.get(task.client_id, "") if task.client_id else ""
        summary = f"{task.title} — {client_name}" if client_name else task.title
        lines.extend(
            [
                "BEGIN:VEVENT",
                f"DTSTART;VALUE=DATE:{_ymd(task.due_date)}",
                f"DTEND;VALUE=DATE:{_ymd(task.due_date + timedelta(days=1))}",
                f"DTSTAMP:{dtstamp}",
                f"UID:{task.id}@{uid_domain}",
                f"SUMMARY:{escape_ics_text(summary)}",
            ]
        )
        if task.notes:
            lines.append(f"DESCRIPTION:{escape_ics_text(task.notes)}")
        lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"


class CalendarService(BaseService):
    def open_tasks_with_due_date(self) -> list[Task]:
        stmt = (
            select(Task)
            .where(Task.status == TaskStatus.OPEN, Task.due_date.is_not(None))
            .order_by(Task.due_date, Task.id)
        )
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as exc:
            raise UpstreamUnavailableError("Could not load tasks for the calendar feed.") from exc

    def client_names(self, client_ids: Iterable[str]) -> dict[str, str]:
        ids = sorted({client_id for client_id in client_ids if client_id})
        if not ids:
            return {}
        try:
            rows = self.db.execute(select(Client.id, Client.name).where(Client.id.in_(ids))).all()
        except SQLAlchemyError as exc:
            raise UpstreamUnavailableError("Could not load client names for the calendar feed.") from exc
        return {row.id: row.name or "" for row in rows}

    def export_ics(self, now: datetime, prodid: str, uid_domain: str) -> str:
        tasks = self.open_tasks_with_due_date()
        names = self.client_names(task.client_id for task in tasks)
        return build_tasks_calendar(tasks, names, now=now, prodid=prodid, uid_domain=uid_domain)
