"""Dashboard KPIs derived from client and task snapshots."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from app.models import Client, Task, TaskStatus
from app.pipeline.stages import CLOSED_STAGES, PIPELINE_STAGES, Stage, normalize_stage
from app.services.base_service import BaseService
from app.services.client_service import ClientService
from app.services.task_service import TaskService


@dataclass(frozen=True)
class TaskCounts:
    open: int = 0
    total: int = 0


@dataclass(frozen=True)
class DashboardSummary:
    active_clients: int
    sent_to_banker: int
    tasks_overdue: int
    completed_this_month: int
    stage_counts: dict[str, int] = field(default_factory=dict)
    tasks_by_client: dict[str, TaskCounts] = field(default_factory=dict)


def stage_counts(clients: Iterable[Client]) -> dict[str, int]:
    counter = Counter(normalize_stage(client.stage) for client in clients if not client.is_archived)
    return {stage: counter.get(stage, 0) for stage in PIPELINE_STAGES}


def tasks_by_client(tasks: Iterable[Task]) -> dict[str, TaskCounts]:
    totals: Counter = Counter()
    opened: Counter = Counter()
    for task in tasks:
        if not task.client_id:
            continue
        totals[task.client_id] += 1
        if task.status is TaskStatus.OPEN:
            opened[task.client_id] += 1
    return {client_id: TaskCounts(open=opened[client_id], total=total) for client_id, total in totals.items()}


def summarize(clients: list[Client], tasks: list[Task], today: date) -> DashboardSummary:
    active = [client for client in clients if not client.is_archived]
    return DashboardSummary(
        active_clients=sum(1 for client in active if normalize_stage(client.stage) not in CLOSED_STAGES),
        sent_to_banker=sum(1 for client in active if normalize_stage(client.stage) == Stage.SENT_TO_BANKER.value),
        tasks_overdue=sum(
            1
            for task in tasks
            if task.status is TaskStatus.OPEN and task.due_date is not None and task.due_date < today
        ),
        completed_this_month=sum(
            1
            for client in clients
            if normalize_stage(client.stage) == Stage.COMPLETED.value
            and client.closing_date is not None
            and (client.closing_date.year, client.closing_date.month) == (today.year, today.month)
        ),
        stage_counts=stage_counts(active),
        tasks_by_client=tasks_by_client(tasks),
    )


class DashboardService(BaseService):
    def summary(self, today: date) -> DashboardSummary:
        clients = ClientService(self.db).list_clients(archived=False)
        tasks = TaskService(self.db).list_tasks()
        return summarize(clients, tasks, today)
