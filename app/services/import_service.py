"""Spreadsheet (CSV) import of clients."""

from __future__ import annotations

import logging
from typing import IO, Any

import pandas as pd

from app.auth.actor import Actor
from app.core.exceptions import ValidationError
from app.models import Client
from app.services.client_service import ClientService

logger = logging.getLogger(__name__)

# Spreadsheet header -> client field.
CSV_COLUMNS: dict[str, str] = {
    "Client Name": "name",
    "Email": "email",
    "Phone": "phone",
    "Lender": "lender",
    "File Type": "file_type",
    "Stage": "stage",
    "Next Follow-Up Date": "next_follow_up",
    "Assigned To": "assigned_to",
    "Last Contact Date": "last_contact",
    "Notes": "notes",
    "Banker Name": "banker_name",
    "Banker Email": "banker_email",
    "Bank": "bank",
}
ROW_DEFAULTS: dict[str, str] = {"file_type": "Residential", "stage": "Lead", "assigned_to": "Assistant"}


def read_client_rows(source: str | IO[Any]) -> list[dict[str, Any]]:
    """Parse the CSV into client payloads; rows without a client name are dropped."""
    try:
        frame = pd.read_csv(source, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise ValidationError(f"Could not read the CSV file: {exc}") from exc

    frame.columns = [str(column).strip() for column in frame.columns]
    present = [column for column in CSV_COLUMNS if column in frame.columns]
    if "Client Name" not in present:
        raise ValidationError("CSV must include a 'Client Name' column.")

    rows: list[dict[str, Any]] = []
    for record in frame[present].to_dict(orient="records"):
        payload = {CSV_COLUMNS[column]: str(value).strip() for column, value in record.items()}
        if not payload.get("name"):
            continue
        for field_name, default in ROW_DEFAULTS.items():
            if not payload.get(field_name):
                payload[field_name] = default
        rows.append(payload)
    return rows


class ClientImportService:
    def __init__(self, clients: ClientService) -> None:
        self.clients = clients

    def import_csv(self, source: str | IO[Any], actor: Actor | None = None) -> list[Client]:
        rows = read_client_rows(source)
        if not rows:
            raise ValidationError("No valid rows found. Check headers and try again.")
        created = self.clients.create_many(rows, actor=actor)
        logger.info("client.import.completed", extra={"event": "client.import.completed", "count": len(created)})
        return created
