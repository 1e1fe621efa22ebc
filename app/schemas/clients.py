"""Client request/response schemas for API contracts."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ClientCreateRequest(BaseModel):
    name: str = Field(max_length=255)
    phone: str | None = Field(default=None, max_length=64)
    email: str | None = Field(default=None, max_length=320)
    file_type: str | None = Field(default="Residential", max_length=60)
    stage: str | None = Field(default=None, max_length=100)
    assigned_to: str | None = Field(default=None, max_length=255)
    banker_name: str | None = Field(default=None, max_length=255)
    banker_email: str | None = Field(default=None, max_length=320)
    bank: str | None = Field(default=None, max_length=255)
    lender: str | None = Field(default=None, max_length=255)
    next_follow_up: date | None = None
    last_contact: date | None = None
    notes: str | None = Field(default=None, max_length=20000)
    retainer_received: bool = False
    retainer_amount: Decimal | None = Field(default=None, ge=0)
    subject_removal_date: date | None = None
    closing_date: date | None = None
    notes_file_link: str | None = Field(default=None, max_length=1000)


class ClientUpdateRequest(BaseModel):
    """Descriptive fields only; omitted fields are left untouched."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=64)
    email: str | None = Field(default=None, max_length=320)
    file_type: str | None = Field(default=None, max_length=60)
    assigned_to: str | None = Field(default=None, max_length=255)
    banker_name: str | None = Field(default=None, max_length=255)
    banker_email: str | None = Field(default=None, max_length=320)
    bank: str | None = Field(default=None, max_length=255)
    lender: str | None = Field(default=None, max_length=255)
    next_follow_up: date | None = None
    last_contact: date | None = None
    notes: str | None = Field(default=None, max_length=20000)
    retainer_received: bool | None = None
    retainer_amount: Decimal | None = Field(default=None, ge=0)
    subject_removal_date: date | None = None
    closing_date: date | None = None
    notes_file_link: str | None = Field(default=None, max_length=1000)


class StageTransitionRequest(BaseModel):
    stage: str = Field(min_length=1, max_length=100)


class StageAgeResponse(BaseModel):
    entered_at: datetime | None = None
    days: int | None = None
    tier: str | None = None
    label: str | None = None


class ClientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    phone: str | None = None
    email: str | None = None
    file_type: str | None = None
    stage: str
    assigned_to: str | None = None
    banker_name: str | None = None
    banker_email: str | None = None
    bank: str | None = None
    lender: str | None = None
    next_follow_up: date | None = None
    last_contact: date | None = None
    notes: str | None = None
    retainer_received: bool = False
    retainer_amount: Decimal | None = None
    subject_removal_date: date | None = None
    closing_date: date | None = None
    notes_file_link: str | None = None
    is_archived: bool | None = False
    archived_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    stage_age: StageAgeResponse | None = None


class StageTransitionResponse(BaseModel):
    client_id: str
    from_stage: str
    to_stage: str
    changed: bool
    changed_at: datetime | None = None


class StageHistoryItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    client_id: str
    from_stage: str | None = None
    to_stage: str
    changed_at: datetime
    changed_by: str | None = None


class ImportResponse(BaseModel):
    imported: int
    client_ids: list[str]
