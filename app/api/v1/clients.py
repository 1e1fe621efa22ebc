"""Client pipeline endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Header, Query, UploadFile
from sqlalchemy.orm import Session

from app.api.v1._authz import authorize
from app.core.config import Config
from app.core.dependencies import get_change_feed, get_db_session, get_settings
from app.events.change_feed import ChangeFeed
from app.models import Client
from app.models.base import utcnow
from app.pipeline.duration import StageDuration
from app.schemas.clients import (
    ClientCreateRequest,
    ClientResponse,
    ClientUpdateRequest,
    ImportResponse,
    StageAgeResponse,
    StageHistoryItem,
    StageTransitionRequest,
    StageTransitionResponse,
)
from app.services.client_service import ClientService
from app.services.history_service import HistoryService
from app.services.import_service import ClientImportService
from app.services.transition_service import TransitionService

router = APIRouter(prefix="/clients", tags=["clients"])


def _client_response(client: Client, duration: StageDuration | None = None) -> ClientResponse:
    response = ClientResponse.model_validate(client)
    if duration is None:
        return response
    return response.model_copy(
        update={
            "stage_age": StageAgeResponse(
                entered_at=duration.entered_at,
                days=duration.days,
                tier=duration.tier.value if duration.tier else None,
                label=duration.label,
            )
        }
    )


def _with_stage_age(db: Session, clients: list[Client]) -> list[ClientResponse]:
    durations = HistoryService(db).stage_durations(clients, now=utcnow())
    return [_client_response(client, durations.get(client.id)) for client in clients]


@router.get("", response_model=list[ClientResponse])
def list_clients(
    archived: bool = Query(default=False),
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> list[ClientResponse]:
    authorize(authorization, settings, scopes=["clients.read"])
    return _with_stage_age(db, ClientService(db).list_clients(archived=archived))


@router.post("", response_model=ClientResponse, status_code=201)
def create_client(
    payload: ClientCreateRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ClientResponse:
    actor = authorize(authorization, settings, scopes=["clients.write"])
    client = ClientService(db, feed).create_client(payload.model_dump(), actor)
    return _with_stage_age(db, [client])[0]


@router.post("/import", response_model=ImportResponse, status_code=201)
def import_clients(
    file: UploadFile = File(...),
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ImportResponse:
    actor = authorize(authorization, settings, scopes=["clients.import"])
    clients = ClientImportService(ClientService(db, feed)).import_csv(file.file, actor)
    return ImportResponse(imported=len(clients), client_ids=[client.id for client in clients])


@router.get("/{client_id}", response_model=ClientResponse)
def get_client(
    client_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> ClientResponse:
    authorize(authorization, settings, scopes=["clients.read"])
    return _with_stage_age(db, [ClientService(db).get_client(client_id)])[0]


@router.patch("/{client_id}", response_model=ClientResponse)
def update_client(
    client_id: str,
    payload: ClientUpdateRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ClientResponse:
    authorize(authorization, settings, scopes=["clients.write"])
    client = ClientService(db, feed).update_client(client_id, payload.model_dump(exclude_unset=True))
    return _with_stage_age(db, [client])[0]


@router.post("/{client_id}/stage", response_model=StageTransitionResponse)
def change_stage(
    client_id: str,
    payload: StageTransitionRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
    feed: ChangeFeed = Depends(get_change_feed),
) -> StageTransitionResponse:
    actor = authorize(authorization, settings, scopes=["clients.stage"])
    result = TransitionService(db, feed).transition(client_id, payload.stage, actor)
    return StageTransitionResponse(
        client_id=result.client_id,
        from_stage=result.from_stage,
        to_stage=result.to_stage,
        changed=result.changed,
        changed_at=result.changed_at,
    )


@router.post("/{client_id}/archive", response_model=ClientResponse)
def archive_client(
    client_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ClientResponse:
    actor = authorize(authorization, settings, scopes=["clients.write"])
    return _client_response(ClientService(db, feed).archive_client(client_id, actor))


@router.post("/{client_id}/unarchive", response_model=ClientResponse)
def unarchive_client(
    client_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ClientResponse:
    authorize(authorization, settings, scopes=["clients.write"])
    return _client_response(ClientService(db, feed).unarchive_client(client_id))


@router.delete("/{client_id}", status_code=204)
def delete_client(
    client_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
    feed: ChangeFeed = Depends(get_change_feed),
) -> None:
    actor = authorize(authorization, settings, scopes=["clients.read"])
    ClientService(db, feed).hard_delete_client(client_id, actor)


@router.get("/{client_id}/history", response_model=list[StageHistoryItem])
def client_history(
    client_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    settings: Config = Depends(get_settings),
) -> list[StageHistoryItem]:
    authorize(authorization, settings, scopes=["clients.read"])
    ClientService(db).get_client(client_id)
    return [StageHistoryItem.model_validate(entry) for entry in HistoryService(db).list_history(client_id)]
