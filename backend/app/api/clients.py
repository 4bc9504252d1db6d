from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.db.models import MAX_SQL_INTEGER
from app.db.session import get_db
from app.models.client import ClientCreate, ClientOut, ClientUpdate
from app.services.client_repository import ClientRepository, ListOptions
from app.utils.errors import NotFoundError, ValidationError
from app.utils.responses import success_response

router = APIRouter()
logger = logging.getLogger(__name__)


def get_repository(db: Session = Depends(get_db)) -> ClientRepository:
    return ClientRepository(db)


def parse_client_id(raw: str) -> int:
    """El id debe ser un entero positivo; si no, 400 (distinto de 404)."""
    if not (raw.isascii() and raw.isdigit()) or not 0 < int(raw) <= MAX_SQL_INTEGER:
        raise ValidationError("Invalid client ID", details="Invalid ID: must be a positive integer")
    return int(raw)


def _out(client) -> dict:
    return ClientOut.model_validate(client).model_dump(mode="json")


@router.get("")
def list_clients(
    page: Optional[str] = Query(None, description="Página (>= 1)"),
    limit: Optional[str] = Query(None, description="Tamaño de página (1..100)"),
    search: Optional[str] = Query(None, description="Filtro por nombre/email (sin distinguir mayúsculas)"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="id, name, email, phone, created_at, updated_at"),
    order: Optional[str] = Query(None, description="asc | desc"),
    repo: ClientRepository = Depends(get_repository),
):
    """
    GET /clients?page=1&limit=10&search=ana&sortBy=name&order=asc
    Parámetros inválidos se ajustan a sus valores por defecto, nunca fallan.
    """
    options = ListOptions.from_raw(page=page, limit=limit, search=search, sort_by=sort_by, order=order)
    logger.info(f"GET /clients options={options}")

    result = repo.find_all(options)
    return success_response(
        [_out(c) for c in result.items],
        message=f"Retrieved {len(result.items)} clients",
        meta=result.meta(),
    )


@router.get("/stats")
def client_stats(repo: ClientRepository = Depends(get_repository)):
    stats = repo.stats()
    return success_response(
        stats.model_dump(mode="json"),
        message="Client statistics retrieved successfully",
    )


@router.get("/{client_id}")
def get_client(client_id: str, repo: ClientRepository = Depends(get_repository)):
    cid = parse_client_id(client_id)
    client = repo.find_by_id(cid)
    if client is None:
        raise NotFoundError("Client not found", details=f"No client found with ID {cid}")
    return success_response(_out(client), message="Client retrieved successfully")


@router.post("", status_code=201)
def create_client(payload: ClientCreate, repo: ClientRepository = Depends(get_repository)):
    logger.info(
        f"POST /clients name={payload.name!r} email={payload.email!r} has_phone={payload.phone is not None}"
    )
    client = repo.create(payload)
    return success_response(_out(client), message="Client created successfully", status_code=201)


@router.put("/{client_id}")
def update_client(client_id: str, payload: ClientUpdate, repo: ClientRepository = Depends(get_repository)):
    """Actualización parcial: solo cambian los campos presentes en el body."""
    cid = parse_client_id(client_id)
    logger.info(f"PUT /clients/{cid} fields={sorted(payload.changes())}")
    client = repo.update(cid, payload)
    return success_response(_out(client), message="Client updated successfully")


@router.delete("/{client_id}", status_code=204)
def delete_client(client_id: str, repo: ClientRepository = Depends(get_repository)):
    cid = parse_client_id(client_id)
    if not repo.delete(cid):
        raise NotFoundError("Client not found", details=f"No client found with ID {cid}")
    return Response(status_code=204)
