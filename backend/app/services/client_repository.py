# client_repository.py - Capa de acceso a datos para clients
#
# Recibe una Session ya construida (inyectada por FastAPI o por scripts) y
# expone las operaciones CRUD, el listado paginado y las estadísticas.
# Los errores salen siempre como subclases de AppError.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, List, Optional

from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models import MAX_SQL_INTEGER, Client, utcnow
from app.models.client import ClientCreate, ClientStats, ClientUpdate
from app.utils.errors import DuplicateError, InternalError, NotFoundError

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("id", "name", "email", "phone", "created_at", "updated_at")
DEFAULT_SORT_FIELD = "created_at"
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
RECENT_WINDOW = timedelta(days=7)


def _to_int(value: Any, default: int) -> int:
    """Entero permisivo: vacío, 0 o no numérico -> default."""
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number or default


@dataclass
class ListOptions:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    search: str = ""
    sort_by: str = DEFAULT_SORT_FIELD
    order: str = "desc"

    @classmethod
    def from_raw(
        cls,
        page: Any = None,
        limit: Any = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        order: Optional[str] = None,
    ) -> "ListOptions":
        """
        Normaliza parámetros de query sin fallar nunca:
        - page >= 1, limit en 1..100 (valores fuera de rango se ajustan)
        - sort_by fuera de la lista permitida -> created_at
        - order distinto de 'asc' -> desc
        """
        return cls(
            page=max(1, _to_int(page, 1)),
            limit=min(MAX_PAGE_SIZE, max(1, _to_int(limit, DEFAULT_PAGE_SIZE))),
            search=(search or "").strip(),
            sort_by=sort_by if sort_by in SORTABLE_FIELDS else DEFAULT_SORT_FIELD,
            order="asc" if (order or "").strip().lower() == "asc" else "desc",
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class ClientPage:
    items: List[Client] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def meta(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


class ClientRepository:
    def __init__(self, db: Session):
        self.db = db

    # ---------- Lectura ----------
    def find_all(self, options: Optional[ListOptions] = None) -> ClientPage:
        """Página de clientes + total con el mismo filtro de búsqueda."""
        options = options or ListOptions()
        sort_field = options.sort_by if options.sort_by in SORTABLE_FIELDS else DEFAULT_SORT_FIELD
        direction = asc if options.order == "asc" else desc

        count_stmt = select(func.count()).select_from(Client)
        page_stmt = select(Client)
        if options.search:
            # OR sobre nombre/email, sin distinguir mayúsculas; % y _ literales
            condition = or_(
                Client.name.icontains(options.search, autoescape=True),
                Client.email.icontains(options.search, autoescape=True),
            )
            count_stmt = count_stmt.where(condition)
            page_stmt = page_stmt.where(condition)

        page_stmt = (
            page_stmt.order_by(direction(getattr(Client, sort_field)), direction(Client.id))
            .limit(options.limit)
            .offset(options.offset)
        )

        try:
            total = self.db.scalar(count_stmt) or 0
            # offset fuera del rango de SQLite: página vacía, no error
            items = list(self.db.scalars(page_stmt)) if options.offset <= MAX_SQL_INTEGER else []
        except SQLAlchemyError as exc:
            raise self._storage_error("retrieve clients", exc) from exc

        return ClientPage(items=items, total=total, page=options.page, limit=options.limit)

    def find_by_id(self, client_id: int) -> Optional[Client]:
        """None si no existe; la ausencia no es un error."""
        if client_id > MAX_SQL_INTEGER:
            return None
        try:
            return self.db.get(Client, client_id)
        except SQLAlchemyError as exc:
            raise self._storage_error("retrieve client", exc) from exc

    def stats(self) -> ClientStats:
        since = utcnow() - RECENT_WINDOW
        try:
            total, with_phone, oldest, newest = self.db.execute(
                select(
                    func.count(Client.id),
                    func.count(Client.phone),
                    func.min(Client.created_at),
                    func.max(Client.created_at),
                )
            ).one()
            recent = self.db.scalar(
                select(func.count()).select_from(Client).where(Client.created_at >= since)
            )
        except SQLAlchemyError as exc:
            raise self._storage_error("retrieve statistics", exc) from exc

        return ClientStats(
            total=total,
            withPhone=with_phone,
            withoutPhone=total - with_phone,
            recentlyAdded=recent or 0,
            oldestCreated=oldest,
            newestCreated=newest,
        )

    # ---------- Escritura ----------
    def create(self, data: ClientCreate) -> Client:
        self._check_email_uniqueness(data.email)

        now = utcnow()
        client = Client(
            name=data.name,
            email=data.email,
            phone=data.phone,
            created_at=now,
            updated_at=now,
        )
        self.db.add(client)
        self._commit("create client", email=data.email)
        self.db.refresh(client)
        logger.info(f"✅ Client created: id={client.id} email={client.email}")
        return client

    def update(self, client_id: int, data: ClientUpdate) -> Client:
        """
        Aplica solo los campos enviados y refresca updated_at.
        Sin campos: devuelve el registro tal cual, sin tocar updated_at.
        """
        client = self.find_by_id(client_id)
        if client is None:
            raise NotFoundError("Client not found", details=f"No client found with ID {client_id}")

        changes = data.changes()
        if not changes:
            return client

        new_email = changes.get("email")
        if new_email is not None and new_email != client.email:
            self._check_email_uniqueness(new_email, exclude_id=client_id)

        for name, value in changes.items():
            setattr(client, name, value)
        client.updated_at = utcnow()

        self._commit("update client", email=new_email, exclude_id=client_id)
        self.db.refresh(client)
        logger.info(f"✅ Client updated: id={client_id} fields={sorted(changes)}")
        return client

    def delete(self, client_id: int) -> bool:
        """False si el cliente no existe, True si se borró."""
        client = self.find_by_id(client_id)
        if client is None:
            return False

        self.db.delete(client)
        self._commit("delete client")
        logger.info(f"🗑️ Client deleted: id={client_id}")
        return True

    # ---------- Helpers ----------
    def _email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(Client.id).where(Client.email == email)
        if exclude_id is not None:
            stmt = stmt.where(Client.id != exclude_id)
        try:
            return self.db.scalar(stmt.limit(1)) is not None
        except SQLAlchemyError as exc:
            raise self._storage_error("check email uniqueness", exc) from exc

    def _check_email_uniqueness(self, email: str, exclude_id: Optional[int] = None) -> None:
        """Pre-check rápido; la restricción UNIQUE de la tabla es la garantía real."""
        if self._email_taken(email, exclude_id):
            raise DuplicateError(
                "Email already exists",
                details=f"Email address {email} is already registered",
            )

    def _commit(self, action: str, email: Optional[str] = None, exclude_id: Optional[int] = None) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            # Otro writer pudo insertar el mismo email entre el pre-check y el commit
            if email is not None and self._email_taken(email, exclude_id):
                raise DuplicateError(
                    "Email already exists",
                    details=f"Email address {email} is already registered",
                ) from exc
            raise self._storage_error(action, exc) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._storage_error(action, exc) from exc

    @staticmethod
    def _storage_error(action: str, exc: Exception) -> InternalError:
        logger.error(f"❌ ClientRepository failed to {action}: {type(exc).__name__}: {exc}")
        return InternalError(f"Failed to {action}", details=str(exc))
