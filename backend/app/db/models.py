# models.py - Tabla clients (SQLAlchemy ORM)

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.session import Base

NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 100
PHONE_MAX_LENGTH = 20
# INTEGER de SQLite: 64 bits con signo
MAX_SQL_INTEGER = 2**63 - 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class Client(Base, TimestampMixin):
    __tablename__ = "clients"
    __table_args__ = (
        Index("idx_clients_name", "name"),
        Index("idx_clients_created_at", "created_at"),
        # AUTOINCREMENT: los ids borrados no se reutilizan
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    email: Mapped[str] = mapped_column(String(EMAIL_MAX_LENGTH), nullable=False, unique=True, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(PHONE_MAX_LENGTH), nullable=True)

    def __repr__(self) -> str:
        return f"<Client id={self.id} email={self.email!r}>"
