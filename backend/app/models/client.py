# backend/app/models/client.py - Schemas Pydantic para Cliente

import re
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator

from app.db.models import EMAIL_MAX_LENGTH, NAME_MAX_LENGTH, PHONE_MAX_LENGTH

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[\d\s\-().]{7,20}$")
NAME_EXTRA_CHARS = frozenset(" -'.")


def as_utc_iso(value: datetime) -> str:
    # SQLite devuelve datetimes naive; se guardan siempre en UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat(timespec="microseconds")


def normalize_name(value: Optional[str]) -> str:
    name = (value or "").strip()
    if not name:
        raise ValueError("Name is required")
    if len(name) > NAME_MAX_LENGTH:
        raise ValueError(f"Name must be between 1 and {NAME_MAX_LENGTH} characters")
    if not all(ch.isalpha() or ch in NAME_EXTRA_CHARS for ch in name):
        raise ValueError("Name contains invalid characters")
    return name


def normalize_email(value: Optional[str]) -> str:
    email = (value or "").strip().lower()
    if not email:
        raise ValueError("Email is required")
    if not EMAIL_RE.match(email):
        raise ValueError("Invalid email format")
    if len(email) > EMAIL_MAX_LENGTH:
        raise ValueError(f"Email must be less than {EMAIL_MAX_LENGTH} characters")
    return email


def normalize_phone(value: Optional[str]) -> Optional[str]:
    """Teléfono opcional: vacío o null se guarda siempre como None."""
    phone = (value or "").strip()
    if not phone:
        return None
    if len(phone) > PHONE_MAX_LENGTH:
        raise ValueError(f"Phone number must be less than {PHONE_MAX_LENGTH} characters")
    if not PHONE_RE.match(phone):
        raise ValueError("Invalid phone number format")
    return phone


class ClientCreate(BaseModel):
    # campos desconocidos se ignoran
    model_config = ConfigDict(extra="ignore")

    name: str
    email: str
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return normalize_name(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return normalize_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)


class ClientUpdate(BaseModel):
    """
    Actualización parcial: solo se validan y aplican los campos enviados
    (usar model_dump(exclude_unset=True)). name/email no admiten null.
    """

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None:
            raise ValueError("Name cannot be null")
        return normalize_name(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if v is None:
            raise ValueError("Email cannot be null")
        return normalize_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ClientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def serialize_timestamp(self, value: datetime) -> str:
        return as_utc_iso(value)


class ClientStats(BaseModel):
    total: int
    withPhone: int
    withoutPhone: int
    recentlyAdded: int
    oldestCreated: Optional[datetime] = None
    newestCreated: Optional[datetime] = None

    @field_serializer("oldestCreated", "newestCreated")
    def serialize_timestamp(self, value: Optional[datetime]) -> Optional[str]:
        return as_utc_iso(value) if value is not None else None
