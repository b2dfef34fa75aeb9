"""Dialect-aware column types shared by the models.

Postgres gets JSONB, everything else (SQLite in tests) gets generic JSON.
"""
import os
import uuid
from datetime import datetime, timezone

from sqlalchemy import Enum as SAEnum, String
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.types import JSON as SA_JSON

from telehealth.db.session import engine


def uuid_col_type():
    # Ids are stored as 36-char strings on every dialect
    return String(36)


def new_id() -> str:
    return str(uuid.uuid4())


def json_col_type():
    if os.getenv("FORCE_GENERIC_JSON", "").lower() in ("1", "true", "yes"):
        return SA_JSON
    if engine.dialect.name == "postgresql":
        return PG_JSONB
    return SA_JSON


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalise a datetime to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def enum_col_type(enum_cls):
    """Store an Enum by value in a plain VARCHAR (no native PG enum type)."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )
