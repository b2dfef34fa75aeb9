# telehealth/schemas/base.py
from datetime import datetime
from typing import Any, Dict, Type, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from telehealth.db.types import as_utc
from telehealth.utils.exceptions import ValidationError

M = TypeVar("M", bound=BaseModel)


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python, readable from ORM rows."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UpdateModel(CamelModel):
    """PATCH bodies: any key outside the declared fields is rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def changes(self) -> Dict[str, Any]:
        """Only the fields the client actually sent, keyed by attribute name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class MessageOut(BaseModel):
    message: str


def utc_datetime(value: Any) -> Any:
    if isinstance(value, datetime):
        return as_utc(value)
    return value


def not_blank(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
    return value


def parse_update(model_cls: Type[M], data: Dict[str, Any]) -> M:
    """Validate ``data`` against a narrower update variant, raising our ValidationError."""
    try:
        return model_cls.model_validate(data)
    except pydantic.ValidationError as exc:
        details = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        if any(err["type"] == "extra_forbidden" for err in exc.errors()):
            raise ValidationError("Invalid updates", details=details)
        raise ValidationError("Validation failed", details=details)


__all__ = [
    "CamelModel",
    "UpdateModel",
    "MessageOut",
    "utc_datetime",
    "not_blank",
    "parse_update",
]
