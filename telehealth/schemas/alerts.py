# telehealth/schemas/alerts.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from telehealth.models.enums import AlertSeverity, AlertType, UserRole
from telehealth.schemas.base import CamelModel, UpdateModel, not_blank, utc_datetime
from telehealth.schemas.reports import ReportSummary
from telehealth.schemas.users import UserSummary


class GeoPoint(CamelModel):
    """GeoJSON point, ``coordinates`` is ``[longitude, latitude]``."""

    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(..., min_length=2, max_length=2)

    @field_validator("coordinates")
    @classmethod
    def _in_range(cls, v: List[float]) -> List[float]:
        lon, lat = v
        if not -180.0 <= lon <= 180.0:
            raise ValueError("longitude must be between -180 and 180")
        if not -90.0 <= lat <= 90.0:
            raise ValueError("latitude must be between -90 and 90")
        return v


class GeographicArea(CamelModel):
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    coordinates: Optional[GeoPoint] = None
    radius: Optional[float] = Field(default=None, ge=0, description="Kilometres")


class AlertMetadataIn(CamelModel):
    symptom_pattern: Optional[List[str]] = None
    affected_count: Optional[int] = Field(default=None, ge=0)
    related_reports: Optional[List[str]] = None


class AlertMetadataOut(CamelModel):
    symptom_pattern: List[str] = Field(default_factory=list)
    affected_count: Optional[int] = None
    related_reports: List[ReportSummary] = Field(default_factory=list)


class AlertCreate(CamelModel):
    type: AlertType
    title: str = Field(..., max_length=255)
    message: str
    severity: AlertSeverity
    target_users: List[str] = Field(default_factory=list)
    target_roles: List[UserRole] = Field(default_factory=list)
    geographic_area: Optional[GeographicArea] = None
    metadata: Optional[AlertMetadataIn] = None
    expires_at: Optional[datetime] = None

    @field_validator("title", "message")
    @classmethod
    def _required_text(cls, v: str) -> str:
        return not_blank(v)

    @field_validator("expires_at")
    @classmethod
    def _to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return utc_datetime(v)


class AlertUpdate(UpdateModel):
    """Content fields a doctor may PATCH; anything else is rejected."""

    title: Optional[str] = Field(default=None, max_length=255)
    message: Optional[str] = None
    severity: Optional[AlertSeverity] = None
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None
    metadata: Optional[AlertMetadataIn] = None

    @field_validator("title", "message", "severity", "is_active")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        if isinstance(v, str) and not isinstance(v, AlertSeverity):
            return not_blank(v)
        return v

    @field_validator("expires_at")
    @classmethod
    def _to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return utc_datetime(v)


class AlertOut(CamelModel):
    id: str
    type: AlertType
    title: str
    message: str
    severity: AlertSeverity
    target_users: List[UserSummary] = Field(default_factory=list)
    target_roles: List[UserRole] = Field(default_factory=list)
    geographic_area: Optional[GeographicArea] = None
    metadata: AlertMetadataOut
    # Whether the requesting user has marked this alert read
    is_read: bool = False
    expires_at: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class AlertPage(CamelModel):
    alerts: List[AlertOut]
    total_pages: int
    current_page: int
    total: int
