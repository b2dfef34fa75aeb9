# telehealth/models/alert.py
from datetime import datetime
from typing import Optional, List

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    text,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from telehealth.db.session import Base
from telehealth.db.types import uuid_col_type, new_id, enum_col_type, json_col_type, utcnow
from telehealth.models.enums import AlertType, AlertSeverity, UserRole

# ---- Set-membership tables ----

alert_target_users = Table(
    "alert_target_users",
    Base.metadata,
    Column("alert_id", uuid_col_type(), ForeignKey("alerts.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", uuid_col_type(), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True),
)

alert_related_reports = Table(
    "alert_related_reports",
    Base.metadata,
    Column("alert_id", uuid_col_type(), ForeignKey("alerts.id", ondelete="CASCADE"), primary_key=True),
    Column("report_id", uuid_col_type(), ForeignKey("symptom_reports.id", ondelete="CASCADE"), primary_key=True),
)


class AlertTargetRole(Base):
    __tablename__ = "alert_target_roles"

    alert_id: Mapped[str] = mapped_column(
        uuid_col_type(), ForeignKey("alerts.id", ondelete="CASCADE"), primary_key=True
    )
    role: Mapped[UserRole] = mapped_column(enum_col_type(UserRole), primary_key=True, index=True)


class AlertReadReceipt(Base):
    """One row per (alert, user) that has acknowledged the alert."""

    __tablename__ = "alert_read_receipts"
    __table_args__ = (
        UniqueConstraint("alert_id", "user_id", name="uq_alert_read_receipts_alert_user"),
    )

    id: Mapped[str] = mapped_column(uuid_col_type(), primary_key=True, default=new_id)
    alert_id: Mapped[str] = mapped_column(
        uuid_col_type(), ForeignKey("alerts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        uuid_col_type(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    read_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )


class Alert(Base):
    __tablename__ = "alerts"
    __table_args__ = (
        Index("ix_alerts_geo_point", "geo_longitude", "geo_latitude"),
        Index("ix_alerts_type_severity_active", "type", "severity", "is_active"),
        Index("ix_alerts_expires_at", "expires_at"),
    )

    id: Mapped[str] = mapped_column(uuid_col_type(), primary_key=True, default=new_id)
    type: Mapped[AlertType] = mapped_column(enum_col_type(AlertType), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[AlertSeverity] = mapped_column(enum_col_type(AlertSeverity), nullable=False)

    # Geographic area: stored and indexed only, nothing filters on it yet
    geo_country: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    geo_region: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    geo_city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    geo_longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    geo_latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    geo_radius_km: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    symptom_pattern: Mapped[Optional[list]] = mapped_column(json_col_type(), nullable=True)
    affected_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # relationships
    target_users: Mapped[List["User"]] = relationship("User", secondary=alert_target_users)
    target_role_links: Mapped[List[AlertTargetRole]] = relationship(
        AlertTargetRole, cascade="all, delete-orphan"
    )
    related_reports: Mapped[List["SymptomReport"]] = relationship(
        "SymptomReport", secondary=alert_related_reports
    )
    read_receipts: Mapped[List[AlertReadReceipt]] = relationship(
        AlertReadReceipt, cascade="all, delete-orphan"
    )

    @property
    def target_roles(self) -> List[UserRole]:
        return [link.role for link in self.target_role_links]

    @target_roles.setter
    def target_roles(self, roles) -> None:
        self.target_role_links = [AlertTargetRole(role=UserRole(r)) for r in dict.fromkeys(roles or [])]

    @property
    def target_user_ids(self) -> List[str]:
        return [str(u.id) for u in self.target_users]
