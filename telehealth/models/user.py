from datetime import date, datetime
from typing import Optional, List

from sqlalchemy import (
    String,
    Date,
    DateTime,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from telehealth.db.session import Base
from telehealth.db.types import uuid_col_type, new_id, enum_col_type, utcnow
from telehealth.models.enums import UserRole, Gender


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
    )

    id: Mapped[str] = mapped_column(uuid_col_type(), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    # Fixed at registration; no route writes it afterwards
    role: Mapped[UserRole] = mapped_column(enum_col_type(UserRole), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    # Doctor-only
    specialization: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    # Patient-only
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    gender: Mapped[Optional[Gender]] = mapped_column(enum_col_type(Gender), nullable=True)

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

    symptom_reports: Mapped[List["SymptomReport"]] = relationship(
        "SymptomReport",
        back_populates="patient",
        foreign_keys="SymptomReport.patient_id",
        cascade="all, delete-orphan",
    )

    @property
    def is_doctor(self) -> bool:
        return self.role == UserRole.DOCTOR

    @property
    def is_patient(self) -> bool:
        return self.role == UserRole.PATIENT

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
