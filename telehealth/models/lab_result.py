from datetime import datetime
from typing import Optional

from sqlalchemy import String, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from telehealth.db.session import Base
from telehealth.db.types import uuid_col_type, new_id, enum_col_type, json_col_type, utcnow
from telehealth.models.enums import LabStatus
from telehealth.utils.encryption import EncryptedText


class LabResult(Base):
    __tablename__ = "lab_results"
    __table_args__ = (
        Index("ix_lab_results_patient_test_date", "patient_id", "test_date"),
        Index("ix_lab_results_status_test_date", "status", "test_date"),
    )

    id: Mapped[str] = mapped_column(uuid_col_type(), primary_key=True, default=new_id)
    patient_id: Mapped[str] = mapped_column(
        uuid_col_type(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    test_name: Mapped[str] = mapped_column(String(255), nullable=False)
    test_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    results: Mapped[str] = mapped_column(EncryptedText, nullable=False)
    doctor_notes: Mapped[Optional[str]] = mapped_column(EncryptedText, nullable=True)
    file_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    normal_range: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[LabStatus] = mapped_column(enum_col_type(LabStatus), nullable=False)
    ordered_by: Mapped[Optional[str]] = mapped_column(
        uuid_col_type(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    # {"name", "address", "contact"}
    lab_facility: Mapped[Optional[dict]] = mapped_column(json_col_type(), nullable=True)

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

    patient = relationship("User", foreign_keys=[patient_id])
    orderer = relationship("User", foreign_keys=[ordered_by])
