from datetime import datetime
from typing import Optional

from sqlalchemy import String, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from telehealth.db.session import Base
from telehealth.db.types import uuid_col_type, new_id, enum_col_type, json_col_type, utcnow
from telehealth.models.enums import ReportSeverity, ReportStatus
from telehealth.utils.encryption import EncryptedText


class SymptomReport(Base):
    __tablename__ = "symptom_reports"
    __table_args__ = (
        Index("ix_symptom_reports_patient_created", "patient_id", "created_at"),
        Index("ix_symptom_reports_status_severity", "status", "severity"),
    )

    id: Mapped[str] = mapped_column(uuid_col_type(), primary_key=True, default=new_id)
    patient_id: Mapped[str] = mapped_column(
        uuid_col_type(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    symptoms: Mapped[list] = mapped_column(json_col_type(), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(EncryptedText, nullable=True)
    # Placeholder until transcription exists; stored as the client sends it
    audio_transcript: Mapped[Optional[str]] = mapped_column(EncryptedText, nullable=True)
    severity: Mapped[ReportSeverity] = mapped_column(enum_col_type(ReportSeverity), nullable=False)
    duration: Mapped[str] = mapped_column(String(120), nullable=False)
    status: Mapped[ReportStatus] = mapped_column(
        enum_col_type(ReportStatus), nullable=False, default=ReportStatus.PENDING
    )

    reviewed_by: Mapped[Optional[str]] = mapped_column(
        uuid_col_type(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    review_notes: Mapped[Optional[str]] = mapped_column(EncryptedText, nullable=True)
    ai_analysis: Mapped[Optional[dict]] = mapped_column(json_col_type(), nullable=True)

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

    patient = relationship("User", back_populates="symptom_reports", foreign_keys=[patient_id])
    reviewer = relationship("User", foreign_keys=[reviewed_by])
