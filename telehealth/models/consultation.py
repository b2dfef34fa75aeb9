from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from telehealth.db.session import Base
from telehealth.db.types import uuid_col_type, new_id, enum_col_type, json_col_type, utcnow
from telehealth.models.enums import ConsultationStatus, ConsultationType
from telehealth.utils.encryption import EncryptedText, EncryptedJSON


class Consultation(Base):
    __tablename__ = "consultations"
    __table_args__ = (
        Index("ix_consultations_patient_scheduled", "patient_id", "scheduled_at"),
        Index("ix_consultations_doctor_scheduled", "doctor_id", "scheduled_at"),
        Index("ix_consultations_status_scheduled", "status", "scheduled_at"),
    )

    id: Mapped[str] = mapped_column(uuid_col_type(), primary_key=True, default=new_id)
    patient_id: Mapped[str] = mapped_column(
        uuid_col_type(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    doctor_id: Mapped[str] = mapped_column(
        uuid_col_type(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    report_id: Mapped[Optional[str]] = mapped_column(
        uuid_col_type(), ForeignKey("symptom_reports.id", ondelete="SET NULL"), nullable=True
    )

    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[ConsultationStatus] = mapped_column(
        enum_col_type(ConsultationStatus), nullable=False, default=ConsultationStatus.SCHEDULED
    )
    type: Mapped[ConsultationType] = mapped_column(enum_col_type(ConsultationType), nullable=False)

    notes: Mapped[Optional[str]] = mapped_column(EncryptedText, nullable=True)
    # {"medications": [{name, dosage, frequency, duration, instructions}], "notes": str}
    prescription: Mapped[Optional[dict]] = mapped_column(EncryptedJSON, nullable=True)
    # {"required": bool, "scheduledDate": iso str, "instructions": str}
    follow_up: Mapped[Optional[dict]] = mapped_column(json_col_type(), nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # minutes
    meeting_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

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
    doctor = relationship("User", foreign_keys=[doctor_id])
    report = relationship("SymptomReport")

    def has_participant(self, user) -> bool:
        """True when ``user`` is this consultation's patient or doctor, in that role."""
        if user.is_patient:
            return self.patient_id == str(user.id)
        if user.is_doctor:
            return self.doctor_id == str(user.id)
        return False
