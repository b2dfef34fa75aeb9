# telehealth/schemas/consultations.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from telehealth.models.enums import ConsultationStatus, ConsultationType
from telehealth.schemas.base import CamelModel, UpdateModel, utc_datetime
from telehealth.schemas.reports import ReportSummary
from telehealth.schemas.users import UserSummary


class Medication(CamelModel):
    name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    instructions: Optional[str] = None


class Prescription(CamelModel):
    medications: List[Medication] = Field(default_factory=list)
    notes: Optional[str] = None


class FollowUp(CamelModel):
    required: bool = False
    scheduled_date: Optional[datetime] = None
    instructions: Optional[str] = None


class ConsultationCreate(CamelModel):
    # Patients booking for themselves may leave this out
    patient_id: Optional[str] = None
    doctor_id: str
    report_id: Optional[str] = None
    scheduled_at: datetime
    type: ConsultationType

    @field_validator("scheduled_at")
    @classmethod
    def _to_utc(cls, v: datetime) -> datetime:
        return utc_datetime(v)


class ConsultationUpdate(UpdateModel):
    """Everything a participating doctor may change."""

    status: Optional[ConsultationStatus] = None
    notes: Optional[str] = Field(default=None, max_length=10000)
    prescription: Optional[Prescription] = None
    follow_up: Optional[FollowUp] = None
    duration: Optional[int] = Field(default=None, ge=0, description="Minutes")
    meeting_url: Optional[str] = Field(default=None, max_length=1024)

    @field_validator("status")
    @classmethod
    def _status_not_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v


class PatientConsultationUpdate(UpdateModel):
    """Patients may only cancel."""

    status: Literal["cancelled"]


class ConsultationOut(CamelModel):
    id: str
    patient_id: str
    patient: Optional[UserSummary] = None
    doctor_id: str
    doctor: Optional[UserSummary] = None
    report_id: Optional[str] = None
    report: Optional[ReportSummary] = None
    scheduled_at: datetime
    status: ConsultationStatus
    type: ConsultationType
    notes: Optional[str] = None
    prescription: Optional[Prescription] = None
    follow_up: Optional[FollowUp] = None
    duration: Optional[int] = None
    meeting_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ConsultationPage(CamelModel):
    consultations: List[ConsultationOut]
    total_pages: int
    current_page: int
    total: int
