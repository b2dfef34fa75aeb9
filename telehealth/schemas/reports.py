# telehealth/schemas/reports.py
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from telehealth.models.enums import AlertSeverity, ReportSeverity, ReportStatus
from telehealth.schemas.base import CamelModel, UpdateModel, not_blank
from telehealth.schemas.users import UserSummary


class AiAnalysis(CamelModel):
    """Doctor-entered analysis block; nothing in the service computes it."""

    possible_conditions: List[str] = Field(default_factory=list)
    recommended_actions: List[str] = Field(default_factory=list)
    urgency_level: Optional[AlertSeverity] = None


class ReportCreate(CamelModel):
    symptoms: List[str] = Field(..., min_length=1, description="Symptom labels, at least one.")
    description: Optional[str] = Field(default=None, max_length=5000)
    audio_transcript: Optional[str] = Field(default=None, max_length=20000)
    severity: ReportSeverity
    duration: str = Field(..., max_length=120)

    @field_validator("symptoms")
    @classmethod
    def _clean_symptoms(cls, v: List[str]) -> List[str]:
        cleaned = [not_blank(s) for s in v]
        return cleaned

    @field_validator("duration")
    @classmethod
    def _duration_not_blank(cls, v: str) -> str:
        return not_blank(v)

    @field_validator("description", "audio_transcript")
    @classmethod
    def _strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v


class ReportUpdate(UpdateModel):
    status: Optional[ReportStatus] = None
    review_notes: Optional[str] = Field(default=None, max_length=5000)
    ai_analysis: Optional[AiAnalysis] = None

    @field_validator("status")
    @classmethod
    def _status_not_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v


class ReportSummary(CamelModel):
    id: str
    symptoms: List[str]
    severity: ReportSeverity
    status: ReportStatus
    created_at: datetime


class ReportOut(CamelModel):
    id: str
    patient_id: str
    patient: Optional[UserSummary] = None
    symptoms: List[str]
    description: Optional[str] = None
    audio_transcript: Optional[str] = None
    severity: ReportSeverity
    duration: str
    status: ReportStatus
    reviewed_by: Optional[str] = None
    reviewer: Optional[UserSummary] = None
    review_notes: Optional[str] = None
    ai_analysis: Optional[AiAnalysis] = None
    created_at: datetime
    updated_at: datetime


class ReportPage(CamelModel):
    reports: List[ReportOut]
    total_pages: int
    current_page: int
    total: int
