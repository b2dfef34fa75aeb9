# telehealth/schemas/lab_results.py
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from telehealth.models.enums import LabStatus
from telehealth.schemas.base import CamelModel, UpdateModel, not_blank, utc_datetime
from telehealth.schemas.users import UserSummary


class LabFacility(CamelModel):
    name: str
    address: Optional[str] = None
    contact: Optional[str] = None


class LabResultCreate(CamelModel):
    patient_id: str
    test_name: str = Field(..., max_length=255)
    test_date: datetime
    results: str
    doctor_notes: Optional[str] = None
    file_url: Optional[str] = Field(default=None, max_length=1024)
    normal_range: Optional[str] = Field(default=None, max_length=255)
    status: LabStatus
    lab_facility: Optional[LabFacility] = None

    @field_validator("test_name", "results")
    @classmethod
    def _required_text(cls, v: str) -> str:
        return not_blank(v)

    @field_validator("test_date")
    @classmethod
    def _to_utc(cls, v: datetime) -> datetime:
        return utc_datetime(v)


class LabResultUpdate(UpdateModel):
    results: Optional[str] = None
    doctor_notes: Optional[str] = None
    status: Optional[LabStatus] = None
    normal_range: Optional[str] = Field(default=None, max_length=255)

    @field_validator("results", "status")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        if isinstance(v, LabStatus):
            return v
        return not_blank(v)


class LabResultOut(CamelModel):
    id: str
    patient_id: str
    patient: Optional[UserSummary] = None
    test_name: str
    test_date: datetime
    results: Optional[str] = None
    doctor_notes: Optional[str] = None
    file_url: Optional[str] = None
    normal_range: Optional[str] = None
    status: LabStatus
    ordered_by: Optional[str] = None
    orderer: Optional[UserSummary] = None
    lab_facility: Optional[LabFacility] = None
    created_at: datetime
    updated_at: datetime


class LabResultPage(CamelModel):
    lab_results: List[LabResultOut]
    total_pages: int
    current_page: int
    total: int
