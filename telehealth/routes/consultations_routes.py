# telehealth/routes/consultations_routes.py
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, selectinload

from telehealth.auth.deps import get_current_user
from telehealth.db.session import get_db
from telehealth.models.consultation import Consultation
from telehealth.models.enums import ConsultationStatus, ConsultationType, UserRole
from telehealth.models.symptom_report import SymptomReport
from telehealth.models.user import User
from telehealth.schemas.base import MessageOut, parse_update
from telehealth.schemas.consultations import (
    ConsultationCreate,
    ConsultationOut,
    ConsultationPage,
    ConsultationUpdate,
    PatientConsultationUpdate,
)
from telehealth.utils.exceptions import Forbidden, NotFound, ValidationError, field_error
from telehealth.utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, paginate

router = APIRouter(prefix="/api/consultations", tags=["consultations"])
logger = logging.getLogger("telehealth")

_WITH_PARTIES = (
    selectinload(Consultation.patient),
    selectinload(Consultation.doctor),
    selectinload(Consultation.report),
)


def _get_consultation(db: Session, consultation_id: str) -> Consultation:
    consultation = (
        db.query(Consultation)
        .options(*_WITH_PARTIES)
        .filter(Consultation.id == consultation_id)
        .first()
    )
    if not consultation:
        raise NotFound("Consultation not found")
    return consultation


def _get_participant(db: Session, consultation_id: str, user: User) -> Consultation:
    consultation = _get_consultation(db, consultation_id)
    if not consultation.has_participant(user):
        raise Forbidden("Access denied")
    return consultation


def _require_user_with_role(db: Session, user_id: Optional[str], role: UserRole, field: str) -> User:
    if not user_id:
        raise field_error(field, f"{field} is required")
    user = db.get(User, str(user_id))
    if not user or user.role != role:
        raise field_error(field, f"{field} must reference an existing {role.value}")
    return user


@router.post("", response_model=ConsultationOut, status_code=status.HTTP_201_CREATED)
def create_consultation(
    payload: ConsultationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Patients book for themselves; doctors may book on behalf of a patient."""
    patient_id = payload.patient_id
    if current_user.is_patient:
        if patient_id and patient_id != str(current_user.id):
            raise Forbidden("You can only create consultations for yourself")
        patient_id = str(current_user.id)

    patient = _require_user_with_role(db, patient_id, UserRole.PATIENT, "patientId")
    doctor = _require_user_with_role(db, payload.doctor_id, UserRole.DOCTOR, "doctorId")

    if payload.report_id:
        report = db.get(SymptomReport, payload.report_id)
        if not report or report.patient_id != patient.id:
            raise field_error("reportId", "reportId must reference one of the patient's reports")

    consultation = Consultation(
        patient_id=patient.id,
        doctor_id=doctor.id,
        report_id=payload.report_id,
        scheduled_at=payload.scheduled_at,
        type=payload.type,
    )
    db.add(consultation)
    db.commit()
    logger.info({
        "function": "create_consultation",
        "consultation_id": consultation.id,
        "booked_by": current_user.role.value,
    })
    return _get_consultation(db, consultation.id)


@router.get("", response_model=ConsultationPage)
def list_consultations(
    status_filter: Optional[ConsultationStatus] = Query(None, alias="status"),
    consultation_type: Optional[ConsultationType] = Query(None, alias="type"),
    on_date: Optional[date] = Query(None, alias="date"),
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Consultation).options(*_WITH_PARTIES)
    if current_user.is_patient:
        query = query.filter(Consultation.patient_id == str(current_user.id))
    else:
        query = query.filter(Consultation.doctor_id == str(current_user.id))

    if status_filter:
        query = query.filter(Consultation.status == status_filter)
    if consultation_type:
        query = query.filter(Consultation.type == consultation_type)
    if on_date:
        start = datetime.combine(on_date, time.min, tzinfo=timezone.utc)
        query = query.filter(
            Consultation.scheduled_at >= start,
            Consultation.scheduled_at < start + timedelta(days=1),
        )
    query = query.order_by(Consultation.scheduled_at.desc())

    items, total, pages = paginate(query, page, limit)
    return ConsultationPage(
        consultations=[ConsultationOut.model_validate(c) for c in items],
        total_pages=pages,
        current_page=page,
        total=total,
    )


@router.get("/{consultation_id}", response_model=ConsultationOut)
def get_consultation(
    consultation_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_participant(db, consultation_id, current_user)


@router.patch("/{consultation_id}", response_model=ConsultationOut)
def update_consultation(
    consultation_id: str,
    payload: ConsultationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    consultation = _get_participant(db, consultation_id, current_user)

    if current_user.is_patient:
        try:
            parse_update(PatientConsultationUpdate, payload.model_dump(mode="json", exclude_unset=True))
        except ValidationError:
            raise Forbidden("Patients can only cancel consultations")

    changes = payload.changes()
    for name, value in changes.items():
        if name in ("prescription", "follow_up") and value is not None:
            value = value.model_dump(mode="json", by_alias=True)
        setattr(consultation, name, value)
    db.commit()
    logger.info({
        "function": "update_consultation",
        "consultation_id": consultation_id,
        "fields": sorted(changes),
        "by": current_user.role.value,
    })
    return _get_consultation(db, consultation_id)


@router.delete("/{consultation_id}", response_model=MessageOut)
def delete_consultation(
    consultation_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    consultation = _get_participant(db, consultation_id, current_user)
    db.delete(consultation)
    db.commit()
    return MessageOut(message="Consultation deleted successfully")
