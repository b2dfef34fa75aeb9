# telehealth/routes/lab_results_routes.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, selectinload

from telehealth.auth.deps import get_current_user, require_doctor
from telehealth.db.session import get_db
from telehealth.models.enums import LabStatus, UserRole
from telehealth.models.lab_result import LabResult
from telehealth.models.user import User
from telehealth.schemas.base import MessageOut
from telehealth.schemas.lab_results import LabResultCreate, LabResultOut, LabResultPage, LabResultUpdate
from telehealth.utils.exceptions import Forbidden, NotFound, field_error
from telehealth.utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, paginate

router = APIRouter(prefix="/api/labresults", tags=["lab results"])
logger = logging.getLogger("telehealth")

_WITH_PEOPLE = (selectinload(LabResult.patient), selectinload(LabResult.orderer))


def _get_lab_result(db: Session, lab_result_id: str) -> LabResult:
    lab_result = (
        db.query(LabResult)
        .options(*_WITH_PEOPLE)
        .filter(LabResult.id == lab_result_id)
        .first()
    )
    if not lab_result:
        raise NotFound("Lab result not found")
    return lab_result


@router.post("", response_model=LabResultOut, status_code=status.HTTP_201_CREATED)
def create_lab_result(
    payload: LabResultCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_doctor),
):
    patient = db.get(User, payload.patient_id)
    if not patient or patient.role != UserRole.PATIENT:
        raise field_error("patientId", "patientId must reference an existing patient")

    lab_result = LabResult(
        patient_id=patient.id,
        test_name=payload.test_name,
        test_date=payload.test_date,
        results=payload.results,
        doctor_notes=payload.doctor_notes,
        file_url=payload.file_url,
        normal_range=payload.normal_range,
        status=payload.status,
        ordered_by=str(current_user.id),
        lab_facility=payload.lab_facility.model_dump(mode="json") if payload.lab_facility else None,
    )
    db.add(lab_result)
    db.commit()
    logger.info({"function": "create_lab_result", "lab_result_id": lab_result.id, "status": payload.status.value})
    return _get_lab_result(db, lab_result.id)


@router.get("", response_model=LabResultPage)
def list_lab_results(
    patient_id: Optional[str] = Query(None, alias="patientId"),
    status_filter: Optional[LabStatus] = Query(None, alias="status"),
    test_name: Optional[str] = Query(None, alias="testName"),
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Patients always get their own results; doctors may filter by patient."""
    query = db.query(LabResult).options(*_WITH_PEOPLE)
    if current_user.is_patient:
        query = query.filter(LabResult.patient_id == str(current_user.id))
    elif patient_id:
        query = query.filter(LabResult.patient_id == patient_id)

    if status_filter:
        query = query.filter(LabResult.status == status_filter)
    if test_name and test_name.strip():
        query = query.filter(LabResult.test_name.ilike(f"%{test_name.strip()}%"))
    query = query.order_by(LabResult.test_date.desc())

    items, total, pages = paginate(query, page, limit)
    return LabResultPage(
        lab_results=[LabResultOut.model_validate(r) for r in items],
        total_pages=pages,
        current_page=page,
        total=total,
    )


@router.get("/{lab_result_id}", response_model=LabResultOut)
def get_lab_result(
    lab_result_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lab_result = _get_lab_result(db, lab_result_id)
    if current_user.is_patient and lab_result.patient_id != str(current_user.id):
        raise Forbidden("Access denied")
    return lab_result


@router.patch("/{lab_result_id}", response_model=LabResultOut)
def update_lab_result(
    lab_result_id: str,
    payload: LabResultUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_doctor),
):
    lab_result = _get_lab_result(db, lab_result_id)
    changes = payload.changes()
    for name, value in changes.items():
        setattr(lab_result, name, value)
    db.commit()
    logger.info({"function": "update_lab_result", "lab_result_id": lab_result_id, "fields": sorted(changes)})
    return _get_lab_result(db, lab_result_id)


@router.delete("/{lab_result_id}", response_model=MessageOut)
def delete_lab_result(
    lab_result_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_doctor),
):
    lab_result = _get_lab_result(db, lab_result_id)
    db.delete(lab_result)
    db.commit()
    return MessageOut(message="Lab result deleted successfully")
