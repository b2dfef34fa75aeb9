# telehealth/routes/reports_routes.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, selectinload

from telehealth.auth.deps import get_current_user, require_doctor, require_patient
from telehealth.db.session import get_db
from telehealth.models.enums import ReportSeverity, ReportStatus
from telehealth.models.symptom_report import SymptomReport
from telehealth.models.user import User
from telehealth.schemas.base import MessageOut
from telehealth.schemas.reports import ReportCreate, ReportOut, ReportPage, ReportUpdate
from telehealth.utils.exceptions import Forbidden, NotFound
from telehealth.utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, paginate

router = APIRouter(prefix="/api/reports", tags=["reports"])
logger = logging.getLogger("telehealth")

_WITH_PEOPLE = (selectinload(SymptomReport.patient), selectinload(SymptomReport.reviewer))


def _get_report(db: Session, report_id: str) -> SymptomReport:
    report = (
        db.query(SymptomReport)
        .options(*_WITH_PEOPLE)
        .filter(SymptomReport.id == report_id)
        .first()
    )
    if not report:
        raise NotFound("Report not found")
    return report


@router.post("", response_model=ReportOut, status_code=status.HTTP_201_CREATED)
def create_report(
    payload: ReportCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_patient),
):
    """A patient files a symptom report for themselves."""
    report = SymptomReport(
        patient_id=str(current_user.id),
        symptoms=payload.symptoms,
        description=payload.description,
        audio_transcript=payload.audio_transcript,
        severity=payload.severity,
        duration=payload.duration,
    )
    db.add(report)
    db.commit()
    logger.info({"function": "create_report", "report_id": report.id, "severity": payload.severity.value})
    return _get_report(db, report.id)


@router.get("", response_model=ReportPage)
def list_reports(
    status_filter: Optional[ReportStatus] = Query(None, alias="status"),
    severity: Optional[ReportSeverity] = None,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_doctor),
):
    query = db.query(SymptomReport).options(*_WITH_PEOPLE)
    if status_filter:
        query = query.filter(SymptomReport.status == status_filter)
    if severity:
        query = query.filter(SymptomReport.severity == severity)
    query = query.order_by(SymptomReport.created_at.desc())

    items, total, pages = paginate(query, page, limit)
    return ReportPage(
        reports=[ReportOut.model_validate(r) for r in items],
        total_pages=pages,
        current_page=page,
        total=total,
    )


@router.get("/patient/{patient_id}", response_model=List[ReportOut])
def list_patient_reports(
    patient_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.is_patient and str(current_user.id) != patient_id:
        raise Forbidden("Access denied")
    return (
        db.query(SymptomReport)
        .options(*_WITH_PEOPLE)
        .filter(SymptomReport.patient_id == patient_id)
        .order_by(SymptomReport.created_at.desc())
        .all()
    )


@router.get("/{report_id}", response_model=ReportOut)
def get_report(
    report_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    report = _get_report(db, report_id)
    if current_user.is_patient and report.patient_id != str(current_user.id):
        raise Forbidden("Access denied")
    return report


@router.patch("/{report_id}", response_model=ReportOut)
def review_report(
    report_id: str,
    payload: ReportUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_doctor),
):
    """Doctor review: status, notes and the analysis block. Marks the doctor as reviewer."""
    report = _get_report(db, report_id)
    changes = payload.changes()
    if changes.get("status") is not None:
        report.status = changes["status"]
    if changes.get("review_notes") is not None:
        report.review_notes = changes["review_notes"]
    if changes.get("ai_analysis") is not None:
        report.ai_analysis = changes["ai_analysis"].model_dump(mode="json", by_alias=True)
    report.reviewed_by = str(current_user.id)
    db.commit()
    logger.info({"function": "review_report", "report_id": report_id, "fields": sorted(changes)})
    return _get_report(db, report_id)


@router.delete("/{report_id}", response_model=MessageOut)
def delete_report(
    report_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_doctor),
):
    report = _get_report(db, report_id)
    db.delete(report)
    db.commit()
    return MessageOut(message="Report deleted successfully")
