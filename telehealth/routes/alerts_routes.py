# telehealth/routes/alerts_routes.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from telehealth.auth.deps import get_current_user, require_doctor
from telehealth.db.session import get_db
from telehealth.models.enums import AlertSeverity, AlertType
from telehealth.models.user import User
from telehealth.schemas.alerts import AlertCreate, AlertOut, AlertPage, AlertUpdate
from telehealth.schemas.base import MessageOut
from telehealth.services import alerts as alert_service
from telehealth.utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE

router = APIRouter(prefix="/api/alerts", tags=["alerts"])


@router.post("", response_model=AlertOut, status_code=status.HTTP_201_CREATED)
def create_alert(
    payload: AlertCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_doctor),
):
    return alert_service.create_alert(db, payload)


@router.get("", response_model=AlertPage)
def list_alerts(
    alert_type: Optional[AlertType] = Query(None, alias="type"),
    severity: Optional[AlertSeverity] = None,
    is_active: bool = Query(True, alias="isActive"),
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """The caller's feed: visible, unexpired alerts, most severe first."""
    return alert_service.list_alerts(
        db,
        user_id=str(current_user.id),
        role=current_user.role,
        alert_type=alert_type,
        severity=severity,
        is_active=is_active,
        page=page,
        limit=limit,
    )


@router.get("/{alert_id}", response_model=AlertOut)
def get_alert(
    alert_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return alert_service.get_alert(db, alert_id, str(current_user.id), current_user.role)


@router.patch("/{alert_id}/read", response_model=MessageOut)
def mark_alert_read(
    alert_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    alert_service.mark_read(db, alert_id, str(current_user.id), current_user.role)
    return MessageOut(message="Alert marked as read")


@router.patch("/{alert_id}", response_model=AlertOut)
def update_alert(
    alert_id: str,
    payload: AlertUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_doctor),
):
    return alert_service.update_alert(db, alert_id, payload, str(current_user.id))


@router.delete("/{alert_id}", response_model=MessageOut)
def delete_alert(
    alert_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_doctor),
):
    alert_service.delete_alert(db, alert_id)
    return MessageOut(message="Alert deleted successfully")
