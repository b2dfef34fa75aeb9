"""Alert targeting, visibility and read-state.

Visibility rule: an alert is visible to a user when the user's id is one of
its target users, the user's role is one of its target roles, or it has no
targets at all (a broadcast). Feeds are ordered by severity rank, then newest
first. Read state lives in ``alert_read_receipts``, one row per (alert, user).
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Set

from sqlalchemy import and_, case, exists, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from telehealth.db.types import utcnow
from telehealth.models.alert import (
    Alert,
    AlertReadReceipt,
    AlertTargetRole,
    alert_target_users,
)
from telehealth.models.enums import SEVERITY_RANK, AlertSeverity, AlertType, UserRole
from telehealth.models.symptom_report import SymptomReport
from telehealth.models.user import User
from telehealth.schemas.alerts import (
    AlertCreate,
    AlertMetadataIn,
    AlertMetadataOut,
    AlertOut,
    AlertPage,
    AlertUpdate,
    GeographicArea,
    GeoPoint,
)
from telehealth.schemas.reports import ReportSummary
from telehealth.schemas.users import UserSummary
from telehealth.utils.exceptions import Forbidden, NotFound, field_error
from telehealth.utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, check_page_params, paginate

logger = logging.getLogger("telehealth")

severity_rank = case(SEVERITY_RANK, value=Alert.severity, else_=0)

_EAGER = (
    selectinload(Alert.target_users),
    selectinload(Alert.target_role_links),
    selectinload(Alert.related_reports),
)


# ---------------- Visibility ----------------
def is_visible_to(alert: Alert, user_id: str, role: Optional[str]) -> bool:
    target_ids = set(alert.target_user_ids)
    target_roles = {UserRole(r) for r in alert.target_roles}
    if not target_ids and not target_roles:
        return True
    if str(user_id) in target_ids:
        return True
    return role is not None and UserRole(role) in target_roles


def visibility_clause(user_id: str, role: Optional[str]):
    """SQL form of is_visible_to, correlated against ``alerts``."""
    targets_user = exists().where(
        alert_target_users.c.alert_id == Alert.id,
        alert_target_users.c.user_id == str(user_id),
    )
    has_user_targets = exists().where(alert_target_users.c.alert_id == Alert.id)
    has_role_targets = exists().where(AlertTargetRole.alert_id == Alert.id)
    clauses = [targets_user, and_(~has_user_targets, ~has_role_targets)]
    if role is not None:
        clauses.append(
            exists().where(
                AlertTargetRole.alert_id == Alert.id,
                AlertTargetRole.role == UserRole(role),
            )
        )
    return or_(*clauses)


def not_expired(now: datetime):
    return or_(Alert.expires_at.is_(None), Alert.expires_at > now)


# ---------------- Serialisation ----------------
def _geographic_area(alert: Alert) -> Optional[GeographicArea]:
    point = None
    if alert.geo_longitude is not None and alert.geo_latitude is not None:
        point = GeoPoint(coordinates=[alert.geo_longitude, alert.geo_latitude])
    if point is None and not any((alert.geo_country, alert.geo_region, alert.geo_city, alert.geo_radius_km)):
        return None
    return GeographicArea(
        country=alert.geo_country,
        region=alert.geo_region,
        city=alert.geo_city,
        coordinates=point,
        radius=alert.geo_radius_km,
    )


def alert_to_out(alert: Alert, is_read: bool = False) -> AlertOut:
    return AlertOut(
        id=alert.id,
        type=alert.type,
        title=alert.title,
        message=alert.message,
        severity=alert.severity,
        target_users=[UserSummary.model_validate(u) for u in alert.target_users],
        target_roles=alert.target_roles,
        geographic_area=_geographic_area(alert),
        metadata=AlertMetadataOut(
            symptom_pattern=alert.symptom_pattern or [],
            affected_count=alert.affected_count,
            related_reports=[ReportSummary.model_validate(r) for r in alert.related_reports],
        ),
        is_read=is_read,
        expires_at=alert.expires_at,
        is_active=alert.is_active,
        created_at=alert.created_at,
        updated_at=alert.updated_at,
    )


# ---------------- Reads ----------------
def read_alert_ids(db: Session, user_id: str, alert_ids: Iterable[str]) -> Set[str]:
    ids = list(alert_ids)
    if not ids:
        return set()
    rows = (
        db.query(AlertReadReceipt.alert_id)
        .filter(AlertReadReceipt.user_id == str(user_id), AlertReadReceipt.alert_id.in_(ids))
        .all()
    )
    return {r[0] for r in rows}


def is_read_by(db: Session, alert_id: str, user_id: str) -> bool:
    return bool(read_alert_ids(db, user_id, [alert_id]))


def _load_alert(db: Session, alert_id: str, now: Optional[datetime] = None) -> Alert:
    # Expired rows are treated as gone even before the sweep deletes them
    alert = (
        db.query(Alert)
        .options(*_EAGER)
        .filter(Alert.id == str(alert_id), not_expired(now or utcnow()))
        .first()
    )
    if not alert:
        raise NotFound("Alert not found")
    return alert


def list_alerts(
    db: Session,
    user_id: str,
    role: Optional[str],
    alert_type: Optional[str] = None,
    severity: Optional[str] = None,
    is_active: bool = True,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    now: Optional[datetime] = None,
) -> AlertPage:
    check_page_params(page, limit)
    query = (
        db.query(Alert)
        .options(*_EAGER)
        .filter(
            Alert.is_active == bool(is_active),
            visibility_clause(user_id, role),
            not_expired(now or utcnow()),
        )
    )
    if alert_type:
        query = query.filter(Alert.type == AlertType(alert_type))
    if severity:
        query = query.filter(Alert.severity == AlertSeverity(severity))
    query = query.order_by(severity_rank.desc(), Alert.created_at.desc(), Alert.id)

    items, total, pages = paginate(query, page, limit)
    read_ids = read_alert_ids(db, user_id, (a.id for a in items))
    return AlertPage(
        alerts=[alert_to_out(a, a.id in read_ids) for a in items],
        total_pages=pages,
        current_page=page,
        total=total,
    )


def get_alert(db: Session, alert_id: str, user_id: str, role: Optional[str]) -> AlertOut:
    alert = _load_alert(db, alert_id)
    if not is_visible_to(alert, user_id, role):
        raise Forbidden("Access denied")
    return alert_to_out(alert, is_read_by(db, alert.id, user_id))


def mark_read(db: Session, alert_id: str, user_id: str, role: Optional[str]) -> bool:
    """Record that ``user_id`` has read the alert. Returns False when it already had."""
    alert = _load_alert(db, alert_id)
    if not is_visible_to(alert, user_id, role):
        raise Forbidden("Access denied")
    if is_read_by(db, alert.id, user_id):
        return False

    db.add(AlertReadReceipt(alert_id=alert.id, user_id=str(user_id)))
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request for the same (alert, user) won the insert
        db.rollback()
        logger.info({"function": "mark_read", "status": "duplicate", "alert_id": alert.id})
        return False
    logger.info({"function": "mark_read", "status": "inserted", "alert_id": alert.id, "user_id": str(user_id)})
    return True


# ---------------- Writes (doctor only; gated by the route) ----------------
def _resolve_users(db: Session, ids: List[str]) -> List[User]:
    wanted = list(dict.fromkeys(str(i) for i in ids))
    if not wanted:
        return []
    found = db.query(User).filter(User.id.in_(wanted)).all()
    missing = sorted(set(wanted) - {u.id for u in found})
    if missing:
        raise field_error("targetUsers", f"Unknown user id(s): {', '.join(missing)}")
    by_id = {u.id: u for u in found}
    return [by_id[i] for i in wanted]


def _resolve_reports(db: Session, ids: Optional[List[str]]) -> List[SymptomReport]:
    wanted = list(dict.fromkeys(str(i) for i in (ids or [])))
    if not wanted:
        return []
    found = db.query(SymptomReport).filter(SymptomReport.id.in_(wanted)).all()
    missing = sorted(set(wanted) - {r.id for r in found})
    if missing:
        raise field_error("metadata.relatedReports", f"Unknown report id(s): {', '.join(missing)}")
    by_id = {r.id: r for r in found}
    return [by_id[i] for i in wanted]


def _apply_metadata(db: Session, alert: Alert, metadata: Optional[AlertMetadataIn]) -> None:
    # The metadata block is replaced as a whole
    metadata = metadata or AlertMetadataIn()
    alert.symptom_pattern = metadata.symptom_pattern
    alert.affected_count = metadata.affected_count
    alert.related_reports = _resolve_reports(db, metadata.related_reports)


def create_alert(db: Session, payload: AlertCreate) -> AlertOut:
    alert = Alert(
        type=payload.type,
        title=payload.title,
        message=payload.message,
        severity=payload.severity,
        expires_at=payload.expires_at,
        is_active=True,
    )
    alert.target_users = _resolve_users(db, payload.target_users)
    alert.target_roles = payload.target_roles
    area = payload.geographic_area
    if area is not None:
        alert.geo_country = area.country
        alert.geo_region = area.region
        alert.geo_city = area.city
        alert.geo_radius_km = area.radius
        if area.coordinates is not None:
            alert.geo_longitude, alert.geo_latitude = area.coordinates.coordinates
    _apply_metadata(db, alert, payload.metadata)

    db.add(alert)
    db.commit()
    db.refresh(alert)
    logger.info({
        "function": "create_alert",
        "alert_id": alert.id,
        "type": alert.type.value,
        "severity": alert.severity.value,
        "targets": {"users": len(alert.target_users), "roles": [r.value for r in alert.target_roles]},
    })
    return alert_to_out(alert)


def update_alert(db: Session, alert_id: str, payload: AlertUpdate, user_id: str) -> AlertOut:
    alert = _load_alert(db, alert_id)
    changes = payload.changes()

    if changes.get("is_active") is True and not alert.is_active:
        raise field_error("isActive", "A deactivated alert cannot be reactivated; create a new alert")

    for name in ("title", "message", "severity", "is_active", "expires_at"):
        if name in changes:
            setattr(alert, name, changes[name])
    if "metadata" in changes:
        _apply_metadata(db, alert, changes["metadata"])

    db.commit()
    db.refresh(alert)
    logger.info({"function": "update_alert", "alert_id": alert.id, "fields": sorted(changes)})
    return alert_to_out(alert, is_read_by(db, alert.id, user_id))


def delete_alert(db: Session, alert_id: str) -> None:
    alert = _load_alert(db, alert_id)
    db.delete(alert)
    db.commit()
    logger.info({"function": "delete_alert", "alert_id": str(alert_id)})


# ---------------- Expiry ----------------
def sweep_expired_alerts(db: Session, now: Optional[datetime] = None) -> int:
    """Delete every alert whose expiresAt has passed. Returns how many went."""
    cutoff = now or utcnow()
    expired = (
        db.query(Alert)
        .filter(Alert.expires_at.isnot(None), Alert.expires_at <= cutoff)
        .all()
    )
    for alert in expired:
        db.delete(alert)
    db.commit()
    if expired:
        logger.info({"function": "sweep_expired_alerts", "deleted": len(expired)})
    return len(expired)


__all__ = [
    "is_visible_to",
    "visibility_clause",
    "list_alerts",
    "get_alert",
    "mark_read",
    "create_alert",
    "update_alert",
    "delete_alert",
    "sweep_expired_alerts",
]
