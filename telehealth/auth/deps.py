"""Authentication and role-gating dependencies for FastAPI routes."""

from typing import Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from telehealth.db.session import get_db
from telehealth.models.enums import UserRole
from telehealth.models.user import User
from telehealth.auth import jwt
from telehealth.utils.exceptions import Forbidden, Unauthorized

_bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the authenticated user from the Authorization bearer token."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise Unauthorized("Access token required")

    payload = jwt.verify_access_token(credentials.credentials)
    if not payload:
        raise Unauthorized("Invalid or expired token")

    user = db.get(User, str(payload["sub"]))
    if not user:
        raise Unauthorized("User not found")

    request.state.user_id = str(user.id)
    return user


def require_role(*roles: UserRole) -> Callable[..., User]:
    """Build a dependency that only lets users with one of ``roles`` through."""
    allowed = {UserRole(r) for r in roles}

    def _checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise Forbidden("Insufficient permissions")
        return user

    return _checker


require_doctor = require_role(UserRole.DOCTOR)
require_patient = require_role(UserRole.PATIENT)

