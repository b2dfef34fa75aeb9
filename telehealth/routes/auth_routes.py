# telehealth/routes/auth_routes.py
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from telehealth.auth.deps import get_current_user
from telehealth.auth.jwt import (
    create_access_token,
    create_refresh_token,
    hash_password,
    token_claims,
    verify_password,
    verify_refresh_token,
)
from telehealth.db.session import get_db
from telehealth.models.enums import UserRole
from telehealth.models.user import User
from telehealth.schemas.base import parse_update
from telehealth.schemas.users import (
    AuthOut,
    DoctorProfileUpdate,
    LoginIn,
    MeOut,
    PatientProfileUpdate,
    ProfileUpdate,
    RefreshIn,
    RegisterIn,
    TokenOut,
    UserOut,
)
from telehealth.utils.exceptions import Conflict, Unauthorized, field_error
from telehealth.utils.rate_limit import AUTH_RATE_LIMIT, limiter

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger("telehealth")


def _auth_response(user: User, message: str) -> AuthOut:
    claims = token_claims(user)
    return AuthOut(
        message=message,
        user=UserOut.model_validate(user),
        token=create_access_token(claims),
        refresh_token=create_refresh_token(claims),
    )


@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_RATE_LIMIT)
def register(request: Request, payload: RegisterIn, db: Session = Depends(get_db)):
    email = str(payload.email).lower()
    if db.query(User).filter(User.email == email).first():
        raise Conflict("User already exists with this email", details=[{"field": "email", "message": "email already exists"}])

    if payload.role == UserRole.DOCTOR and not (payload.specialization or "").strip():
        raise field_error("specialization", "Specialization is required for doctors")

    is_doctor = payload.role == UserRole.DOCTOR
    user = User(
        email=email,
        hashed_password=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        phone=payload.phone,
        # Role-specific fields are only kept for their own role
        specialization=payload.specialization.strip() if is_doctor else None,
        date_of_birth=None if is_doctor else payload.date_of_birth,
        gender=None if is_doctor else payload.gender,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info({"function": "register", "user_id": user.id, "role": user.role.value})
    return _auth_response(user, "User registered successfully")


@router.post("/login", response_model=AuthOut)
@limiter.limit(AUTH_RATE_LIMIT)
def login(request: Request, payload: LoginIn, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == str(payload.email).lower()).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise Unauthorized("Invalid email or password")
    return _auth_response(user, "Login successful")


@router.post("/refresh", response_model=TokenOut)
@limiter.limit(AUTH_RATE_LIMIT)
def refresh(request: Request, payload: RefreshIn, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new access token."""
    data = verify_refresh_token(payload.refresh_token)
    if not data:
        raise Unauthorized("Invalid refresh token")
    user = db.get(User, str(data["sub"]))
    if not user:
        raise Unauthorized("User not found")
    return TokenOut(token=create_access_token(token_claims(user)))


@router.get("/me", response_model=MeOut)
def me(current_user: User = Depends(get_current_user)):
    return MeOut(user=UserOut.model_validate(current_user))


@router.patch("/me", response_model=MeOut)
def update_me(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Self-service profile update; the allowed keys depend on the caller's role."""
    variant = DoctorProfileUpdate if current_user.is_doctor else PatientProfileUpdate
    changes = parse_update(variant, payload.changes()).changes()
    for name, value in changes.items():
        setattr(current_user, name, value)
    db.commit()
    db.refresh(current_user)
    return MeOut(user=UserOut.model_validate(current_user))
