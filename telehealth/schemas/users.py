# telehealth/schemas/users.py
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from telehealth.models.enums import UserRole, Gender
from telehealth.schemas.base import CamelModel, UpdateModel, not_blank


# ---------- Registration / login ----------
class RegisterIn(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    first_name: str = Field(max_length=120)
    last_name: str = Field(max_length=120)
    role: UserRole
    phone: Optional[str] = Field(default=None, max_length=40)
    specialization: Optional[str] = Field(default=None, max_length=120)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def _names_not_blank(cls, v):
        return not_blank(v)


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class RefreshIn(CamelModel):
    refresh_token: str


# ---------- Output ----------
class UserSummary(CamelModel):
    """Display fields used wherever another record references a user."""

    id: str
    first_name: str
    last_name: str
    role: UserRole
    specialization: Optional[str] = None


class UserOut(CamelModel):
    id: str
    email: EmailStr
    first_name: str
    last_name: str
    role: UserRole
    phone: Optional[str] = None
    specialization: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    created_at: datetime
    updated_at: datetime


class AuthOut(CamelModel):
    message: str
    user: UserOut
    token: str
    refresh_token: str


class TokenOut(BaseModel):
    token: str


class MeOut(BaseModel):
    user: UserOut


# ---------- Profile updates (one variant per role) ----------
class ProfileUpdate(UpdateModel):
    """Every key any role may send; narrowed per role by the route."""

    first_name: Optional[str] = Field(default=None, max_length=120)
    last_name: Optional[str] = Field(default=None, max_length=120)
    phone: Optional[str] = Field(default=None, max_length=40)
    specialization: Optional[str] = Field(default=None, max_length=120)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def _names_not_blank(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return not_blank(v)


class DoctorProfileUpdate(UpdateModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    specialization: Optional[str] = None


class PatientProfileUpdate(UpdateModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
