# telehealth/seed_user.py
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Allow running from telehealth/ without tweaking PYTHONPATH
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

ENV_PATH = ROOT_DIR / "telehealth" / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=True)

from sqlalchemy.orm import Session

from telehealth.auth.jwt import hash_password
from telehealth.db.session import SessionLocal
from telehealth.models.enums import UserRole
from telehealth.models.user import User

logger = logging.getLogger("telehealth")


def _demo_accounts():
    return [
        {
            "email": os.getenv("DEMO_DOCTOR_EMAIL", "doctor@example.com"),
            "password": os.getenv("DEMO_DOCTOR_PASSWORD", "demo123"),
            "first_name": os.getenv("DEMO_DOCTOR_FIRST_NAME", "Demo"),
            "last_name": os.getenv("DEMO_DOCTOR_LAST_NAME", "Doctor"),
            "role": UserRole.DOCTOR,
            "specialization": os.getenv("DEMO_DOCTOR_SPECIALIZATION", "General Practice"),
        },
        {
            "email": os.getenv("DEMO_PATIENT_EMAIL", "patient@example.com"),
            "password": os.getenv("DEMO_PATIENT_PASSWORD", "demo123"),
            "first_name": os.getenv("DEMO_PATIENT_FIRST_NAME", "Demo"),
            "last_name": os.getenv("DEMO_PATIENT_LAST_NAME", "Patient"),
            "role": UserRole.PATIENT,
            "specialization": None,
        },
    ]


def seed_demo_users(db: Session) -> list:
    """Create the demo doctor and patient unless their emails are taken. Returns the new users."""
    created = []
    for account in _demo_accounts():
        email = (account["email"] or "").strip().lower()
        if not email or not account["password"]:
            continue
        if db.query(User).filter(User.email == email).first():
            continue
        user = User(
            email=email,
            hashed_password=hash_password(account["password"]),
            first_name=account["first_name"],
            last_name=account["last_name"],
            role=account["role"],
            specialization=account["specialization"],
        )
        db.add(user)
        created.append(user)
    db.commit()
    for user in created:
        logger.info({"function": "seed_demo_users", "user_id": user.id, "role": user.role.value})
    return created


def main():
    with SessionLocal() as db:
        created = seed_demo_users(db)
        if not created:
            print("Demo users already exist")
        for user in created:
            print(f"Seeded {user.role.value}: {user.email} (id={user.id})")


if __name__ == "__main__":
    main()
