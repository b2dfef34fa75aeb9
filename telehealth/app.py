# --- telehealth/app.py ---
import asyncio
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Resolve paths early so env vars are available before importing the app modules
BASE_DIR = Path(__file__).resolve().parent
ROOT_DIR = BASE_DIR.parent
ENV_PATH = BASE_DIR / ".env"

if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=True)

from slowapi.errors import RateLimitExceeded  # noqa: E402

from telehealth.db.session import SessionLocal  # noqa: E402
from telehealth.middleware.tracing import TracingMiddleware  # noqa: E402
from telehealth.models import init_db  # noqa: E402
from telehealth.routes import (  # noqa: E402
    alerts_routes,
    auth_routes,
    consultations_routes,
    lab_results_routes,
    reports_routes,
)
from telehealth.seed_user import seed_demo_users  # noqa: E402
from telehealth.services.expiry import ALERT_SWEEP_INTERVAL_SECONDS, run_expiry_sweeper  # noqa: E402
from telehealth.utils.exceptions import register_exception_handlers  # noqa: E402
from telehealth.utils.rate_limit import limiter, rate_limit_handler  # noqa: E402


class JsonFormatter(logging.Formatter):
    def format(self, record):  # type: ignore[override]
        message = record.msg if isinstance(record.msg, dict) else record.getMessage()
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "function": record.funcName,
            "message": message,
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging() -> logging.Logger:
    logger = logging.getLogger("telehealth")
    logger.setLevel(logging.INFO)
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    return logger


logger = configure_logging()


def _cors_origins():
    raw = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
    return [o.strip() for o in raw.split(",") if o.strip()]


def _truthy(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or default).strip().lower() in {"1", "true", "yes", "on"}


app = FastAPI(title="Telehealth API")
app.add_middleware(TracingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---- Rate limiting (slowapi) ----
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

register_exception_handlers(app)

app.include_router(auth_routes.router)
app.include_router(reports_routes.router)
app.include_router(consultations_routes.router)
app.include_router(lab_results_routes.router)
app.include_router(alerts_routes.router)


@app.get("/api/health")
def health():
    return {
        "status": "OK",
        "message": "Telehealth API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _maybe_seed_demo_users() -> None:
    if not _truthy("DEMO_SEED_ON_STARTUP"):
        return
    try:
        with SessionLocal() as db:
            seed_demo_users(db)
    except Exception:
        # Seeding is best-effort; never block startup
        logger.warning("Demo user seeding failed", exc_info=True)


@app.on_event("startup")
async def _startup():
    init_db()
    _maybe_seed_demo_users()
    app.state.expiry_task = asyncio.create_task(run_expiry_sweeper(ALERT_SWEEP_INTERVAL_SECONDS))


@app.on_event("shutdown")
async def _shutdown():
    task = getattr(app.state, "expiry_task", None)
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        logger.info("alert expiry sweeper stopped")
