from __future__ import annotations

import asyncio
import logging
import os

from starlette.concurrency import run_in_threadpool

from telehealth.db import session as session_mod
from telehealth.services.alerts import sweep_expired_alerts

logger = logging.getLogger("telehealth")

ALERT_SWEEP_INTERVAL_SECONDS = float(os.getenv("ALERT_SWEEP_INTERVAL_SECONDS", "60"))


def sweep_once() -> int:
    with session_mod.SessionLocal() as db:
        return sweep_expired_alerts(db)


async def run_expiry_sweeper(interval_seconds: float = ALERT_SWEEP_INTERVAL_SECONDS) -> None:
    """Periodically delete expired alerts until cancelled."""
    logger.info({"function": "run_expiry_sweeper", "interval_seconds": interval_seconds})
    while True:
        try:
            await run_in_threadpool(sweep_once)
        except asyncio.CancelledError:
            raise
        except Exception:
            # Keep sweeping on the next tick; a DB blip must not kill the loop
            logger.exception("alert expiry sweep failed")
        await asyncio.sleep(interval_seconds)
