import asyncio
import logging
from typing import Dict, Optional

from sqlmodel import Session

from app.database import engine
from app.services.order_status import reconcile_order_statuses

logger = logging.getLogger(__name__)


def run_status_reconciliation() -> Optional[Dict[str, int]]:
    """One reconcile tick. Failures are logged so the next tick can retry."""
    try:
        with Session(engine) as session:
            return reconcile_order_statuses(session)
    except Exception:
        logger.exception("Order status reconciliation tick failed")
        return None


async def status_reconciliation_loop(interval_seconds: int):
    logger.info("Order status reconciliation started (every %ss)", interval_seconds)
    while True:
        try:
            await asyncio.to_thread(run_status_reconciliation)
            await asyncio.sleep(interval_seconds)
        except asyncio.CancelledError:
            logger.info("Order status reconciliation stopped")
            raise
