"""
Celery tasks keeping event registration counts consistent with the ledger.
"""

import asyncio
import logging
from typing import Optional
from uuid import UUID

from .celery_app import celery_app
from ..database import DatabaseManager
from ..services.reconciliation_service import ReconciliationService

logger = logging.getLogger(__name__)


async def run_reconciliation(event_id: Optional[str] = None, database_url: Optional[str] = None) -> dict:
    """
    Reconcile counts using a short-lived database manager.

    Args:
        event_id: Limit the run to one event
        database_url: Override of the configured database URL

    Returns:
        The reconciliation report as a JSON-safe dict
    """
    manager = DatabaseManager(database_url)
    await manager.initialize()
    try:
        async with manager.get_session() as session:
            report = await ReconciliationService(session).reconcile(
                UUID(event_id) if event_id else None
            )
        return report.model_dump(mode="json")
    finally:
        await manager.close()


@celery_app.task(bind=True, name="reconcile_event_counts_task", max_retries=3)
def reconcile_event_counts_task(self, event_id: Optional[str] = None):
    """
    Periodic task recomputing ``current_count`` from confirmed registrations.

    Repairs counts left behind by partial failures or member deletions that
    happened outside the registration engine.
    """
    logger.info("Starting event count reconciliation")

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        report = loop.run_until_complete(run_reconciliation(event_id))
    except Exception as exc:
        logger.error(f"Event count reconciliation failed: {exc}")
        raise self.retry(exc=exc, countdown=60)
    finally:
        loop.close()

    logger.info(
        f"Event count reconciliation checked {report['events_checked']} events, "
        f"corrected {len(report['corrections'])}"
    )
    return report
