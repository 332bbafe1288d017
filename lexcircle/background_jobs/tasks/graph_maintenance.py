# 📄 File: lexcircle/background_jobs/tasks/graph_maintenance.py
# 🧭 Purpose (Layman Explanation):
# The scheduled job that regularly fixes follower numbers and removes follows pointing at
# accounts that were deleted.
# 🧪 Purpose (Technical Summary):
# Celery tasks wrapping GraphRepairService. Each run opens its own engine and session
# factory, executes the async repair with asyncio.run and disposes the engine afterwards.
# 🔗 Dependencies:
# celery, SQLAlchemy async engine, lexcircle.modules.social_graph
# 🔄 Connected Modules / Calls From:
# Celery beat schedule (celery_config.py), operators triggering tasks manually

import asyncio
import logging
from typing import Any, Dict, Optional

from lexcircle.background_jobs.celery_config import celery_app
from lexcircle.modules.social_graph.domain.services.graph_repair_service import GraphRepairService
from lexcircle.modules.social_graph.infrastructure.database.user_record_store_impl import (
    SQLAlchemyUserRecordStore,
)
from lexcircle.shared.config.settings import get_settings
from lexcircle.shared.core.exceptions import StoreFailureError
from lexcircle.shared.infrastructure.database.connection import DatabaseConnectionManager
from lexcircle.shared.infrastructure.database.session import build_session_factory
from lexcircle.shared.utils.logging import log_context, setup_logging

logger = logging.getLogger(__name__)


async def _run_repair(quick: bool, limit: Optional[int] = None) -> Dict[str, Any]:
    settings = get_settings()
    manager = DatabaseConnectionManager()
    await manager.initialize()
    try:
        store = SQLAlchemyUserRecordStore(build_session_factory(manager.engine))
        service = GraphRepairService(
            store,
            batch_size=settings.GRAPH_REPAIR_BATCH_SIZE,
            quick_repair_default_limit=settings.QUICK_REPAIR_DEFAULT_LIMIT,
        )
        if quick:
            report = await service.quick_repair_counters(limit)
        else:
            report = await service.repair_counters()
        return report.model_dump()
    finally:
        await manager.close()


@celery_app.task(
    bind=True,
    name="lexcircle.background_jobs.tasks.graph_maintenance.repair_subscription_graph",
    autoretry_for=(StoreFailureError,),
    retry_backoff=True,
    max_retries=3,
)
def repair_subscription_graph(self) -> Dict[str, Any]:
    """Full repair: orphan cleanup plus counter correction for every user."""
    setup_logging()
    with log_context(request_id=self.request.id):
        logger.info("Scheduled subscription graph repair started")
        stats = asyncio.run(_run_repair(quick=False))
        logger.info(f"Scheduled subscription graph repair finished: {stats}")
        return stats


@celery_app.task(
    bind=True,
    name="lexcircle.background_jobs.tasks.graph_maintenance.quick_repair_counters",
)
def quick_repair_counters(self, limit: Optional[int] = None) -> Dict[str, Any]:
    setup_logging()
    with log_context(request_id=self.request.id):
        stats = asyncio.run(_run_repair(quick=True, limit=limit))
        logger.info(f"Quick counter repair finished: {stats}")
        return stats
