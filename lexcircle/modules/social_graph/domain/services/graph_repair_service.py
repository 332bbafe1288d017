# 📄 File: lexcircle/modules/social_graph/domain/services/graph_repair_service.py
# 🧭 Purpose (Layman Explanation):
# Checks every member's follower and following numbers against their actual lists, removes
# entries pointing at accounts that no longer exist, and fixes whatever is off.
# 🧪 Purpose (Technical Summary):
# Drift detection and correction for the subscription graph: a full repair (counters plus
# orphan cleanup, batched full scan), a quick counters-only repair with a single bulk write,
# and a single-user counter sync. All three are idempotent.
# 🔗 Dependencies:
# UserRecordStore, domain report models, shared logging
# 🔄 Connected Modules / Calls From:
# subscription_graph_service.py, background_jobs/tasks/graph_maintenance.py

import logging
from typing import Optional

from ..models.user_record import QuickRepairReport, RepairReport
from ..repositories.user_record_store import UserRecordStore
from lexcircle.shared.utils.logging import get_logger

logger = logging.getLogger(__name__)
audit_logger = get_logger("lexcircle.audit.social_graph")


class GraphRepairService:
    """
    Repairs drift left behind by partially applied graph mutations and
    by account deletion.

    An orphan is an id in a following / followers set for which no user
    record exists. Soft-deleted users still have a record and are kept.
    """

    def __init__(
        self,
        store: UserRecordStore,
        batch_size: int = 200,
        quick_repair_default_limit: Optional[int] = None
    ):
        self._store = store
        self._batch_size = batch_size
        self._quick_repair_default_limit = quick_repair_default_limit

    async def repair_counters(self) -> RepairReport:
        """
        Full repair pass over every user record.

        For each user: counters are compared with the set sizes, dangling ids
        are dropped from following and followers, and the cleaned sets with
        matching counters are written back when anything was off. Records
        without drift are never written.

        Returns:
            RepairReport: Aggregate statistics of the pass
        """
        report = RepairReport()
        logger.info("Starting full subscription graph repair")

        async for batch in self._store.iter_records(self._batch_size):
            referenced = set()
            for record in batch:
                referenced |= record.following | record.followers
            existing = await self._store.exists_many(referenced)

            for record in batch:
                report.users_scanned += 1

                counters_wrong = not record.counters_match()
                if counters_wrong:
                    report.incorrect_counters += 1
                    logger.info(
                        f"Counter drift for {record.username}: following "
                        f"{record.following_count}/{len(record.following)}, followers "
                        f"{record.followers_count}/{len(record.followers)}"
                    )

                following = record.following & existing
                followers = record.followers & existing
                orphans = (
                    len(record.following) - len(following)
                    + len(record.followers) - len(followers)
                )
                if orphans:
                    report.users_with_orphans += 1
                    report.orphaned_references_removed += orphans
                    logger.info(f"Removing {orphans} orphaned references from {record.username}")

                if counters_wrong or orphans:
                    await self._store.replace_relations(record.user_id, following, followers)
                    report.users_corrected += 1

        audit_logger.log_business_event(
            "graph_repair_completed",
            f"Subscription graph repair finished: {report.users_corrected} users corrected",
            extra=report.model_dump()
        )
        return report

    async def quick_repair_counters(self, limit: Optional[int] = None) -> QuickRepairReport:
        """
        Counters-only repair: recompute counters from the current set sizes
        without checking that referenced users exist, and write all
        corrections in one bulk update.

        Args:
            limit: Maximum number of users to inspect (None = configured default)
        """
        snapshots = await self._store.counter_snapshots(limit if limit is not None else self._quick_repair_default_limit)
        corrections = {
            s.user_id: (s.actual_following, s.actual_followers)
            for s in snapshots
            if s.drifted
        }
        await self._store.bulk_set_counters(corrections)

        report = QuickRepairReport(users_scanned=len(snapshots), corrections=len(corrections))
        audit_logger.log_business_event(
            "graph_quick_repair_completed",
            f"Quick counter repair finished: {report.corrections} corrections",
            extra=report.model_dump()
        )
        return report

    async def sync_user_counters(self, user_id: str) -> bool:
        """
        Recompute one user's counters from the set sizes.

        Returns:
            bool: True if the stored counters were wrong and have been rewritten
        """
        record = await self._store.get_by_id(user_id)
        if record is None or record.counters_match():
            return False

        await self._store.recompute_counters(user_id)
        logger.info(f"Counters synchronized for {record.username}")
        return True
