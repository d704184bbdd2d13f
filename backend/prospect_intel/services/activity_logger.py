"""
Job Activity Logger - audit trail of ingestion job status changes
"""

import logging
from typing import Optional, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from prospect_intel.models import JobStatusTransition

logger = logging.getLogger(__name__)


class JobActivityLogger:
    """Logs job status transitions"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def log_transition(
        self,
        job_id: UUID,
        from_status: Optional[str],
        to_status: str,
        reason: Optional[str] = None,
        retry_count: int = 0
    ) -> JobStatusTransition:
        """Stage a transition row; committed with the caller's status change."""
        transition = JobStatusTransition(
            job_id=job_id,
            from_status=from_status,
            to_status=to_status,
            reason=reason,
            retry_count=retry_count,
        )
        self.db.add(transition)
        logger.debug(f"Job {job_id}: {from_status} -> {to_status} ({reason})")
        return transition

    def log_created(self, job_id: UUID):
        return self.log_transition(job_id, None, "pending", "job_enqueued")

    async def history(self, job_id: UUID) -> List[JobStatusTransition]:
        result = await self.db.execute(
            select(JobStatusTransition)
            .where(JobStatusTransition.job_id == job_id)
            .order_by(JobStatusTransition.id)
        )
        return list(result.scalars().all())
