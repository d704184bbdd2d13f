"""
Master Orchestrator

Entry point for ingestion. Queues raw submissions as IngestionJobs and
drives each one through:

1. Normalize
2. Duplicate-resolve (merge or insert)
3. Seven-pass scanning pipeline
4. Industry detection, industry score, tagging rules
5. Persist the final record
6. Emit learning events

Job states: pending -> processing -> completed | blocked | failed, with
processing -> retrying -> processing on transient errors. A retried job
restarts from normalization; it does not resume mid-pipeline. Jobs left in
retrying or processing by a worker that went away are reclaimed by the queue
sweep once their lease expires, still bounded by the retry ceiling.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Set
from uuid import UUID

from sqlalchemy import select, update, func, desc, and_, or_
from sqlalchemy.ext.asyncio import async_sessionmaker

from prospect_intel.config import settings
from prospect_intel.database import AsyncSessionLocal
from prospect_intel.exceptions import InputError, JobNotFound, ProspectNotFound
from prospect_intel.models import IngestionJob, PipelineState, Prospect, utcnow
from prospect_intel.normalization import normalization_engine
from prospect_intel.normalization.text import flatten_strings, mentions_any
from prospect_intel.schemas.prospect import NormalizedProspect, SourceKind
from prospect_intel.scanning.fusion import hot_prospect_score
from prospect_intel.scanning.pipeline import MultiPassScanningPipeline
from prospect_intel.scanning.specialists import SpecialistAnalyzer
from prospect_intel.services.activity_logger import JobActivityLogger
from prospect_intel.services.crowd_learning import CrowdLearningStore
from prospect_intel.services.deduplication import DuplicateResolver
from prospect_intel.services.industry_catalog import GENERAL_INDUSTRY
from prospect_intel.services.industry_model import IndustryModelEngine

logger = logging.getLogger(__name__)

HOT_PHRASES = (
    "how to join", "paano sumali", "magkano", "how much", "price", "presyo",
    "pwede ba", "can i", "interested", "gusto ko", "i want", "sign up", "register",
)
TERMINAL_STATUSES = ("completed", "failed", "blocked")


@dataclass
class JobTicket:
    """Snapshot of a claimed job; workers never hold the ORM row across attempts."""
    id: UUID
    tenant_id: UUID
    source_kind: str
    raw_payload: Any
    priority: int
    retry_count: int


def prospect_signals(prospect: Prospect, profile: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Flat view of a prospect used by industry scoring, tagging and recommendations."""
    profile = profile or {}
    return {
        "buying_intent": prospect.buying_intent,
        "sentiment": prospect.sentiment,
        "buying_capacity": prospect.buying_capacity,
        "personality_type": prospect.personality_type,
        "interest_tags": list(prospect.interest_tags or []),
        "product_interest": list(prospect.product_interest or []),
        "objection_types": list(prospect.objection_types or []),
        "buying_signals": list(profile.get("buying_signals") or []),
        "pain_points": list(profile.get("pain_points") or []),
        "scoutscore_v10": prospect.scoutscore_v10,
        "budget": prospect.budget,
        "last_interaction_at": prospect.last_interaction_at,
        "emotion_score": prospect.emotion_score,
    }


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class MasterOrchestrator:
    """Queues, runs and retries ingestion jobs."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        specialists: Optional[Sequence[SpecialistAnalyzer]] = None,
        identity_lock=None,
        pattern_lock=None,
        max_retries: Optional[int] = None,
        retry_base_seconds: Optional[float] = None,
        lease_seconds: Optional[int] = None
    ):
        self.session_factory = session_factory or AsyncSessionLocal
        self._sleep = sleep
        self.specialists = specialists
        self.identity_lock = identity_lock
        self.pattern_lock = pattern_lock
        self.max_retries = settings.MAX_RETRIES if max_retries is None else max_retries
        self.retry_base_seconds = (
            settings.RETRY_BASE_SECONDS if retry_base_seconds is None else retry_base_seconds
        )
        self.lease_seconds = settings.JOB_LEASE_SECONDS if lease_seconds is None else lease_seconds
        self._tasks: Set[asyncio.Task] = set()

    # ========================================================================
    # INTAKE
    # ========================================================================

    async def enqueue(
        self,
        tenant_id: UUID,
        source_kind: str,
        raw_payload: Any,
        priority: Optional[int] = None
    ) -> IngestionJob:
        """
        Validate and queue one submission.

        Raises:
            UnsupportedSourceKind, MalformedPayload: nothing is queued
        """
        kind = normalization_engine.validate(source_kind, raw_payload)

        async with self.session_factory() as db:
            job = IngestionJob(
                tenant_id=tenant_id,
                source_kind=kind.value,
                raw_payload=raw_payload,
                status="pending",
                priority=priority or settings.DEFAULT_PRIORITY,
                retry_count=0,
            )
            db.add(job)
            await db.flush()
            JobActivityLogger(db).log_created(job.id)
            await db.commit()

        logger.info(f"Queued job {job.id} ({kind.value}, priority={job.priority}) for tenant {tenant_id}")
        return job

    async def ingest(
        self,
        tenant_id: UUID,
        source_kind: str,
        raw_payload: Any,
        priority: Optional[int] = None
    ) -> UUID:
        """Queue a submission and start processing it in the background."""
        job = await self.enqueue(tenant_id, source_kind, raw_payload, priority)
        self._spawn(self.process_job(job.id))
        return job.id

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self):
        """Wait for all background jobs started by this orchestrator."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def batch_ingest(self, tenant_id: UUID, items: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Queue and process a batch. Returns one result per item, in input order.
        Items rejected at intake get an error result instead of a job.
        """
        results: List[Optional[Dict[str, Any]]] = []
        jobs: List[IngestionJob] = []
        positions: Dict[UUID, int] = {}

        for item in items:
            try:
                job = await self.enqueue(
                    tenant_id, item.get("source_kind"), item.get("raw_payload"), item.get("priority")
                )
            except InputError as e:
                results.append({"success": False, "status": "rejected", "error": str(e)})
                continue
            positions[job.id] = len(results)
            results.append(None)
            jobs.append(job)

        for job_result in await self.process_batch([(job.id, job.priority) for job in jobs]):
            results[positions[UUID(job_result["job_id"])]] = job_result
        return results

    async def process_batch(self, jobs: Sequence[tuple]) -> List[Dict[str, Any]]:
        """
        High-priority jobs (priority <= cutoff) run strictly one after another,
        in priority order, before the remainder is processed concurrently.
        """
        high = sorted(
            (j for j in jobs if j[1] <= settings.HIGH_PRIORITY_CUTOFF), key=lambda j: j[1]
        )
        normal = [j for j in jobs if j[1] > settings.HIGH_PRIORITY_CUTOFF]
        logger.info(f"Processing batch: {len(high)} high-priority, {len(normal)} normal")

        results = []
        for job_id, _ in high:
            results.append(await self.process_job(job_id))
        results.extend(await asyncio.gather(*(self.process_job(job_id) for job_id, _ in normal)))
        return results

    # ========================================================================
    # PROCESSING
    # ========================================================================

    async def process_job(self, job_id: UUID) -> Dict[str, Any]:
        """
        Run one job to a terminal state, retrying transient failures.
        Also picks up stranded retrying/processing jobs once their lease expires.
        """
        ticket = await self._claim(job_id)
        if ticket is None:
            logger.info(f"Job {job_id} already claimed or finished, skipping")
            return {"success": False, "job_id": str(job_id), "skipped": True}

        if ticket.retry_count > self.max_retries:
            error = f"Worker lost after {self.max_retries} retries"
            logger.error(f"Job {job_id} failed permanently: {error}")
            await self._transition(
                job_id, "processing", "failed", reason=error, retry_count=self.max_retries,
                error_message=error, completed_at=utcnow(),
            )
            return {"success": False, "job_id": str(job_id), "status": "failed", "error": error}

        while True:
            start = time.perf_counter()
            try:
                result = await self._attempt(ticket)
                result["processing_time_ms"] = _elapsed_ms(start)
                return result

            except InputError as e:
                logger.warning(f"Job {job_id} rejected: {e}")
                await self._transition(
                    job_id, "processing", "failed", reason=str(e), retry_count=ticket.retry_count,
                    error_message=str(e), completed_at=utcnow(),
                )
                return {"success": False, "job_id": str(job_id), "status": "failed", "error": str(e)}

            except Exception as e:
                error = f"{type(e).__name__}: {e}"
                if ticket.retry_count >= self.max_retries:
                    logger.error(f"Job {job_id} failed permanently after {ticket.retry_count} retries: {error}")
                    await self._transition(
                        job_id, "processing", "failed", reason=error, retry_count=ticket.retry_count,
                        error_message=error, completed_at=utcnow(),
                    )
                    return {"success": False, "job_id": str(job_id), "status": "failed", "error": error}

                delay = self.retry_base_seconds * (2 ** ticket.retry_count)
                ticket.retry_count += 1
                logger.warning(
                    f"Job {job_id} attempt failed ({error}); retry {ticket.retry_count}/"
                    f"{self.max_retries} in {delay}s"
                )
                await self._transition(
                    job_id, "processing", "retrying", reason=error, retry_count=ticket.retry_count,
                    error_message=error,
                )
                await self._sleep(delay)

                if await self._claim(job_id, "retrying") is None:
                    return {"success": False, "job_id": str(job_id), "skipped": True}

    def _claimable(self, now=None):
        """
        Jobs a sweep may claim: queued ones, plus retrying or processing jobs
        whose worker went away (no update within the lease).
        """
        cutoff = (now or utcnow()) - timedelta(seconds=self.lease_seconds)
        return or_(
            IngestionJob.status == "pending",
            and_(IngestionJob.status == "retrying", IngestionJob.updated_at < cutoff),
            and_(IngestionJob.status == "processing", IngestionJob.started_at < cutoff),
        )

    async def _claim(self, job_id: UUID, from_status: Optional[str] = None) -> Optional[JobTicket]:
        """
        Atomically move a job into processing; None when another worker got it.

        Without `from_status` any claimable job is taken. A stranded
        processing job counts its lost attempt against the retry budget.
        """
        async with self.session_factory() as db:
            condition = (
                IngestionJob.status == from_status if from_status else self._claimable()
            )
            job = (await db.execute(
                select(IngestionJob).where(and_(IngestionJob.id == job_id, condition))
            )).scalar_one_or_none()
            if job is None:
                return None

            previous = job.status
            retry_count = job.retry_count
            reason = "claimed"
            guard = [IngestionJob.id == job_id, IngestionJob.status == previous]
            if previous == "processing":
                retry_count += 1
                reason = "lease_expired"
                guard.append(IngestionJob.started_at == job.started_at)
            elif previous == "retrying" and not from_status:
                reason = "recovered"

            result = await db.execute(
                update(IngestionJob)
                .where(and_(*guard))
                .values(status="processing", started_at=utcnow(), retry_count=retry_count)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await db.rollback()
                return None

            JobActivityLogger(db).log_transition(
                job_id, previous, "processing", reason, retry_count=retry_count
            )
            await db.commit()
            if reason != "claimed":
                logger.warning(f"Recovered stranded job {job_id} from {previous} (retry {retry_count})")
            return JobTicket(
                id=job.id,
                tenant_id=job.tenant_id,
                source_kind=job.source_kind,
                raw_payload=job.raw_payload,
                priority=job.priority,
                retry_count=retry_count,
            )

    async def _transition(
        self,
        job_id: UUID,
        from_status: str,
        to_status: str,
        reason: Optional[str] = None,
        retry_count: int = 0,
        **values
    ):
        async with self.session_factory() as db:
            await db.execute(
                update(IngestionJob)
                .where(IngestionJob.id == job_id)
                .values(status=to_status, retry_count=retry_count, **values)
            )
            JobActivityLogger(db).log_transition(job_id, from_status, to_status, reason, retry_count)
            await db.commit()

    async def _attempt(self, ticket: JobTicket) -> Dict[str, Any]:
        async with self.session_factory() as db:
            candidate = normalization_engine.normalize(
                ticket.source_kind, ticket.raw_payload, ticket.tenant_id
            )

            resolver = DuplicateResolver(db, self.identity_lock)
            resolution = await resolver.resolve(ticket.tenant_id, candidate)
            prospect = resolution.prospect

            pipeline = MultiPassScanningPipeline(db, self.specialists)
            run = await pipeline.run(ticket.id, ticket.tenant_id, ticket.raw_payload, candidate)

            if run.status == "blocked":
                prospect.lead_stage = "blocked"
                await db.commit()
                await self._transition(
                    ticket.id, "processing", "blocked", reason=run.block_reason,
                    retry_count=ticket.retry_count, block_reason=run.block_reason,
                    prospect_id=prospect.id, completed_at=utcnow(), result=run.to_dict(),
                )
                return {
                    "success": False,
                    "job_id": str(ticket.id),
                    "status": "blocked",
                    "prospect_id": str(prospect.id),
                    "block_reason": run.block_reason,
                    "violations": run.compliance.get("violations", []),
                }

            profile = run.final_profile
            industry_engine = IndustryModelEngine(db)
            payload_text = " ".join(
                flatten_strings(ticket.raw_payload) + [candidate.occupation or ""]
            )
            industry = industry_engine.detect_industry(payload_text)

            self._apply_profile(prospect, profile)
            signals = prospect_signals(prospect, profile)
            prospect.industry = industry
            prospect.industry_score = await industry_engine.calculate_industry_score(signals, industry)
            applied = await industry_engine.apply_tagging_rules(industry, payload_text, signals)
            prospect.applied_tags = sorted(set(prospect.applied_tags or []) | set(applied))
            prospect.last_scanned_at = utcnow()
            await db.commit()

            summary = {
                "pipeline": run.to_dict(),
                "is_new": resolution.is_new,
                "matched_on": resolution.matched_on,
                "industry": industry,
                "scoutscore_v10": prospect.scoutscore_v10,
                "lead_stage": prospect.lead_stage,
                "hot_prospect_score": prospect.hot_prospect_score,
            }
            learning_snapshot = {
                **prospect_signals(prospect, profile),
                "prospect_id": prospect.id,
                "name": prospect.name,
                "occupation": prospect.occupation,
                "location": prospect.location,
                "lead_stage": prospect.lead_stage,
            }

        await self._emit_learning(ticket, candidate, learning_snapshot, industry)
        await self._transition(
            ticket.id, "processing", "completed", reason="pipeline_completed",
            retry_count=ticket.retry_count, prospect_id=learning_snapshot["prospect_id"],
            completed_at=utcnow(), result=summary, error_message=None,
        )
        logger.info(
            f"Job {ticket.id} completed: prospect={learning_snapshot['prospect_id']} "
            f"score={summary['scoutscore_v10']} stage={summary['lead_stage']} industry={industry}"
        )
        return {"success": True, "job_id": str(ticket.id), "status": "completed",
                "prospect_id": str(learning_snapshot["prospect_id"]), **summary}

    @staticmethod
    def _apply_profile(prospect: Prospect, profile: Dict[str, Any]):
        prospect.scoutscore_v10 = profile["scoutscore_v10"]
        prospect.confidence_score = profile["confidence_score"]
        prospect.lead_stage = profile["lead_quality"]
        prospect.buying_intent = profile["buying_intent"]
        prospect.buying_capacity = profile["buying_capacity"]
        prospect.sentiment = profile["sentiment"]
        if profile.get("personality_type") and profile["personality_type"] != "unknown":
            prospect.personality_type = profile["personality_type"]
        if profile.get("emotion_score") is not None:
            prospect.emotion_score = profile["emotion_score"]
        prospect.hot_prospect_score = hot_prospect_score(
            prospect.scoutscore_v10,
            prospect.sentiment,
            prospect.buying_capacity,
            prospect.emotion_score or 0,
        )

    async def _emit_learning(
        self,
        ticket: JobTicket,
        candidate: NormalizedProspect,
        snapshot: Dict[str, Any],
        industry: str
    ):
        """Feed the cross-tenant learning store. Uses its own session."""
        async with self.session_factory() as db:
            store = CrowdLearningStore(db, self.pattern_lock)
            outcome = snapshot["lead_stage"]
            converted = outcome in ("hot", "warm")
            objections = snapshot["objection_types"]
            products = snapshot["product_interest"] or ["general"]

            if snapshot["name"] and snapshot["occupation"]:
                await store.record_name_occupation(snapshot["name"], snapshot["occupation"], industry)
            if snapshot["location"]:
                await store.record_location_industry(snapshot["location"], industry)

            for objection in objections:
                for product in products:
                    await store.record_objection(objection, product, industry)
            if objections:
                await store.update_industry_intelligence(
                    industry, "objections", {"objections": {o: 1 for o in objections}}
                )

            if snapshot["personality_type"] and snapshot["personality_type"] != "unknown":
                await store.record_personality_outcome(snapshot["personality_type"], industry, outcome)

            for signal in snapshot["buying_signals"]:
                await store.record_buying_signal(signal, industry, converted)

            if candidate.source_kind == SourceKind.WEBSITE_CRAWLER and snapshot["occupation"]:
                await store.update_company_registry(
                    snapshot["occupation"], industry, snapshot["product_interest"], objections
                )

            await store.record_learning_event(
                "scan_completed",
                tenant_id=ticket.tenant_id,
                prospect_id=snapshot["prospect_id"],
                data={
                    "job_id": str(ticket.id),
                    "industry": industry,
                    "scoutscore_v10": snapshot["scoutscore_v10"],
                    "lead_stage": outcome,
                },
                outcome="success",
            )

    # ========================================================================
    # READS
    # ========================================================================

    async def get_job_status(self, tenant_id: UUID, job_id: UUID) -> Dict[str, Any]:
        async with self.session_factory() as db:
            job = (await db.execute(
                select(IngestionJob).where(
                    and_(IngestionJob.id == job_id, IngestionJob.tenant_id == tenant_id)
                )
            )).scalar_one_or_none()
            if not job:
                raise JobNotFound(job_id)

            state = (await db.execute(
                select(PipelineState)
                .where(PipelineState.job_id == job_id)
                .order_by(desc(PipelineState.started_at))
                .limit(1)
            )).scalar_one_or_none()

        return {
            "job_id": job.id,
            "status": job.status,
            "source_kind": job.source_kind,
            "priority": job.priority,
            "retry_count": job.retry_count,
            "current_pass": state.current_pass if state else None,
            "progress_percent": state.progress_percent if state else 0,
            "prospect_id": job.prospect_id,
            "error_message": job.error_message,
            "block_reason": job.block_reason,
            "created_at": job.created_at,
            "completed_at": job.completed_at,
        }

    async def _get_prospect(self, db, tenant_id: UUID, prospect_id: UUID) -> Prospect:
        prospect = (await db.execute(
            select(Prospect).where(and_(Prospect.id == prospect_id, Prospect.tenant_id == tenant_id))
        )).scalar_one_or_none()
        if not prospect:
            raise ProspectNotFound(prospect_id)
        return prospect

    async def get_prospect_intelligence(self, tenant_id: UUID, prospect_id: UUID) -> Dict[str, Any]:
        """Persisted record plus next action and prediction, recomputed on every read."""
        async with self.session_factory() as db:
            prospect = await self._get_prospect(db, tenant_id, prospect_id)
            industry = prospect.industry or GENERAL_INDUSTRY
            signals = prospect_signals(prospect)

            industry_engine = IndustryModelEngine(db)
            next_action = await industry_engine.recommend_next_action(signals, industry)
            approach = await industry_engine.get_personality_approach(
                prospect.personality_type or "unknown", industry
            )
            store = CrowdLearningStore(db, self.pattern_lock)
            prediction = await store.predict_prospect_behavior(signals, industry)

        hot_score = prospect.hot_prospect_score or 0
        return {
            "prospect": prospect,
            "next_action": next_action,
            "prediction": prediction,
            "personality_approach": approach,
            "is_hot_prospect": hot_score >= settings.HOT_PROSPECT_THRESHOLD,
            "confidence_level": "high" if (prospect.confidence_score or 0) >= 75 else "medium",
        }

    async def get_hot_prospects(self, tenant_id: UUID, limit: int = 20) -> List[Prospect]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Prospect)
                .where(and_(
                    Prospect.tenant_id == tenant_id,
                    Prospect.hot_prospect_score >= settings.HOT_PROSPECT_THRESHOLD
                ))
                .order_by(desc(Prospect.hot_prospect_score), desc(Prospect.scoutscore_v10))
                .limit(limit)
            )
            return list(result.scalars().all())

    async def detect_hot_prospect_signals(self, tenant_id: UUID, prospect_id: UUID) -> Dict[str, Any]:
        """
        Re-check a prospect for hot buying signals. When hot, the stored hot
        score is replaced by this one, which can lower it as well as raise it.
        """
        async with self.session_factory() as db:
            prospect = await self._get_prospect(db, tenant_id, prospect_id)
            signals: List[str] = []
            score = 0

            for interaction in (prospect.past_interactions or [])[-5:]:
                text = str(interaction.get("content") or interaction.get("message") or "").lower()
                if mentions_any(text, HOT_PHRASES):
                    signals.append("Used hot buying phrase")
                    score += 20

            if (prospect.scoutscore_v10 or 0) >= 80:
                signals.append("High ScoutScore v10")
                score += 25
            if prospect.sentiment in ("positive", "very_positive"):
                signals.append("Positive sentiment")
                score += 15
            if prospect.buying_capacity in ("high", "very_high"):
                signals.append("Strong buying capacity")
                score += 20
            if (prospect.emotion_score or 0) >= 75:
                signals.append("High emotion engagement")
                score += 10

            score = min(score, 100)
            is_hot = score >= 50
            if is_hot and prospect.hot_prospect_score != score:
                prospect.hot_prospect_score = score
                await db.commit()

        return {
            "is_hot": is_hot,
            "hot_score": score,
            "signals": signals,
            "recommended_action": "immediate_follow_up" if is_hot else "continue_nurturing",
        }

    async def merge_prospects(self, tenant_id: UUID, master_id: UUID, duplicate_id: UUID) -> Prospect:
        async with self.session_factory() as db:
            master = await DuplicateResolver(db, self.identity_lock).merge(
                tenant_id, master_id, duplicate_id, reason="manual_merge"
            )
            await db.commit()
            return master

    async def get_system_stats(self, tenant_id: UUID) -> Dict[str, Any]:
        async with self.session_factory() as db:
            totals = (await db.execute(
                select(
                    func.count(Prospect.id),
                    func.avg(Prospect.scoutscore_v10),
                ).where(Prospect.tenant_id == tenant_id)
            )).one()
            hot = (await db.execute(
                select(func.count(Prospect.id)).where(and_(
                    Prospect.tenant_id == tenant_id,
                    Prospect.hot_prospect_score >= settings.HOT_PROSPECT_THRESHOLD
                ))
            )).scalar_one()
            stages = (await db.execute(
                select(Prospect.lead_stage, func.count(Prospect.id))
                .where(Prospect.tenant_id == tenant_id)
                .group_by(Prospect.lead_stage)
            )).all()
            queue = (await db.execute(
                select(IngestionJob.status, func.count(IngestionJob.id))
                .where(IngestionJob.tenant_id == tenant_id)
                .group_by(IngestionJob.status)
            )).all()

        return {
            "total_prospects": totals[0] or 0,
            "hot_prospects": hot or 0,
            "avg_scoutscore": round(float(totals[1] or 0), 2),
            "lead_stage_breakdown": {stage or "unknown": count for stage, count in stages},
            "queue_breakdown": {status: count for status, count in queue},
        }

    async def sweepable_jobs(self, limit: int) -> List[tuple]:
        """(job_id, priority) of queued or stranded jobs, highest priority then oldest first."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(IngestionJob.id, IngestionJob.priority)
                .where(self._claimable())
                .order_by(IngestionJob.priority, IngestionJob.created_at)
                .limit(limit)
            )
            return [(row[0], row[1]) for row in result.all()]


# Process-wide instance used by the API and the queue worker
master_orchestrator = MasterOrchestrator()
