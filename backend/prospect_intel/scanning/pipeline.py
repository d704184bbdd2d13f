"""
Multi-Pass Scanning Pipeline

Strict forward-only seven-pass state machine. Each pass's output is
persisted (pass log row + pipeline state progress) before the next pass
starts. Pass 6 can end the run as `blocked`; any exception ends it as
`failed` and propagates to the caller.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from prospect_intel.models import (
    ComplianceFilter,
    PassResult,
    PipelineState,
    SpecialistResult,
    utcnow,
)
from prospect_intel.schemas.prospect import NormalizedProspect
from prospect_intel.scanning import passes
from prospect_intel.scanning.context import PassOutcome, PipelineContext
from prospect_intel.scanning.fusion import fuse
from prospect_intel.scanning.specialists import (
    SpecialistAnalyzer,
    default_specialists,
    run_specialists,
)

logger = logging.getLogger(__name__)

PASS_NAMES = {
    1: "Clean + Extract",
    2: "First-Pass Classification",
    3: "Behavior & Emotion Classification",
    4: "Multi-Agent Deep Scan",
    5: "Fusion Layer",
    6: "Risk & Safety Filter",
    7: "Final Prospect Output",
}
PASS_STATUS_KEYS = {
    1: "clean_extract",
    2: "classification",
    3: "behavior_emotion",
    4: "multi_agent",
    5: "fusion",
    6: "risk_safety",
    7: "final_output",
}
PASS_PROGRESS = {1: 15, 2: 30, 3: 45, 4: 65, 5: 80, 6: 90, 7: 100}
GATING_PASS = 6


@dataclass
class PipelineRun:
    """Outcome of one pipeline execution."""
    pipeline_state_id: UUID
    status: str
    context: PipelineContext
    total_processing_time_ms: int
    block_reason: Optional[str] = None

    @property
    def final_profile(self) -> Optional[Dict[str, Any]]:
        if 7 not in self.context.outcomes:
            return None
        return self.context.results(7)

    @property
    def compliance(self) -> Dict[str, Any]:
        outcome = self.context.outcomes.get(6)
        return outcome.results if outcome else {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pipeline_state_id": str(self.pipeline_state_id),
            "status": self.status,
            "passes_completed": self.context.completed_passes,
            "total_processing_time_ms": self.total_processing_time_ms,
            "block_reason": self.block_reason,
        }


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class MultiPassScanningPipeline:
    """Runs passes 1-7 for one ingestion job."""

    def __init__(self, db: AsyncSession, specialists: Optional[Sequence[SpecialistAnalyzer]] = None):
        self.db = db
        self.specialists = list(specialists) if specialists is not None else default_specialists()
        self._statuses: Dict[str, str] = {}
        self._total_ms = 0
        self._specialist_findings = None

    async def run(
        self,
        job_id: UUID,
        tenant_id: UUID,
        raw_payload: Any,
        prospect: NormalizedProspect
    ) -> PipelineRun:
        self._statuses = {key: "pending" for key in PASS_STATUS_KEYS.values()}
        self._total_ms = 0

        state = PipelineState(
            job_id=job_id,
            current_pass=1,
            progress_percent=0,
            overall_status="processing",
            pass_statuses=dict(self._statuses),
        )
        self.db.add(state)
        await self.db.commit()
        state_id = state.id

        context = PipelineContext(
            job_id=job_id,
            tenant_id=tenant_id,
            raw_payload=raw_payload,
            prospect=prospect,
        )
        current = 1
        logger.info(f"Pipeline {state_id} started for job {job_id}")

        try:
            for number in range(1, 8):
                current = number
                outcome = await self._run_pass(number, context)
                await self._persist(state, outcome)
                context.record(outcome)

                if number == GATING_PASS and not outcome.results["should_proceed"]:
                    reason = passes.block_reason(outcome.results)
                    await self._finish(state, "blocked")
                    logger.warning(f"Pipeline {state_id} blocked at pass 6: {reason}")
                    return PipelineRun(state_id, "blocked", context, self._total_ms, reason)

            await self._finish(state, "completed")
            logger.info(f"Pipeline {state_id} completed in {self._total_ms}ms")
            return PipelineRun(state_id, "completed", context, self._total_ms)

        except Exception as e:
            logger.error(f"Pipeline {state_id} failed at pass {current}: {e}")
            await self._mark_failed(state_id, current, str(e))
            raise

    # ------------------------------------------------------------------
    # Pass dispatch
    # ------------------------------------------------------------------

    async def _run_pass(self, number: int, context: PipelineContext) -> PassOutcome:
        start = time.perf_counter()
        self._specialist_findings = None

        if number == 1:
            results = passes.clean_and_extract(context.raw_payload)
        elif number == 2:
            results = passes.classify(context.results(1)["cleaned_text"], context.prospect)
        elif number == 3:
            results = passes.behavior_and_emotion(context.raw_payload)
        elif number == 4:
            findings = await run_specialists(self.specialists, context)
            self._specialist_findings = findings
            results = {f.specialist_type: f.to_dict() for f in findings}
        elif number == 5:
            results = fuse(context.results(2), context.results(3), context.results(4))
        elif number == 6:
            results = passes.evaluate_compliance(context.raw_payload, await self._active_filters())
        else:
            results = passes.build_final_profile(context)

        return PassOutcome(number, PASS_NAMES[number], results, _elapsed_ms(start))

    async def _active_filters(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(ComplianceFilter).where(ComplianceFilter.is_active == True)
        )
        return [
            {
                "filter_type": f.filter_type,
                "filter_name": f.filter_name,
                "severity": f.severity,
                "patterns": list(f.patterns or []),
            }
            for f in result.scalars().all()
        ]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def _persist(self, state: PipelineState, outcome: PassOutcome):
        self.db.add(PassResult(
            pipeline_state_id=state.id,
            pass_number=outcome.number,
            pass_name=outcome.name,
            results=outcome.results,
            processing_time_ms=outcome.processing_time_ms,
        ))
        for finding in self._specialist_findings or []:
            self.db.add(SpecialistResult(
                pipeline_state_id=state.id,
                specialist_type=finding.specialist_type,
                findings=finding.findings,
                confidence=finding.confidence,
                processing_time_ms=finding.processing_time_ms,
            ))

        self._statuses[PASS_STATUS_KEYS[outcome.number]] = "completed"
        self._total_ms += outcome.processing_time_ms
        state.current_pass = outcome.number
        state.progress_percent = PASS_PROGRESS[outcome.number]
        state.pass_statuses = dict(self._statuses)
        state.total_processing_time_ms = self._total_ms
        await self.db.commit()

    async def _finish(self, state: PipelineState, status: str):
        state.overall_status = status
        state.completed_at = utcnow()
        await self.db.commit()

    async def _mark_failed(self, state_id: UUID, current_pass: int, error: str):
        """Record the failure through a fresh statement; the session may hold a broken transaction."""
        await self.db.rollback()
        self._statuses[PASS_STATUS_KEYS[current_pass]] = "failed"
        try:
            await self.db.execute(
                update(PipelineState)
                .where(PipelineState.id == state_id)
                .values(
                    overall_status="failed",
                    error_message=error,
                    pass_statuses=dict(self._statuses),
                    completed_at=utcnow(),
                )
            )
            await self.db.commit()
        except Exception as mark_error:
            await self.db.rollback()
            logger.error(f"Could not record failure of pipeline {state_id}: {mark_error}")
