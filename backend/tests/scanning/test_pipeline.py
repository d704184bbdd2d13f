# tests/scanning/test_pipeline.py
"""
Tests for MultiPassScanningPipeline

Coverage:
- Seven passes persisted in order with progress
- Specialist results stored for pass 4
- Compliance gate stops the run before pass 7
- A failing pass marks the pipeline failed and propagates

Run with: pytest tests/scanning/test_pipeline.py -v
"""

import asyncio

import pytest

from sqlalchemy import select

from prospect_intel.models import (
    ComplianceFilter,
    IngestionJob,
    PassResult,
    PipelineState,
    SpecialistResult,
)
from prospect_intel.normalization import normalize
from prospect_intel.scanning import MultiPassScanningPipeline, PASS_PROGRESS
from prospect_intel.scanning.specialists import SpecialistAnalyzer, default_specialists


class BrokenSpecialist(SpecialistAnalyzer):
    specialist_type = "broken"

    async def analyze(self, data):
        raise RuntimeError("inference provider unavailable")


class RendezvousSpecialist(SpecialistAnalyzer):
    """Delegates to a real specialist, but only once every sibling has started"""

    def __init__(self, inner, barrier):
        self.inner = inner
        self.barrier = barrier
        self.specialist_type = inner.specialist_type

    async def analyze(self, data):
        await asyncio.wait_for(self.barrier.wait(), timeout=2)
        return await self.inner.analyze(data)


async def make_job(session_factory, tenant_id, payload):
    async with session_factory() as session:
        job = IngestionJob(tenant_id=tenant_id, source_kind="manual_input", raw_payload=payload)
        session.add(job)
        await session.commit()
        return job.id


async def pass_rows(session_factory, state_id):
    async with session_factory() as session:
        result = await session.execute(
            select(PassResult)
            .where(PassResult.pipeline_state_id == state_id)
            .order_by(PassResult.pass_number)
        )
        return list(result.scalars().all())


JUAN = {
    "name": "Juan Dela Cruz",
    "email": "juan@example.com",
    "budget": "₱5,000",
    "notes": "Interested po ako, magkano ang business package? Excited na ako!",
}


# ============================================================================
# TEST: Completed run
# ============================================================================

class TestCompletedRun:

    @pytest.mark.asyncio
    async def test_all_passes_persisted_in_order(self, db, session_factory, tenant_id):
        job_id = await make_job(session_factory, tenant_id, JUAN)
        pipeline = MultiPassScanningPipeline(db)

        # Execute
        run = await pipeline.run(job_id, tenant_id, JUAN, normalize("manual_input", JUAN))

        # Assert
        assert run.status == "completed"
        rows = await pass_rows(session_factory, run.pipeline_state_id)
        assert [r.pass_number for r in rows] == [1, 2, 3, 4, 5, 6, 7]
        assert rows[6].pass_name == "Final Prospect Output"

        async with session_factory() as session:
            state = await session.get(PipelineState, run.pipeline_state_id)
            assert state.overall_status == "completed"
            assert state.current_pass == 7
            assert state.progress_percent == PASS_PROGRESS[7] == 100
            assert set(state.pass_statuses.values()) == {"completed"}

    @pytest.mark.asyncio
    async def test_final_profile(self, db, session_factory, tenant_id):
        job_id = await make_job(session_factory, tenant_id, JUAN)

        run = await MultiPassScanningPipeline(db).run(
            job_id, tenant_id, JUAN, normalize("manual_input", JUAN)
        )
        profile = run.final_profile

        assert profile["pipeline_passes_completed"] == 7
        assert profile["buying_intent"] == "high"
        assert profile["buying_capacity"] == "medium"
        assert profile["lead_quality"] in {"hot", "warm", "qualified", "cold"}
        assert 0 <= profile["scoutscore_v10"] <= 100
        assert profile["risk_level"] == "low"
        assert set(profile["data_sources"]) == {f"pass_{n}" for n in range(1, 7)}

    @pytest.mark.asyncio
    async def test_specialist_results_stored(self, db, session_factory, tenant_id):
        job_id = await make_job(session_factory, tenant_id, JUAN)

        run = await MultiPassScanningPipeline(db, default_specialists()).run(
            job_id, tenant_id, JUAN, normalize("manual_input", JUAN)
        )

        async with session_factory() as session:
            rows = (await session.execute(
                select(SpecialistResult).where(SpecialistResult.pipeline_state_id == run.pipeline_state_id)
            )).scalars().all()
        assert {r.specialist_type for r in rows} == {"sales_analyst", "investigator", "personality_profiler"}


# ============================================================================
# TEST: Compliance gate
# ============================================================================

class TestComplianceGate:

    @pytest.mark.asyncio
    async def test_blocked_run_has_no_final_output(self, db, session_factory, tenant_id, seeded_industry):
        payload = {**JUAN, "notes": "Join now for guaranteed income!"}
        job_id = await make_job(session_factory, tenant_id, payload)

        # Execute
        run = await MultiPassScanningPipeline(db).run(
            job_id, tenant_id, payload, normalize("manual_input", payload)
        )

        # Assert
        assert run.status == "blocked"
        assert "Guaranteed income claims" in run.block_reason
        assert run.final_profile is None
        assert run.compliance["should_proceed"] is False

        rows = await pass_rows(session_factory, run.pipeline_state_id)
        assert [r.pass_number for r in rows] == [1, 2, 3, 4, 5, 6]

        async with session_factory() as session:
            state = await session.get(PipelineState, run.pipeline_state_id)
            assert state.overall_status == "blocked"
            assert state.progress_percent == PASS_PROGRESS[6]
            assert state.pass_statuses["final_output"] == "pending"

    @pytest.mark.asyncio
    async def test_inactive_filters_ignored(self, db, session_factory, tenant_id, seeded_industry):
        async with session_factory() as session:
            for row in (await session.execute(select(ComplianceFilter))).scalars():
                row.is_active = False
            await session.commit()

        payload = {**JUAN, "notes": "guaranteed income"}
        job_id = await make_job(session_factory, tenant_id, payload)

        run = await MultiPassScanningPipeline(db).run(
            job_id, tenant_id, payload, normalize("manual_input", payload)
        )

        assert run.status == "completed"


# ============================================================================
# TEST: Failure
# ============================================================================

class TestFailedRun:

    @pytest.mark.asyncio
    async def test_failing_pass_marks_state_failed(self, db, session_factory, tenant_id):
        job_id = await make_job(session_factory, tenant_id, JUAN)
        pipeline = MultiPassScanningPipeline(db, [BrokenSpecialist()])

        # Execute
        with pytest.raises(RuntimeError):
            await pipeline.run(job_id, tenant_id, JUAN, normalize("manual_input", JUAN))

        # Assert
        async with session_factory() as session:
            state = (await session.execute(
                select(PipelineState).where(PipelineState.job_id == job_id)
            )).scalar_one()
            assert state.overall_status == "failed"
            assert "inference provider unavailable" in state.error_message
            assert state.pass_statuses["multi_agent"] == "failed"
            assert state.current_pass == 3

        rows = await pass_rows(session_factory, state.id)
        assert [r.pass_number for r in rows] == [1, 2, 3]


# ============================================================================
# TEST: Pass 4 concurrency
# ============================================================================

class TestSpecialistConcurrency:

    @pytest.mark.asyncio
    async def test_specialists_run_at_the_same_time(self, db, session_factory, tenant_id):
        """Each specialist waits for all three to be in flight; sequential execution would time out"""
        job_id = await make_job(session_factory, tenant_id, JUAN)
        inner = default_specialists()
        barrier = asyncio.Barrier(len(inner))
        pipeline = MultiPassScanningPipeline(db, [RendezvousSpecialist(s, barrier) for s in inner])

        # Execute
        run = await pipeline.run(job_id, tenant_id, JUAN, normalize("manual_input", JUAN))

        # Assert
        assert run.status == "completed"
        assert set(run.context.results(4)) == {s.specialist_type for s in inner}
