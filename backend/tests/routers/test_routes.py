# tests/routers/test_routes.py
"""
API tests for the ingestion and prospect routers.

The app runs in-process over httpx's ASGI transport, so background tasks
finish before the response is returned and no startup hooks run.
"""

import pytest
import pytest_asyncio
from uuid import uuid4

from httpx import ASGITransport, AsyncClient

from prospect_intel.dependencies import get_orchestrator
from prospect_intel.main import app
from prospect_intel.models import IngestionJob, Prospect
from prospect_intel.redis_client import KeyedLock
from prospect_intel.services.orchestrator import MasterOrchestrator
from sqlalchemy import select, func


async def no_sleep(seconds):
    return None


@pytest.fixture
def orchestrator(session_factory):
    return MasterOrchestrator(
        session_factory=session_factory,
        sleep=no_sleep,
        identity_lock=KeyedLock(),
        pattern_lock=KeyedLock(),
    )


@pytest_asyncio.fixture
async def client(orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def headers(tenant_id):
    return {"X-Tenant-ID": str(tenant_id)}


class TestIngestionRoutes:

    @pytest.mark.asyncio
    async def test_ingest_accepted_and_processed(self, client, headers):
        response = await client.post("/api/v1/ingest", headers=headers, json={
            "source_kind": "manual_input",
            "raw_payload": {"name": "Juan Dela Cruz", "email": "juan@example.com"},
        })

        assert response.status_code == 202
        job_id = response.json()["job_id"]
        assert response.json()["status"] == "pending"

        status_response = await client.get(f"/api/v1/ingestion-jobs/{job_id}", headers=headers)
        assert status_response.status_code == 200
        body = status_response.json()
        assert body["status"] == "completed"
        assert body["progress_percent"] == 100

    @pytest.mark.asyncio
    async def test_unknown_source_kind_is_422(self, client, headers, session_factory):
        response = await client.post("/api/v1/ingest", headers=headers, json={
            "source_kind": "fax", "raw_payload": {"name": "Juan"}
        })

        assert response.status_code == 422
        async with session_factory() as session:
            assert (await session.execute(select(func.count(IngestionJob.id)))).scalar_one() == 0

    @pytest.mark.asyncio
    async def test_missing_tenant_header(self, client):
        response = await client.post("/api/v1/ingest", json={
            "source_kind": "manual_input", "raw_payload": {"name": "Juan"}
        })
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_bad_tenant_header(self, client):
        response = await client.get(
            f"/api/v1/ingestion-jobs/{uuid4()}", headers={"X-Tenant-ID": "acme"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_job_from_other_tenant_is_404(self, client, headers):
        response = await client.post("/api/v1/ingest", headers=headers, json={
            "source_kind": "manual_input", "raw_payload": {"name": "Juan"}
        })
        job_id = response.json()["job_id"]

        other = await client.get(
            f"/api/v1/ingestion-jobs/{job_id}", headers={"X-Tenant-ID": str(uuid4())}
        )
        assert other.status_code == 404

    @pytest.mark.asyncio
    async def test_batch_counts_priorities(self, client, headers):
        response = await client.post("/api/v1/ingest/batch", headers=headers, json={"items": [
            {"source_kind": "manual_input", "raw_payload": {"name": "A", "email": "a@example.com"}, "priority": 1},
            {"source_kind": "manual_input", "raw_payload": {"name": "B", "email": "b@example.com"}, "priority": 8},
            {"source_kind": "chatbot_preform", "raw_payload": {"name": "C", "email": "c@example.com"}},
        ]})

        assert response.status_code == 202
        body = response.json()
        assert len(body["jobs"]) == 3
        assert body["high_priority"] == 1
        assert body["normal_priority"] == 2

    @pytest.mark.asyncio
    async def test_batch_with_bad_item_queues_nothing(self, client, headers, session_factory):
        response = await client.post("/api/v1/ingest/batch", headers=headers, json={"items": [
            {"source_kind": "manual_input", "raw_payload": {"name": "A"}},
            {"source_kind": "chatbot_conversation", "raw_payload": {"messages": 42}},
        ]})

        assert response.status_code == 422
        assert response.json()["detail"].startswith("Item 1:")
        async with session_factory() as session:
            assert (await session.execute(select(func.count(IngestionJob.id)))).scalar_one() == 0


class TestProspectRoutes:

    @pytest.mark.asyncio
    async def test_stats_after_ingest(self, client, headers):
        await client.post("/api/v1/ingest", headers=headers, json={
            "source_kind": "manual_input",
            "raw_payload": {"name": "Juan Dela Cruz", "email": "juan@example.com"},
        })
        stats = (await client.get("/api/v1/stats", headers=headers)).json()
        assert stats["total_prospects"] == 1

    @pytest.mark.asyncio
    async def test_intelligence_payload(self, client, headers, session_factory, tenant_id):
        async with session_factory() as session:
            prospect = Prospect(tenant_id=tenant_id, name="Ana", email="ana@example.com")
            session.add(prospect)
            await session.commit()

        response = await client.get(f"/api/v1/prospects/{prospect.id}/intelligence", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["prospect"]["email"] == "ana@example.com"
        assert body["next_action"]["action"] == "send_introduction"

    @pytest.mark.asyncio
    async def test_intelligence_not_found(self, client, headers):
        response = await client.get(f"/api/v1/prospects/{uuid4()}/intelligence", headers=headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_hot_signals(self, client, headers, session_factory, tenant_id):
        async with session_factory() as session:
            prospect = Prospect(
                tenant_id=tenant_id, name="Ana", sentiment="very_positive",
                buying_capacity="very_high", scoutscore_v10=85, past_interactions=[],
            )
            session.add(prospect)
            await session.commit()

        response = await client.post(f"/api/v1/prospects/{prospect.id}/hot-signals", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["hot_score"] == 60
        assert body["is_hot"] is True

    @pytest.mark.asyncio
    async def test_hot_list_limit_validated(self, client, headers):
        response = await client.get("/api/v1/prospects/hot?limit=0", headers=headers)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_merge(self, client, headers, session_factory, tenant_id):
        async with session_factory() as session:
            master = Prospect(tenant_id=tenant_id, email="a@example.com", interest_tags=["business"])
            duplicate = Prospect(tenant_id=tenant_id, email="b@example.com", interest_tags=["health"])
            session.add_all([master, duplicate])
            await session.commit()

        response = await client.post(
            f"/api/v1/prospects/{master.id}/merge/{duplicate.id}", headers=headers
        )

        assert response.status_code == 200
        assert set(response.json()["interest_tags"]) == {"business", "health"}
        async with session_factory() as session:
            remaining = (await session.execute(select(func.count(Prospect.id)))).scalar_one()
        assert remaining == 1

    @pytest.mark.asyncio
    async def test_merge_into_self_is_422(self, client, headers):
        prospect_id = uuid4()
        response = await client.post(
            f"/api/v1/prospects/{prospect_id}/merge/{prospect_id}", headers=headers
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_merge_missing_is_404(self, client, headers):
        response = await client.post(
            f"/api/v1/prospects/{uuid4()}/merge/{uuid4()}", headers=headers
        )
        assert response.status_code == 404


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
