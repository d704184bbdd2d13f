"""
Ingestion routes - queue raw submissions and monitor their jobs.
"""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, BackgroundTasks

from prospect_intel.config import settings
from prospect_intel.dependencies import get_orchestrator, get_tenant_id
from prospect_intel.exceptions import InputError, JobNotFound
from prospect_intel.normalization import normalization_engine
from prospect_intel.schemas.ingestion import (
    IngestRequest,
    BatchIngestRequest,
    IngestResponse,
    BatchIngestResponse,
    JobStatusResponse,
)
from prospect_intel.services.orchestrator import MasterOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Ingestion"])


@router.post("/ingest", response_model=IngestResponse, status_code=status.HTTP_202_ACCEPTED)
async def ingest(
    request: IngestRequest,
    background_tasks: BackgroundTasks,
    tenant_id: UUID = Depends(get_tenant_id),
    orchestrator: MasterOrchestrator = Depends(get_orchestrator)
):
    """Queue one raw submission. Processing continues in the background."""
    try:
        job = await orchestrator.enqueue(
            tenant_id, request.source_kind, request.raw_payload, request.priority
        )
    except InputError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    background_tasks.add_task(orchestrator.process_job, job.id)
    return IngestResponse(job_id=job.id, status=job.status)


@router.post("/ingest/batch", response_model=BatchIngestResponse, status_code=status.HTTP_202_ACCEPTED)
async def ingest_batch(
    request: BatchIngestRequest,
    background_tasks: BackgroundTasks,
    tenant_id: UUID = Depends(get_tenant_id),
    orchestrator: MasterOrchestrator = Depends(get_orchestrator)
):
    """
    Queue a batch. Every item is validated before anything is queued, so a
    rejected batch leaves no jobs behind.
    """
    for index, item in enumerate(request.items):
        try:
            normalization_engine.validate(item.source_kind, item.raw_payload)
        except InputError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Item {index}: {e}"
            )

    jobs = []
    for item in request.items:
        jobs.append(await orchestrator.enqueue(
            tenant_id, item.source_kind, item.raw_payload, item.priority
        ))

    background_tasks.add_task(orchestrator.process_batch, [(job.id, job.priority) for job in jobs])

    high = sum(1 for job in jobs if job.priority <= settings.HIGH_PRIORITY_CUTOFF)
    logger.info(f"Queued batch of {len(jobs)} for tenant {tenant_id} ({high} high priority)")
    return BatchIngestResponse(
        jobs=[IngestResponse(job_id=job.id, status=job.status) for job in jobs],
        high_priority=high,
        normal_priority=len(jobs) - high,
    )


@router.get("/ingestion-jobs/{job_id}", response_model=JobStatusResponse)
async def get_ingestion_job(
    job_id: UUID,
    tenant_id: UUID = Depends(get_tenant_id),
    orchestrator: MasterOrchestrator = Depends(get_orchestrator)
):
    """Current status and pipeline progress of a job."""
    try:
        return await orchestrator.get_job_status(tenant_id, job_id)
    except JobNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
