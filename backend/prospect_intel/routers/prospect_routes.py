"""
Prospect routes - hot list, intelligence, signals, manual merge, stats.
"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from prospect_intel.dependencies import get_orchestrator, get_tenant_id
from prospect_intel.exceptions import ProspectNotFound
from prospect_intel.schemas.ingestion import (
    ProspectResponse,
    ProspectIntelligenceResponse,
    HotSignalsResponse,
    MergeResponse,
)
from prospect_intel.services.orchestrator import MasterOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Prospects"])


@router.get("/prospects/hot", response_model=List[ProspectResponse])
async def list_hot_prospects(
    limit: int = Query(20, ge=1, le=100),
    tenant_id: UUID = Depends(get_tenant_id),
    orchestrator: MasterOrchestrator = Depends(get_orchestrator)
):
    return await orchestrator.get_hot_prospects(tenant_id, limit)


@router.get("/prospects/{prospect_id}/intelligence", response_model=ProspectIntelligenceResponse)
async def get_prospect_intelligence(
    prospect_id: UUID,
    tenant_id: UUID = Depends(get_tenant_id),
    orchestrator: MasterOrchestrator = Depends(get_orchestrator)
):
    """Stored profile plus next action and behavior prediction."""
    try:
        return await orchestrator.get_prospect_intelligence(tenant_id, prospect_id)
    except ProspectNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/prospects/{prospect_id}/hot-signals", response_model=HotSignalsResponse)
async def detect_hot_signals(
    prospect_id: UUID,
    tenant_id: UUID = Depends(get_tenant_id),
    orchestrator: MasterOrchestrator = Depends(get_orchestrator)
):
    try:
        return await orchestrator.detect_hot_prospect_signals(tenant_id, prospect_id)
    except ProspectNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/prospects/{master_id}/merge/{duplicate_id}", response_model=MergeResponse)
async def merge_prospects(
    master_id: UUID,
    duplicate_id: UUID,
    tenant_id: UUID = Depends(get_tenant_id),
    orchestrator: MasterOrchestrator = Depends(get_orchestrator)
):
    """Fold duplicate into master. The duplicate record is deleted."""
    if master_id == duplicate_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Cannot merge a prospect into itself"
        )
    try:
        master = await orchestrator.merge_prospects(tenant_id, master_id, duplicate_id)
    except ProspectNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    logger.info(f"Manual merge {duplicate_id} -> {master_id} for tenant {tenant_id}")
    return MergeResponse(
        master_id=master.id,
        merged_id=duplicate_id,
        interest_tags=list(master.interest_tags or []),
    )


@router.get("/stats")
async def get_stats(
    tenant_id: UUID = Depends(get_tenant_id),
    orchestrator: MasterOrchestrator = Depends(get_orchestrator)
):
    return await orchestrator.get_system_stats(tenant_id)
