"""
Request-scoped dependencies shared by the API routers.
"""
from uuid import UUID

from fastapi import Header, HTTPException, status

from prospect_intel.services.orchestrator import MasterOrchestrator, master_orchestrator


async def get_tenant_id(x_tenant_id: str = Header(..., alias="X-Tenant-ID")) -> UUID:
    """Tenant scope for every request, taken from the X-Tenant-ID header."""
    try:
        return UUID(x_tenant_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID must be a UUID"
        )


def get_orchestrator() -> MasterOrchestrator:
    return master_orchestrator
