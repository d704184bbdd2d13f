"""
Pydantic schemas for ingestion and prospect read APIs
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any, Union
from uuid import UUID
from datetime import datetime


class IngestRequest(BaseModel):
    """Single raw submission"""
    source_kind: str
    raw_payload: Union[Dict[str, Any], str]
    priority: int = Field(default=5, ge=1, le=10)

    class Config:
        json_schema_extra = {
            "example": {
                "source_kind": "manual_input",
                "raw_payload": {
                    "name": "Juan Dela Cruz",
                    "email": "juan@example.com",
                    "budget": "₱5,000"
                },
                "priority": 5
            }
        }


class BatchIngestRequest(BaseModel):
    items: List[IngestRequest]

    @field_validator("items")
    @classmethod
    def validate_items_not_empty(cls, v):
        if not v:
            raise ValueError("items list cannot be empty")
        if len(v) > 500:
            raise ValueError("Maximum 500 items per batch")
        return v


class IngestResponse(BaseModel):
    job_id: UUID
    status: str


class BatchIngestResponse(BaseModel):
    jobs: List[IngestResponse]
    high_priority: int
    normal_priority: int


class JobStatusResponse(BaseModel):
    job_id: UUID
    status: str
    source_kind: str
    priority: int
    retry_count: int
    current_pass: Optional[int] = None
    progress_percent: int = 0
    prospect_id: Optional[UUID] = None
    error_message: Optional[str] = None
    block_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ProspectResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    occupation: Optional[str] = None
    interest_tags: List[str] = []
    product_interest: List[str] = []
    objection_types: List[str] = []
    applied_tags: List[str] = []
    budget: Optional[float] = None
    buying_capacity: Optional[str] = None
    sentiment: Optional[str] = None
    personality_type: Optional[str] = None
    emotion_score: Optional[float] = None
    scoutscore_v10: Optional[float] = None
    confidence_score: Optional[float] = None
    hot_prospect_score: Optional[float] = None
    industry: Optional[str] = None
    industry_score: Optional[float] = None
    lead_stage: Optional[str] = None
    quality_score: Optional[float] = None
    last_scanned_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProspectIntelligenceResponse(BaseModel):
    prospect: ProspectResponse
    next_action: Dict[str, Any]
    prediction: Dict[str, Any]
    personality_approach: Dict[str, Any]
    is_hot_prospect: bool
    confidence_level: str


class HotSignalsResponse(BaseModel):
    is_hot: bool
    hot_score: int
    signals: List[str]
    recommended_action: str


class MergeResponse(BaseModel):
    master_id: UUID
    merged_id: UUID
    interest_tags: List[str] = []
