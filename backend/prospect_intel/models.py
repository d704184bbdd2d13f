"""
SQLAlchemy ORM models.

Tables fall into four groups:
1. Ingestion bookkeeping (jobs, status transitions, pipeline state, pass log)
2. Tenant-owned prospect records and their merge log
3. Cross-tenant crowd learning accumulators
4. Read-mostly configuration (industry models, tagging rules, compliance filters)

JSON columns use JSONB on PostgreSQL and plain JSON elsewhere.
"""

from sqlalchemy import (
    Column, String, Boolean, Integer, Float, Text, DateTime, JSON, Uuid, Index,
    ForeignKey, CheckConstraint, UniqueConstraint
)
from sqlalchemy.dialects.postgresql import JSONB
from prospect_intel.database import Base
from datetime import datetime, timezone
import uuid


JSONType = JSON().with_variant(JSONB(), "postgresql")

JOB_STATUSES = ("pending", "processing", "retrying", "completed", "failed", "blocked")
PIPELINE_STATUSES = ("processing", "completed", "failed", "blocked")
TAGGING_RULE_TYPES = ("keyword", "pattern", "sentiment", "behavior")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ============================================================================
# INGESTION JOBS
# ============================================================================

class IngestionJob(Base):
    """One row per raw submission. Mutated only by the orchestrator, never deleted."""
    __tablename__ = "ingestion_jobs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)
    source_kind = Column(String(50), nullable=False)
    raw_payload = Column(JSONType, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    retry_count = Column(Integer, nullable=False, default=0)
    priority = Column(Integer, nullable=False, default=5)
    error_message = Column(Text)
    block_reason = Column(Text)
    prospect_id = Column(Uuid)
    result = Column(JSONType, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'processing', 'retrying', 'completed', 'failed', 'blocked')",
            name="chk_ingestion_job_status"
        ),
        CheckConstraint("priority >= 1", name="chk_ingestion_job_priority"),
        Index("idx_ingestion_jobs_queue", "status", "priority", "created_at"),
    )

    def __repr__(self):
        return f"<IngestionJob {self.id} {self.source_kind} status={self.status}>"


class JobStatusTransition(Base):
    """Append-only audit of job status changes."""
    __tablename__ = "job_status_transitions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(Uuid, ForeignKey("ingestion_jobs.id"), nullable=False, index=True)
    from_status = Column(String(20))
    to_status = Column(String(20), nullable=False)
    reason = Column(Text)
    retry_count = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class PipelineState(Base):
    """One row per pipeline execution of a job (a retried job gets a fresh row)."""
    __tablename__ = "pipeline_states"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    job_id = Column(Uuid, ForeignKey("ingestion_jobs.id"), nullable=False, index=True)
    current_pass = Column(Integer, nullable=False, default=1)
    progress_percent = Column(Integer, nullable=False, default=0)
    overall_status = Column(String(20), nullable=False, default="processing")
    pass_statuses = Column(JSONType, default=dict)
    total_processing_time_ms = Column(Integer, default=0)
    error_message = Column(Text)
    started_at = Column(DateTime(timezone=True), default=utcnow)
    completed_at = Column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint("current_pass BETWEEN 1 AND 7", name="chk_pipeline_current_pass"),
    )


class PassResult(Base):
    """Append-only pass log. Never mutated after insert."""
    __tablename__ = "pass_results"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    pipeline_state_id = Column(Uuid, ForeignKey("pipeline_states.id"), nullable=False)
    pass_number = Column(Integer, nullable=False)
    pass_name = Column(String(100), nullable=False)
    results = Column(JSONType, nullable=False, default=dict)
    processing_time_ms = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("pipeline_state_id", "pass_number", name="uq_pass_result_pass"),
    )


class SpecialistResult(Base):
    """Findings of one pass-4 sub-analysis."""
    __tablename__ = "specialist_results"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    pipeline_state_id = Column(Uuid, ForeignKey("pipeline_states.id"), nullable=False, index=True)
    specialist_type = Column(String(50), nullable=False)
    findings = Column(JSONType, default=dict)
    confidence = Column(Float, default=0)
    processing_time_ms = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)


# ============================================================================
# PROSPECTS
# ============================================================================

class Prospect(Base):
    """
    Tenant-owned ScoutScore record.

    Created empty by the duplicate resolver, populated when a pipeline run
    completes, and hard-deleted only when absorbed by a merge.
    """
    __tablename__ = "prospects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)

    # Identity and contact
    name = Column(String(255))
    first_name = Column(String(100))
    last_name = Column(String(100))
    email = Column(String(255))
    phone = Column(String(50))
    external_id = Column(String(255))
    location = Column(String(255))
    occupation = Column(String(255))

    # Normalized signals
    interest_tags = Column(JSONType, default=list)
    product_interest = Column(JSONType, default=list)
    objection_types = Column(JSONType, default=list)
    budget = Column(Float)
    buying_capacity = Column(String(20), default="medium")
    buying_timeline = Column(String(20), default="unknown")
    sentiment = Column(String(20), default="neutral")
    personality_type = Column(String(20), default="unknown")
    emotion_score = Column(Float, default=50)
    past_interactions = Column(JSONType, default=list)
    channel = Column(String(50))
    source_kind = Column(String(50))
    quality_score = Column(Float, default=0)
    extra = Column(JSONType, default=dict)

    # Pipeline output
    scoutscore_v10 = Column(Float)
    confidence_score = Column(Float)
    hot_prospect_score = Column(Float, default=0)
    buying_intent = Column(String(20))
    industry = Column(String(50))
    industry_score = Column(Float)
    lead_stage = Column(String(20), default="new")
    applied_tags = Column(JSONType, default=list)

    last_interaction_at = Column(DateTime(timezone=True))
    last_scanned_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("tenant_id", "email", name="uq_prospect_tenant_email"),
        Index("idx_prospects_tenant_phone", "tenant_id", "phone"),
        Index("idx_prospects_tenant_external_id", "tenant_id", "external_id"),
        Index("idx_prospects_tenant_hot_score", "tenant_id", "hot_prospect_score"),
        CheckConstraint(
            "scoutscore_v10 IS NULL OR (scoutscore_v10 >= 0 AND scoutscore_v10 <= 100)",
            name="chk_prospect_scoutscore_range"
        ),
    )

    def __repr__(self):
        return f"<Prospect {self.id} {self.email or self.phone or self.name}>"


class ProspectMergeLog(Base):
    """Audit of every record absorbed by a merge."""
    __tablename__ = "prospect_merge_log"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)
    master_prospect_id = Column(Uuid, nullable=False, index=True)
    merged_prospect_id = Column(Uuid, nullable=False)
    merge_reason = Column(String(100), default="duplicate_detected")
    confidence_score = Column(Float, default=95)
    merged_data = Column(JSONType, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow)


# ============================================================================
# CROWD LEARNING (GLOBAL, CROSS-TENANT)
# ============================================================================

class LearningPattern(Base):
    """Keyed accumulator. Written only through CrowdLearningStore.record_pattern."""
    __tablename__ = "learning_patterns"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    pattern_type = Column(String(50), nullable=False)
    pattern_key = Column(String(255), nullable=False)
    pattern_data = Column(JSONType, nullable=False, default=dict)
    industries = Column(JSONType, default=list)
    occurrence_count = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("pattern_type", "pattern_key", name="uq_learning_pattern_key"),
        Index("idx_learning_patterns_type_count", "pattern_type", "occurrence_count"),
    )


class IndustryIntelligence(Base):
    __tablename__ = "industry_intelligence"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    industry = Column(String(50), nullable=False)
    intelligence_type = Column(String(50), nullable=False)
    data = Column(JSONType, default=dict)
    sample_size = Column(Integer, default=0)
    confidence_level = Column(Integer, default=30)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("industry", "intelligence_type", name="uq_industry_intelligence_type"),
    )


class CompanyRegistry(Base):
    __tablename__ = "company_registry"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_key = Column(String(255), nullable=False, unique=True)
    display_name = Column(String(255))
    industry = Column(String(50))
    mention_count = Column(Integer, default=1)
    data = Column(JSONType, default=dict)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class LearningEvent(Base):
    """Append-only feedback events."""
    __tablename__ = "learning_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_type = Column(String(50), nullable=False, index=True)
    tenant_id = Column(Uuid, index=True)
    prospect_id = Column(Uuid)
    event_data = Column(JSONType, default=dict)
    outcome = Column(String(20))
    learning_value = Column(Float, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)


# ============================================================================
# CONFIGURATION TABLES
# ============================================================================

class IndustryModel(Base):
    """Per-industry scoring weights, pain points and playbooks."""
    __tablename__ = "industry_models"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    industry = Column(String(50), nullable=False, unique=True)
    display_name = Column(String(100))
    pain_points = Column(JSONType, default=list)
    common_objections = Column(JSONType, default=list)
    buying_signals = Column(JSONType, default=list)
    personality_approaches = Column(JSONType, default=dict)
    scoring_weights = Column(JSONType, default=dict)
    objection_responses = Column(JSONType, default=dict)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class IndustryTaggingRule(Base):
    __tablename__ = "industry_tagging_rules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    industry = Column(String(50), nullable=False, index=True)
    rule_name = Column(String(100), nullable=False)
    rule_type = Column(String(20), nullable=False)
    rule_config = Column(JSONType, default=dict)
    tag_to_apply = Column(String(100), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True)

    __table_args__ = (
        CheckConstraint(
            "rule_type IN ('keyword', 'pattern', 'sentiment', 'behavior')",
            name="chk_tagging_rule_type"
        ),
    )


class ComplianceFilter(Base):
    """Owned outside this service; read-only here."""
    __tablename__ = "compliance_filters"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    filter_type = Column(String(50), nullable=False)
    filter_name = Column(String(100), nullable=False)
    severity = Column(String(20), nullable=False, default="medium")
    patterns = Column(JSONType, default=list)
    is_active = Column(Boolean, default=True)

    __table_args__ = (
        CheckConstraint(
            "severity IN ('low', 'medium', 'high', 'critical')",
            name="chk_compliance_filter_severity"
        ),
    )
