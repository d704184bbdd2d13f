"""
Crowd Learning Store

Cross-tenant statistical patterns, kept as keyed accumulators. Every write
is a read-merge-write of one (pattern_type, pattern_key) row under a key
lock; merges are additive so concurrent or repeated writes never lose
counts. Callers get no way to overwrite a row wholesale.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select, desc, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from prospect_intel.models import (
    CompanyRegistry,
    IndustryIntelligence,
    LearningEvent,
    LearningPattern,
)
from prospect_intel.normalization.text import collapse_whitespace, mentions_any
from prospect_intel.redis_client import create_keyed_lock
from prospect_intel.services.industry_catalog import (
    COMMUNICATION_STYLES,
    DEFAULT_COMMUNICATION_STYLE,
)

logger = logging.getLogger(__name__)

BASELINE_CONVERSION = 50
POSITIVE_OUTCOMES = ("hot", "warm", "converted")

LEARNING_EVENT_VALUES = {
    "conversion": 100,
    "objection_handled": 80,
    "pipeline_moved": 60,
    "message_sent": 40,
    "scan_completed": 20,
}
DEFAULT_EVENT_VALUE = 10

OBJECTION_CATEGORIES = (
    ("price", ("price", "cost", "expensive", "mahal", "afford", "budget")),
    ("time", ("time", "busy", "oras", "later")),
    ("trust", ("trust", "scam", "legit", "pyramid", "fake")),
    ("interest", ("not interested", "ayaw", "no need", "interest")),
)

_pattern_lock = None


def get_pattern_lock():
    global _pattern_lock
    if _pattern_lock is None:
        _pattern_lock = create_keyed_lock(prefix="prospect:pattern")
    return _pattern_lock


# ============================================================================
# PURE HELPERS
# ============================================================================

def confidence_for_sample_size(sample_size: int) -> int:
    """Coarse confidence bands for industry-level aggregates."""
    if sample_size >= 1000:
        return 95
    if sample_size >= 500:
        return 85
    if sample_size >= 100:
        return 75
    if sample_size >= 50:
        return 65
    if sample_size >= 10:
        return 50
    return 30


def learning_value(event_type: str, outcome: Optional[str] = None) -> float:
    value = LEARNING_EVENT_VALUES.get(event_type, DEFAULT_EVENT_VALUE)
    if outcome == "success":
        value *= 1.5
    elif outcome == "failure":
        value *= 0.5
    return min(value, 100)


def categorize_objection(objection: str) -> str:
    lowered = (objection or "").lower()
    for category, terms in OBJECTION_CATEGORIES:
        if lowered == category or mentions_any(lowered, terms):
            return category
    return "other"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _with_conversion_rate(data: Dict[str, Any]) -> Dict[str, Any]:
    if _is_number(data.get("conversions")) and _is_number(data.get("total")):
        total = data["total"]
        data["conversion_rate"] = round(data["conversions"] / total * 100, 2) if total else 0.0
    else:
        data.pop("conversion_rate", None)
    return data


def merge_pattern_data(existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """
    Field-by-field additive merge.

    Numbers sum, nested objects merge recursively, lists union, anything
    else is kept from the first observation. conversion_rate is always
    recomputed from conversions/total (as a percentage), never merged.
    """
    merged = dict(existing or {})
    for key, value in (incoming or {}).items():
        if key == "conversion_rate":
            continue
        current = merged.get(key)
        if _is_number(value) and (current is None or _is_number(current)):
            merged[key] = (current or 0) + value
        elif isinstance(value, dict) and (current is None or isinstance(current, dict)):
            merged[key] = merge_pattern_data(current or {}, value)
        elif isinstance(value, list) and (current is None or isinstance(current, list)):
            base = list(current or [])
            merged[key] = base + [v for v in value if v not in base]
        elif current is None:
            merged[key] = value
    return _with_conversion_rate(merged)


def _pattern_key(*parts: Any) -> str:
    return "_".join(str(p).strip().lower().replace(" ", "_") for p in parts if p is not None)


def _top_keys(counts: Dict[str, Any], limit: int) -> List[str]:
    numeric = {k: v for k, v in (counts or {}).items() if _is_number(v)}
    return [k for k, _ in sorted(numeric.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]]


# ============================================================================
# STORE
# ============================================================================

class CrowdLearningStore:
    """Read/merge-write API over the global learning tables."""

    def __init__(self, db: AsyncSession, key_lock=None):
        self.db = db
        self.key_lock = key_lock or get_pattern_lock()

    # ------------------------------------------------------------------
    # Core accumulator
    # ------------------------------------------------------------------

    async def record_pattern(
        self,
        pattern_type: str,
        pattern_key: str,
        data: Dict[str, Any],
        industries: Optional[Iterable[str]] = None
    ) -> LearningPattern:
        """Upsert with additive merge; one retry when a concurrent insert wins."""
        key = pattern_key.strip().lower()
        async with self.key_lock.hold([f"{pattern_type}:{key}"]):
            try:
                return await self._upsert_pattern(pattern_type, key, data, industries)
            except IntegrityError:
                await self.db.rollback()
                logger.info(f"Concurrent insert on pattern {pattern_type}:{key}, merging instead")
                return await self._upsert_pattern(pattern_type, key, data, industries)

    async def _upsert_pattern(self, pattern_type, key, data, industries) -> LearningPattern:
        pattern = await self.get_pattern(pattern_type, key)
        new_industries = [i for i in (industries or []) if i]

        if pattern:
            pattern.pattern_data = merge_pattern_data(pattern.pattern_data, data)
            current = list(pattern.industries or [])
            pattern.industries = current + [i for i in new_industries if i not in current]
            pattern.occurrence_count = (pattern.occurrence_count or 0) + 1
        else:
            pattern = LearningPattern(
                pattern_type=pattern_type,
                pattern_key=key,
                pattern_data=merge_pattern_data({}, data),
                industries=list(dict.fromkeys(new_industries)),
                occurrence_count=1,
            )
            self.db.add(pattern)

        await self.db.commit()
        return pattern

    async def get_pattern(self, pattern_type: str, pattern_key: str) -> Optional[LearningPattern]:
        result = await self.db.execute(
            select(LearningPattern).where(
                and_(
                    LearningPattern.pattern_type == pattern_type,
                    LearningPattern.pattern_key == pattern_key.strip().lower()
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_top_patterns(self, pattern_type: str, limit: int = 10) -> List[LearningPattern]:
        result = await self.db.execute(
            select(LearningPattern)
            .where(LearningPattern.pattern_type == pattern_type)
            .order_by(desc(LearningPattern.occurrence_count), LearningPattern.pattern_key)
            .limit(limit)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Typed recorders
    # ------------------------------------------------------------------

    async def record_name_occupation(self, name: str, occupation: str, industry: Optional[str] = None):
        return await self.record_pattern(
            "name_occupation",
            _pattern_key(name),
            {"occupations": {occupation.strip().lower(): 1}, "sample_count": 1},
            [industry] if industry else None,
        )

    async def record_location_industry(self, location: str, industry: str):
        return await self.record_pattern(
            "location_industry",
            _pattern_key(location),
            {"industries": {industry: 1}, "sample_count": 1},
            [industry],
        )

    async def record_objection(self, objection: str, product: str, industry: str):
        return await self.record_pattern(
            "objection_product",
            f"{_pattern_key(objection)}:{_pattern_key(product)}",
            {
                "objection_category": categorize_objection(objection),
                "product": product,
                "by_industry": {industry: 1},
                "sample_count": 1,
            },
            [industry],
        )

    async def record_personality_outcome(self, personality: str, industry: str, outcome: str):
        return await self.record_pattern(
            "personality_trait",
            _pattern_key(personality, industry),
            {
                "outcomes": {outcome: 1},
                "sample_count": 1,
                "total": 1,
                "conversions": 1 if outcome in POSITIVE_OUTCOMES else 0,
            },
            [industry],
        )

    async def record_buying_signal(self, signal: str, industry: str, converted: bool):
        return await self.record_pattern(
            "buying_signal",
            _pattern_key(signal),
            {"sample_count": 1, "total": 1, "conversions": 1 if converted else 0},
            [industry],
        )

    async def record_conversion_path(self, path: List[str], industry: str, converted: bool):
        return await self.record_pattern(
            "conversion_path",
            "->".join(_pattern_key(step) for step in path),
            {"steps": len(path), "total": 1, "conversions": 1 if converted else 0},
            [industry],
        )

    async def record_objection_response(self, objection: str, response: str, industry: str, success: bool):
        hit = 1 if success else 0
        return await self.record_pattern(
            "objection_response",
            _pattern_key(categorize_objection(objection)),
            {
                "total": 1,
                "conversions": hit,
                "responses": {response: {"total": 1, "conversions": hit}},
            },
            [industry],
        )

    async def get_successful_objection_responses(self, objection: str, limit: int = 5) -> List[Dict[str, Any]]:
        pattern = await self.get_pattern("objection_response", _pattern_key(categorize_objection(objection)))
        if not pattern:
            return []
        responses = [
            {"response": text, **stats}
            for text, stats in (pattern.pattern_data.get("responses") or {}).items()
            if isinstance(stats, dict)
        ]
        responses.sort(key=lambda r: (-r.get("conversion_rate", 0), -r.get("total", 0)))
        return responses[:limit]

    # ------------------------------------------------------------------
    # Industry intelligence and company registry
    # ------------------------------------------------------------------

    async def update_industry_intelligence(
        self,
        industry: str,
        intelligence_type: str,
        data: Dict[str, Any],
        sample_increment: int = 1
    ) -> IndustryIntelligence:
        async with self.key_lock.hold([f"industry:{industry}:{intelligence_type}"]):
            row = await self._industry_row(industry, intelligence_type)
            if row:
                row.data = merge_pattern_data(row.data, data)
                row.sample_size = (row.sample_size or 0) + sample_increment
            else:
                row = IndustryIntelligence(
                    industry=industry,
                    intelligence_type=intelligence_type,
                    data=merge_pattern_data({}, data),
                    sample_size=sample_increment,
                )
                self.db.add(row)
            row.confidence_level = confidence_for_sample_size(row.sample_size)
            await self.db.commit()
            return row

    async def _industry_row(self, industry: str, intelligence_type: str) -> Optional[IndustryIntelligence]:
        result = await self.db.execute(
            select(IndustryIntelligence).where(
                and_(
                    IndustryIntelligence.industry == industry,
                    IndustryIntelligence.intelligence_type == intelligence_type
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_industry_intelligence(self, industry: str, intelligence_type: Optional[str] = None) -> List[Dict[str, Any]]:
        stmt = select(IndustryIntelligence).where(IndustryIntelligence.industry == industry)
        if intelligence_type:
            stmt = stmt.where(IndustryIntelligence.intelligence_type == intelligence_type)
        result = await self.db.execute(stmt)
        return [
            {
                "industry": row.industry,
                "intelligence_type": row.intelligence_type,
                "data": row.data,
                "sample_size": row.sample_size,
                "confidence": confidence_for_sample_size(row.sample_size or 0),
            }
            for row in result.scalars().all()
        ]

    async def update_company_registry(
        self,
        company_name: str,
        industry: Optional[str] = None,
        products: Iterable[str] = (),
        objections: Iterable[str] = ()
    ) -> CompanyRegistry:
        display = collapse_whitespace(company_name)
        key = display.lower()
        data = {
            "products": {p: 1 for p in products},
            "objections": {o: 1 for o in objections},
        }
        async with self.key_lock.hold([f"company:{key}"]):
            result = await self.db.execute(
                select(CompanyRegistry).where(CompanyRegistry.company_key == key)
            )
            row = result.scalar_one_or_none()
            if row:
                row.mention_count = (row.mention_count or 0) + 1
                row.data = merge_pattern_data(row.data, data)
                row.industry = row.industry or industry
            else:
                row = CompanyRegistry(
                    company_key=key,
                    display_name=display,
                    industry=industry,
                    mention_count=1,
                    data=merge_pattern_data({}, data),
                )
                self.db.add(row)
            await self.db.commit()
            return row

    async def get_company_intelligence(self, company_name: str) -> Optional[Dict[str, Any]]:
        key = (collapse_whitespace(company_name) or "").lower()
        result = await self.db.execute(
            select(CompanyRegistry).where(CompanyRegistry.company_key == key)
        )
        row = result.scalar_one_or_none()
        if not row:
            return None
        return {
            "company": row.display_name,
            "industry": row.industry,
            "mention_count": row.mention_count,
            "top_products": _top_keys(row.data.get("products"), 5),
            "top_objections": _top_keys(row.data.get("objections"), 5),
        }

    # ------------------------------------------------------------------
    # Events and predictions
    # ------------------------------------------------------------------

    async def record_learning_event(
        self,
        event_type: str,
        tenant_id: Optional[UUID] = None,
        prospect_id: Optional[UUID] = None,
        data: Optional[Dict[str, Any]] = None,
        outcome: Optional[str] = None
    ) -> LearningEvent:
        event = LearningEvent(
            event_type=event_type,
            tenant_id=tenant_id,
            prospect_id=prospect_id,
            event_data=data or {},
            outcome=outcome,
            learning_value=learning_value(event_type, outcome),
        )
        self.db.add(event)
        await self.db.commit()
        return event

    async def predict_prospect_behavior(self, record: Dict[str, Any], industry: str) -> Dict[str, Any]:
        """
        Best-effort prediction from accumulated patterns.
        Missing data degrades to a 50% baseline and a balanced approach.
        """
        likely_objections: List[str] = []
        sample_size = 0
        for intel in await self.get_industry_intelligence(industry, "objections"):
            likely_objections = _top_keys(intel["data"].get("objections"), 3)
            sample_size = intel["sample_size"] or 0

        signals_to_watch = [
            p.pattern_key for p in await self.get_top_patterns("buying_signal", limit=20)
            if industry in (p.industries or [])
        ][:5]

        personality = record.get("personality_type") or "unknown"
        recommended_approach = COMMUNICATION_STYLES.get(personality, DEFAULT_COMMUNICATION_STYLE)

        conversion = BASELINE_CONVERSION
        if personality != "unknown":
            pattern = await self.get_pattern("personality_trait", _pattern_key(personality, industry))
            if pattern and pattern.pattern_data.get("total"):
                conversion = pattern.pattern_data.get("conversion_rate", BASELINE_CONVERSION)
                sample_size = max(sample_size, pattern.pattern_data["total"])

        return {
            "likely_objections": likely_objections,
            "buying_signals_to_watch": signals_to_watch,
            "recommended_approach": recommended_approach,
            "estimated_conversion_probability": conversion,
            "confidence": confidence_for_sample_size(sample_size),
        }
