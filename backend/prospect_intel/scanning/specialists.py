"""
Pass-4 specialists.

Each specialist is an independent strategy with a single `analyze` method,
so any of them can be backed by a different inference provider without
touching fusion. The built-in ones are keyword heuristics.
"""
import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from prospect_intel.normalization.text import mentions, mentions_any
from prospect_intel.scanning.context import PipelineContext
from prospect_intel.scanning.passes import payload_text
from prospect_intel.services.industry_catalog import (
    COMMUNICATION_STYLES,
    DEFAULT_COMMUNICATION_STYLE,
)


@dataclass
class SpecialistFinding:
    specialist_type: str
    findings: Dict[str, Any]
    confidence: float
    processing_time_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {**self.findings, "confidence": self.confidence}


@dataclass(frozen=True)
class SpecialistInput:
    """What a specialist sees: pass-1..3 context plus the normalized record."""
    text: str
    keywords: List[str]
    buying_intent: str
    sentiment: str
    urgency_level: str
    buying_signals: List[str]
    interest_tags: List[str]
    product_interest: List[str]
    budget: Optional[float]
    occupation: Optional[str]
    default_capacity: str

    @classmethod
    def from_context(cls, context: PipelineContext) -> "SpecialistInput":
        prospect = context.prospect
        text_parts = [
            context.get(1, "cleaned_text") or payload_text(context.raw_payload),
            prospect.occupation or "",
        ]
        return cls(
            text=" ".join(p for p in text_parts if p).lower(),
            keywords=list(context.get(2, "keywords", [])),
            buying_intent=context.get(2, "buying_intent", "low"),
            sentiment=context.get(3, "sentiment", "neutral"),
            urgency_level=context.get(3, "urgency_level", "low"),
            buying_signals=list(context.get(3, "buying_signals", [])),
            interest_tags=sorted(prospect.interest_tags),
            product_interest=sorted(prospect.product_interest),
            budget=prospect.budget,
            occupation=prospect.occupation,
            default_capacity=prospect.buying_capacity.value,
        )


class SpecialistAnalyzer(ABC):
    """One independent sub-analysis of pass 4."""

    specialist_type: str

    @abstractmethod
    async def analyze(self, data: SpecialistInput) -> SpecialistFinding:
        pass


# ============================================================================
# SALES FIT
# ============================================================================

HIGH_STATUS_TERMS = ("owner", "ceo", "founder", "director", "manager", "doctor", "engineer", "lawyer", "ofw")
LOW_CAPACITY_TERMS = ("student", "unemployed", "walang trabaho", "jobless", "no income")


def capacity_from_budget(budget: float) -> str:
    if budget >= 50000:
        return "very_high"
    if budget >= 10000:
        return "high"
    if budget >= 2000:
        return "medium"
    return "low"


class SalesFitAnalyst(SpecialistAnalyzer):
    specialist_type = "sales_analyst"

    async def analyze(self, data: SpecialistInput) -> SpecialistFinding:
        if data.budget is not None:
            buying_ability = capacity_from_budget(data.budget)
            confidence = 85
        elif mentions_any(data.text, HIGH_STATUS_TERMS):
            buying_ability, confidence = "high", 70
        elif mentions_any(data.text, LOW_CAPACITY_TERMS):
            buying_ability, confidence = "low", 70
        else:
            buying_ability, confidence = data.default_capacity, 60

        interests = set(data.interest_tags) | set(data.product_interest) | set(data.keywords)
        product_fit = 40 + 10 * len(interests)
        product_fit += {"high": 15, "medium": 8}.get(data.buying_intent, 0)
        product_fit = min(product_fit, 100)

        interest_level = {"high": "high", "medium": "medium"}.get(data.buying_intent, "low")

        return SpecialistFinding(
            specialist_type=self.specialist_type,
            findings={
                "buying_ability": buying_ability,
                "product_fit": product_fit,
                "interest_level": interest_level,
            },
            confidence=confidence,
        )


# ============================================================================
# INVESTIGATOR
# ============================================================================

SOCIAL_SIGNALS = {
    "family_oriented": ("family", "kids", "children", "pamilya", "asawa"),
    "overseas_worker": ("ofw", "abroad", "overseas"),
    "active_online": ("facebook", "instagram", "tiktok", "followers"),
    "community_leader": ("church", "community", "organizer", "leader"),
}
PAIN_POINTS = {
    "income": ("extra income", "bills", "utang", "debt", "salary", "sweldo", "not enough", "income"),
    "time_freedom": ("no time", "busy", "overtime", "time freedom", "work from home"),
    "health": ("sick", "tired", "weight", "health"),
    "security": ("future", "retirement", "protection", "savings"),
}


class Investigator(SpecialistAnalyzer):
    specialist_type = "investigator"

    async def analyze(self, data: SpecialistInput) -> SpecialistFinding:
        social = [name for name, terms in SOCIAL_SIGNALS.items() if mentions_any(data.text, terms)]
        status = [t for t in HIGH_STATUS_TERMS if mentions(data.text, t)]
        pains = [name for name, terms in PAIN_POINTS.items() if mentions_any(data.text, terms)]

        evidence = len(social) + len(status) + len(pains)
        return SpecialistFinding(
            specialist_type=self.specialist_type,
            findings={
                "social_signals": social,
                "status_indicators": status,
                "pain_points": pains,
            },
            confidence=min(50 + 10 * evidence, 90),
        )


# ============================================================================
# PERSONALITY
# ============================================================================

PERSONALITY_TERMS = {
    "driver": ("now", "asap", "quick", "results", "fast"),
    "amiable": ("help", "support", "together", "family", "friends"),
    "analytical": ("data", "proof", "analyze", "statistics", "how exactly"),
    "expressive": ("exciting", "fun", "amazing", "love", "wow"),
}


class PersonalityProfiler(SpecialistAnalyzer):
    specialist_type = "personality_profiler"

    async def analyze(self, data: SpecialistInput) -> SpecialistFinding:
        counts = {
            personality: sum(1 for t in terms if mentions(data.text, t))
            for personality, terms in PERSONALITY_TERMS.items()
        }
        personality, hits = "unknown", 0
        for name, count in counts.items():
            if count > hits:
                personality, hits = name, count

        return SpecialistFinding(
            specialist_type=self.specialist_type,
            findings={
                "personality_type": personality,
                "communication_style": COMMUNICATION_STYLES.get(personality, DEFAULT_COMMUNICATION_STYLE),
                "trait_counts": counts,
            },
            confidence=min(70 + 5 * (hits - 1), 90) if hits else 40,
        )


def default_specialists() -> List[SpecialistAnalyzer]:
    return [SalesFitAnalyst(), Investigator(), PersonalityProfiler()]


async def _timed(specialist: SpecialistAnalyzer, data: SpecialistInput) -> SpecialistFinding:
    start = time.perf_counter()
    finding = await specialist.analyze(data)
    finding.processing_time_ms = int((time.perf_counter() - start) * 1000)
    return finding


async def run_specialists(
    specialists: Sequence[SpecialistAnalyzer],
    context: PipelineContext
) -> List[SpecialistFinding]:
    """Run all specialists concurrently; any failure fails the pass."""
    data = SpecialistInput.from_context(context)
    return list(await asyncio.gather(*(_timed(s, data) for s in specialists)))
