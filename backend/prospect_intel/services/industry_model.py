"""
Industry Model Engine

Detects a prospect's vertical from free text and supplies the per-industry
pieces the rest of the system needs: a weighted industry score, tagging
rules, objection responses, personality playbooks and the next-action
decision tree.
"""

import re
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from prospect_intel.config import settings
from prospect_intel.models import IndustryModel, IndustryTaggingRule, as_utc, utcnow
from prospect_intel.normalization.text import mentions
from prospect_intel.services.industry_catalog import (
    DEFAULT_OBJECTION_RESPONSE,
    DEFAULT_PERSONALITY,
    GENERAL_INDUSTRY,
    INDUSTRY_KEYWORDS,
    OBJECTION_RESPONSES,
    PERSONALITY_APPROACHES,
)

logger = logging.getLogger(__name__)

INTENT_SCORES = {"high": 100, "medium": 60, "low": 20}
SENTIMENT_SCORES = {
    "very_positive": 100,
    "positive": 75,
    "neutral": 50,
    "negative": 25,
    "very_negative": 0,
}
CAPACITY_SCORES = {"very_high": 100, "high": 80, "medium": 60, "low": 30}
NEUTRAL_FACTOR_SCORE = 50
NO_MODEL_SCORE = 50.0

SCORING_FACTORS = (
    "buying_intent",
    "sentiment",
    "buying_capacity",
    "pain_point_coverage",
    "objection_difficulty",
)


@dataclass
class IndustryProfile:
    """In-memory view of an IndustryModel row."""
    industry: str
    pain_points: List[str] = field(default_factory=list)
    common_objections: List[str] = field(default_factory=list)
    buying_signals: List[str] = field(default_factory=list)
    personality_approaches: Dict[str, Any] = field(default_factory=dict)
    scoring_weights: Dict[str, float] = field(default_factory=dict)
    objection_responses: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: IndustryModel) -> "IndustryProfile":
        return cls(
            industry=row.industry,
            pain_points=list(row.pain_points or []),
            common_objections=list(row.common_objections or []),
            buying_signals=list(row.buying_signals or []),
            personality_approaches=dict(row.personality_approaches or {}),
            scoring_weights=dict(row.scoring_weights or {}),
            objection_responses=dict(row.objection_responses or {}),
        )


def rule_fires(rule_type: str, config: Mapping[str, Any], lowered_text: str,
               signals: Mapping[str, Any]) -> bool:
    """Evaluate one tagging rule. Unknown rule types and invalid regexes never fire."""
    if rule_type == "keyword":
        return any(
            mentions(lowered_text, str(kw).lower()) for kw in config.get("keywords", [])
        )

    if rule_type == "pattern":
        pattern = config.get("pattern")
        if not pattern:
            return False
        try:
            return re.search(pattern, lowered_text, re.IGNORECASE) is not None
        except re.error as e:
            logger.debug(f"Invalid tagging pattern {pattern!r}: {e}")
            return False

    if rule_type == "sentiment":
        wanted = config.get("sentiments") or [config.get("sentiment")]
        return signals.get("sentiment") in [w for w in wanted if w]

    if rule_type == "behavior":
        observed = (
            set(signals.get("interest_tags") or [])
            | set(signals.get("objection_types") or [])
            | set(signals.get("buying_signals") or [])
        )
        return any(b in observed for b in config.get("behaviors", []))

    logger.warning(f"Unknown tagging rule type: {rule_type}")
    return False


def score_with_profile(record: Mapping[str, Any], profile: Optional[IndustryProfile]) -> float:
    """
    Weighted average over the configured factors.

    A factor participates only when it has a positive weight; a missing
    model or an empty weight map yields the neutral 50.
    """
    if profile is None:
        return NO_MODEL_SCORE

    factor_scores = {
        "buying_intent": INTENT_SCORES.get(record.get("buying_intent"), NEUTRAL_FACTOR_SCORE),
        "sentiment": SENTIMENT_SCORES.get(record.get("sentiment"), NEUTRAL_FACTOR_SCORE),
        "buying_capacity": CAPACITY_SCORES.get(record.get("buying_capacity"), NEUTRAL_FACTOR_SCORE),
        "pain_point_coverage": _pain_point_coverage(record, profile),
        "objection_difficulty": _objection_difficulty(record, profile),
    }

    score = 0.0
    total_weight = 0.0
    for factor in SCORING_FACTORS:
        weight = float(profile.scoring_weights.get(factor) or 0)
        if weight <= 0:
            continue
        score += factor_scores[factor] * weight
        total_weight += weight

    if total_weight == 0:
        return NO_MODEL_SCORE
    return round(min(max(score / total_weight, 0), 100), 2)


def _pain_point_coverage(record: Mapping[str, Any], profile: IndustryProfile) -> float:
    if not profile.pain_points:
        return 0
    observed = set(record.get("pain_points") or [])
    matched = sum(1 for p in profile.pain_points if p in observed)
    return matched / len(profile.pain_points) * 100


def _objection_difficulty(record: Mapping[str, Any], profile: IndustryProfile) -> float:
    objections = record.get("objection_types") or []
    if any(o in profile.common_objections for o in objections):
        return 40
    return 80


class IndustryModelEngine:
    """Per-vertical scoring, tagging and recommendation rules."""

    def __init__(self, db: AsyncSession, keywords: Optional[Dict[str, List[str]]] = None):
        self.db = db
        self.keywords = keywords or INDUSTRY_KEYWORDS
        self._profiles: Dict[str, Optional[IndustryProfile]] = {}

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def industry_scores(self, text: str) -> Dict[str, int]:
        lowered = (text or "").lower()
        return {
            industry: sum(1 for kw in keywords if mentions(lowered, kw))
            for industry, keywords in self.keywords.items()
        }

    def detect_industry(self, text: str) -> str:
        """
        Industry with the most keyword hits, or General when nothing hits.
        Ties go to the industry registered first.
        """
        best, best_score = GENERAL_INDUSTRY, 0
        for industry, score in self.industry_scores(text).items():
            if score > best_score:
                best, best_score = industry, score
        return best

    async def switch_model_for_conversation(self, conversation_text: str) -> str:
        """Industry for a live conversation; General when the detected one has no model."""
        industry = self.detect_industry(conversation_text)
        if industry == GENERAL_INDUSTRY or await self.get_industry_model(industry) is None:
            return GENERAL_INDUSTRY
        return industry

    # ------------------------------------------------------------------
    # Configuration lookups
    # ------------------------------------------------------------------

    async def get_industry_model(self, industry: str) -> Optional[IndustryProfile]:
        if industry in self._profiles:
            return self._profiles[industry]

        result = await self.db.execute(
            select(IndustryModel).where(
                and_(IndustryModel.industry == industry, IndustryModel.is_active == True)
            )
        )
        row = result.scalar_one_or_none()
        profile = IndustryProfile.from_row(row) if row else None
        self._profiles[industry] = profile
        return profile

    async def get_tagging_rules(self, industry: str) -> List[IndustryTaggingRule]:
        result = await self.db.execute(
            select(IndustryTaggingRule).where(
                and_(
                    IndustryTaggingRule.industry == industry,
                    IndustryTaggingRule.is_active == True
                )
            ).order_by(IndustryTaggingRule.position, IndustryTaggingRule.rule_name)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Tagging and scoring
    # ------------------------------------------------------------------

    async def apply_tagging_rules(
        self,
        industry: str,
        payload_text: str,
        signals: Mapping[str, Any]
    ) -> List[str]:
        """Tags of every rule whose condition holds, in rule order, deduplicated."""
        lowered = (payload_text or "").lower()
        tags: List[str] = []
        for rule in await self.get_tagging_rules(industry):
            if rule_fires(rule.rule_type, rule.rule_config or {}, lowered, signals):
                if rule.tag_to_apply not in tags:
                    tags.append(rule.tag_to_apply)
        return tags

    async def calculate_industry_score(self, record: Mapping[str, Any], industry: str) -> float:
        return score_with_profile(record, await self.get_industry_model(industry))

    # ------------------------------------------------------------------
    # Recommendations
    # ------------------------------------------------------------------

    async def recommend_next_action(
        self,
        record: Mapping[str, Any],
        industry: str,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Fixed-priority decision tree; the first matching branch wins."""
        last_interaction = record.get("last_interaction_at")
        if not last_interaction:
            return {
                "action": "send_introduction",
                "reason": "First contact",
                "message_template": "introduction",
            }

        if (record.get("scoutscore_v10") or 0) >= 80:
            return {
                "action": "schedule_call",
                "reason": "High score prospect",
                "urgency": "high",
            }

        objections = record.get("objection_types") or []
        if objections:
            main_objection = objections[0]
            return {
                "action": "handle_objection",
                "reason": f"Prospect has {main_objection} objection",
                "objection": main_objection,
                "recommended_response": await self.get_objection_response(main_objection, industry),
            }

        if record.get("sentiment") in ("positive", "very_positive"):
            return {
                "action": "send_offer",
                "reason": "Positive sentiment detected",
                "offer_type": "soft_close",
            }

        now = now or utcnow()
        hours_since = (as_utc(now) - as_utc(last_interaction)).total_seconds() / 3600
        if hours_since > settings.FOLLOW_UP_AFTER_HOURS:
            return {
                "action": "send_follow_up",
                "reason": f"No contact in {settings.FOLLOW_UP_AFTER_HOURS}+ hours",
                "message_template": "gentle_reminder",
            }

        return {
            "action": "nurture",
            "reason": "Continue building relationship",
            "message_template": "value_content",
        }

    async def get_objection_response(self, objection: str, industry: str) -> str:
        profile = await self.get_industry_model(industry)
        if profile and profile.objection_responses.get(objection):
            return profile.objection_responses[objection]
        return OBJECTION_RESPONSES.get(objection, {}).get(industry, DEFAULT_OBJECTION_RESPONSE)

    async def get_personality_approach(self, personality: str, industry: str) -> Dict[str, Any]:
        profile = await self.get_industry_model(industry)
        if profile and profile.personality_approaches.get(personality):
            return profile.personality_approaches[personality]
        return PERSONALITY_APPROACHES.get(personality, PERSONALITY_APPROACHES[DEFAULT_PERSONALITY])

    async def match_products(
        self,
        record: Mapping[str, Any],
        industry: str,
        products: List[Mapping[str, Any]]
    ) -> List[Dict[str, Any]]:
        """Products aligned with the prospect's interests, budget and pain points (score >= 40)."""
        profile = await self.get_industry_model(industry)
        interest_tags = record.get("interest_tags") or []
        budget = record.get("budget")
        matches = []

        for product in products:
            score = 0
            reasons = []

            product_tags = set(product.get("tags") or []) | set(product.get("categories") or [])
            tag_matches = sum(1 for tag in interest_tags if tag in product_tags)
            if tag_matches:
                score += tag_matches * 15
                reasons.append(f"Matches {tag_matches} interest tags")

            price = product.get("price")
            if budget and price:
                affordability = budget / price * 100
                if affordability >= 100:
                    score += 25
                    reasons.append("Within budget")
                elif affordability >= 70:
                    score += 15
                    reasons.append("Slightly above budget")

            solves = set(product.get("solves_pain_points") or [])
            if profile and any(p in solves for p in profile.pain_points):
                score += 20
                reasons.append("Solves key pain points")

            if score >= 40:
                matches.append({
                    "product_id": product.get("id"),
                    "product_name": product.get("name"),
                    "alignment_score": min(score, 100),
                    "alignment_reasons": reasons,
                })

        return sorted(matches, key=lambda m: m["alignment_score"], reverse=True)
