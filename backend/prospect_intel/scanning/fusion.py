"""Score fusion (pass 5) and the hot-prospect score derived from it."""

from typing import Any, Dict, Mapping

INTENT_POINTS = {"high": 30, "medium": 15}
SENTIMENT_POINTS = {"very_positive": 20, "positive": 10}
ABILITY_POINTS = {"very_high": 25, "high": 25, "medium": 15}
CONTACT_INFO_POINTS = 10


def product_fit_points(product_fit: float) -> int:
    if product_fit >= 75:
        return 15
    if product_fit >= 50:
        return 8
    return 0


def scoutscore_v10(
    buying_intent: str,
    sentiment: str,
    buying_ability: str,
    product_fit: float,
    has_contact_info: bool
) -> int:
    """Sum of factor points clamped to [0, 100]. Better tiers never score lower."""
    score = (
        INTENT_POINTS.get(buying_intent, 0)
        + SENTIMENT_POINTS.get(sentiment, 0)
        + ABILITY_POINTS.get(buying_ability, 0)
        + product_fit_points(product_fit or 0)
        + (CONTACT_INFO_POINTS if has_contact_info else 0)
    )
    return min(max(score, 0), 100)


def lead_quality(score: float) -> str:
    if score >= 80:
        return "hot"
    if score >= 60:
        return "warm"
    if score >= 40:
        return "qualified"
    return "cold"


def fuse(classification: Mapping[str, Any], behavior: Mapping[str, Any],
         deep_scan: Mapping[str, Any]) -> Dict[str, Any]:
    """Combine passes 2-4 into the ScoutScore."""
    sales = deep_scan["sales_analyst"]
    personality = deep_scan["personality_profiler"]
    confidences = [
        finding["confidence"] for finding in deep_scan.values()
        if isinstance(finding, dict) and "confidence" in finding
    ]

    score = scoutscore_v10(
        buying_intent=classification["buying_intent"],
        sentiment=behavior["sentiment"],
        buying_ability=sales["buying_ability"],
        product_fit=sales["product_fit"],
        has_contact_info=classification["has_contact_info"],
    )

    return {
        "scoutscore_v10": score,
        "confidence_score": round(sum(confidences) / len(confidences), 2) if confidences else 0,
        "lead_quality": lead_quality(score),
        "buying_intent": classification["buying_intent"],
        "buying_capacity": sales["buying_ability"],
        "product_fit": sales["product_fit"],
        "personality_type": personality["personality_type"],
        "sentiment": behavior["sentiment"],
    }


def hot_prospect_score(
    scoutscore: float,
    sentiment: str,
    buying_capacity: str,
    emotion: float
) -> int:
    score = 0
    if scoutscore >= 80:
        score += 30
    elif scoutscore >= 60:
        score += 15

    if sentiment == "very_positive":
        score += 25
    elif sentiment == "positive":
        score += 15

    if buying_capacity == "very_high":
        score += 25
    elif buying_capacity == "high":
        score += 15

    if emotion >= 75:
        score += 20
    elif emotion >= 50:
        score += 10

    return min(score, 100)
