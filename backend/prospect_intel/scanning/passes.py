"""
Deterministic pass logic.

Each function takes plain inputs and returns the results blob that is
written to the pass log. No datastore access here.
"""

import json
import re
from typing import Any, Dict, Iterable, List, Mapping

from prospect_intel.normalization.text import (
    extract_emails,
    extract_phones,
    flatten_strings,
    mentions,
    mentions_any,
)
from prospect_intel.schemas.prospect import NormalizedProspect
from prospect_intel.scanning.context import PipelineContext

# Pass 1
TAGALOG_MARKERS = ("ako", "ka", "ng", "na", "sa", "mga", "ang", "po", "naman", "kasi")
TAGALOG_MIN_MARKERS = 3
SPAM_PATTERNS = ("click here", "free money", "winner", "congratulations", "claim now")
STRIP_CHARS = re.compile(r"[^\w\s.,!?@+\-]")

# Pass 2
CLASSIFICATION_KEYWORDS = (
    "business", "income", "investment", "health", "insurance", "property", "sales", "marketing",
)
INDUSTRY_LABELS = {
    "MLM": ("network", "mlm", "opportunity", "recruit"),
    "Insurance": ("insurance", "coverage", "policy", "protection"),
    "Real_Estate": ("property", "condo", "house", "real estate"),
    "Small_Business": ("business", "startup", "entrepreneur", "sales"),
}
HIGH_INTENT = ("buy", "purchase", "how much", "price", "magkano", "join", "sumali", "sign up")
MEDIUM_INTENT = ("interested", "learn more", "tell me", "curious", "details")

# Pass 3
POSITIVE_WORDS = ("happy", "excited", "great", "amazing", "love", "yes", "interested", "salamat")
NEGATIVE_WORDS = ("no", "not", "bad", "scam", "fake", "angry", "disappointed", "ayaw")
URGENCY_WORDS = ("now", "asap", "urgent", "immediately", "today", "tonight", "ngayon")
HIDDEN_SIGNALS = (
    ("seeking_guidance", ("how to", "paano")),
    ("budget_consideration", ("afford", "kaya ko ba")),
    ("evaluating_options", ("compare", "vs", "versus")),
    ("family_involvement", ("wife", "husband", "family", "asawa")),
)
SENTIMENT_EMOTION = {
    "very_positive": 90,
    "positive": 70,
    "neutral": 50,
    "negative": 30,
    "very_negative": 10,
}
URGENCY_EMOTION_BONUS = {"high": 15, "medium": 8, "low": 0}

# Pass 6
SEVERITY_ORDER = ("critical", "high", "medium")


# ============================================================================
# PASS 1 - CLEAN + EXTRACT
# ============================================================================

def payload_text(raw_payload: Any) -> str:
    """Best text source in a raw payload."""
    if isinstance(raw_payload, str):
        return raw_payload
    if isinstance(raw_payload, dict):
        extracted = raw_payload.get("extracted_text")
        if isinstance(extracted, str) and extracted.strip():
            return extracted
        messages = raw_payload.get("messages")
        if isinstance(messages, list):
            parts = []
            for m in messages:
                if isinstance(m, dict):
                    parts.append(str(m.get("content") or m.get("message") or ""))
                elif isinstance(m, str):
                    parts.append(m)
            return " ".join(p for p in parts if p)
    return " ".join(flatten_strings(raw_payload))


def clean_text(text: str) -> str:
    collapsed = " ".join((text or "").split())
    return STRIP_CHARS.sub("", collapsed).strip()


def detect_language(text: str) -> str:
    lowered = text.lower()
    hits = sum(1 for marker in TAGALOG_MARKERS if mentions(lowered, marker))
    return "tagalog" if hits >= TAGALOG_MIN_MARKERS else "english"


def clean_and_extract(raw_payload: Any) -> Dict[str, Any]:
    cleaned = clean_text(payload_text(raw_payload))
    lowered = cleaned.lower()
    spam_hits = [p for p in SPAM_PATTERNS if p in lowered]
    return {
        "cleaned_text": cleaned,
        "detected_language": detect_language(cleaned),
        "has_spam": bool(spam_hits),
        "spam_patterns": spam_hits,
        "word_count": len(cleaned.split()),
    }


# ============================================================================
# PASS 2 - FIRST-PASS CLASSIFICATION
# ============================================================================

def buying_intent_tier(lowered_text: str) -> str:
    if mentions_any(lowered_text, HIGH_INTENT):
        return "high"
    if mentions_any(lowered_text, MEDIUM_INTENT):
        return "medium"
    return "low"


def classify(cleaned_text: str, prospect: NormalizedProspect) -> Dict[str, Any]:
    lowered = cleaned_text.lower()
    emails = extract_emails(cleaned_text)
    phones = extract_phones(cleaned_text)
    if prospect.email and prospect.email not in emails:
        emails.append(prospect.email)
    if prospect.phone and prospect.phone not in phones:
        phones.append(prospect.phone)

    return {
        "keywords": [k for k in CLASSIFICATION_KEYWORDS if mentions(lowered, k, prefix=True)],
        "industries": [
            label for label, terms in INDUSTRY_LABELS.items()
            if mentions_any(lowered, terms, prefix=True)
        ],
        "buying_intent": buying_intent_tier(lowered),
        "personal_info": {"emails": emails, "phones": phones},
        "has_contact_info": bool(emails or phones),
    }


# ============================================================================
# PASS 3 - BEHAVIOR & EMOTION
# ============================================================================

def sentiment_label(positive: int, negative: int) -> str:
    if positive > negative + 2:
        return "very_positive"
    if positive > negative:
        return "positive"
    if negative > positive + 2:
        return "very_negative"
    if negative > positive:
        return "negative"
    return "neutral"


def emotion_score(sentiment: str, urgency: str) -> int:
    return min(SENTIMENT_EMOTION[sentiment] + URGENCY_EMOTION_BONUS[urgency], 100)


def behavior_and_emotion(raw_payload: Any) -> Dict[str, Any]:
    """Scans the raw payload, not pass-1 text, so nothing stripped by cleaning is missed."""
    lowered = " ".join(flatten_strings(raw_payload)).lower()

    positive = sum(1 for w in POSITIVE_WORDS if mentions(lowered, w))
    negative = sum(1 for w in NEGATIVE_WORDS if mentions(lowered, w))
    sentiment = sentiment_label(positive, negative)

    urgency_signals = [w for w in URGENCY_WORDS if mentions(lowered, w)]
    if len(urgency_signals) >= 2:
        urgency = "high"
    elif urgency_signals:
        urgency = "medium"
    else:
        urgency = "low"

    return {
        "sentiment": sentiment,
        "sentiment_counts": {"positive": positive, "negative": negative},
        "urgency_level": urgency,
        "urgency_signals": urgency_signals,
        "buying_signals": [
            signal for signal, phrases in HIDDEN_SIGNALS if mentions_any(lowered, phrases)
        ],
        "emotion_score": emotion_score(sentiment, urgency),
    }


# ============================================================================
# PASS 6 - RISK & SAFETY
# ============================================================================

def _serialized(raw_payload: Any) -> str:
    if isinstance(raw_payload, str):
        return raw_payload
    return json.dumps(raw_payload, ensure_ascii=False, default=str)


def evaluate_compliance(raw_payload: Any, filters: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """Match active filter patterns against the serialized payload, keys included."""
    lowered = _serialized(raw_payload).lower()
    violations: List[Dict[str, Any]] = []

    for rule in filters:
        for pattern in rule.get("patterns") or []:
            if pattern and str(pattern).lower() in lowered:
                violations.append({
                    "filter_type": rule.get("filter_type"),
                    "filter_name": rule.get("filter_name"),
                    "severity": rule.get("severity", "medium"),
                    "detected_pattern": pattern,
                })

    severities = {v["severity"] for v in violations}
    risk_level = next((s for s in SEVERITY_ORDER if s in severities), "low")
    is_compliant = not violations

    return {
        "violations": violations,
        "is_compliant": is_compliant,
        "risk_level": risk_level,
        "should_proceed": is_compliant and risk_level != "critical",
    }


def block_reason(compliance: Mapping[str, Any]) -> str:
    names = sorted({v["filter_name"] for v in compliance.get("violations", []) if v.get("filter_name")})
    return f"Compliance block ({compliance.get('risk_level')} risk): {', '.join(names) or 'policy violation'}"


# ============================================================================
# PASS 7 - FINAL OUTPUT
# ============================================================================

def build_final_profile(context: PipelineContext) -> Dict[str, Any]:
    """Pure function of passes 1-6."""
    fusion = context.results(5)
    return {
        "pipeline_passes_completed": len(context.completed_passes) + 1,
        "data_sources": {
            f"pass_{n}": context.results(n) for n in context.completed_passes
        },
        **fusion,
        "detected_language": context.get(1, "detected_language"),
        "keywords": context.get(2, "keywords", []),
        "detected_industries": context.get(2, "industries", []),
        "emotion_score": context.get(3, "emotion_score"),
        "urgency_level": context.get(3, "urgency_level"),
        "buying_signals": context.get(3, "buying_signals", []),
        "pain_points": context.get(4, "investigator", {}).get("pain_points", []),
        "risk_level": context.get(6, "risk_level"),
    }
