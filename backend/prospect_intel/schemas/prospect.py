"""
Pydantic schemas for canonical prospect data
"""

from enum import Enum
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any, Set
from datetime import datetime, timezone


class SourceKind(str, Enum):
    CHATBOT_CONVERSATION = "chatbot_conversation"
    CHATBOT_PREFORM = "chatbot_preform"
    SCREENSHOT_UPLOAD = "screenshot_upload"
    CSV_UPLOAD = "csv_upload"
    PDF_UPLOAD = "pdf_upload"
    BROWSER_EXTENSION = "browser_extension"
    SOCIAL_API = "social_api"
    WEBSITE_CRAWLER = "website_crawler"
    MANUAL_INPUT = "manual_input"
    CROSS_USER_CONSOLIDATION = "cross_user_consolidation"


class BuyingCapacity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class BuyingTimeline(str, Enum):
    IMMEDIATE = "immediate"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    THIS_QUARTER = "this_quarter"
    LONG_TERM = "long_term"
    UNKNOWN = "unknown"


class Sentiment(str, Enum):
    VERY_NEGATIVE = "very_negative"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    POSITIVE = "positive"
    VERY_POSITIVE = "very_positive"


class PersonalityType(str, Enum):
    AMIABLE = "amiable"
    DRIVER = "driver"
    EXPRESSIVE = "expressive"
    ANALYTICAL = "analytical"
    UNKNOWN = "unknown"


class Interaction(BaseModel):
    content: str
    timestamp: Optional[datetime] = None
    role: Optional[str] = None


# Weighted presence of populated fields
QUALITY_WEIGHTS = {
    "name": 15,
    "email": 20,
    "phone": 20,
    "location": 10,
    "occupation": 10,
    "interest_tags": 15,
    "budget": 10,
}


def weighted_presence(values: Dict[str, Any]) -> int:
    """Quality score of a record: weighted sum of populated fields, capped at 100."""
    score = sum(
        weight for field, weight in QUALITY_WEIGHTS.items()
        if values.get(field) not in (None, "", set(), [])
    )
    return min(score, 100)


class NormalizedProspect(BaseModel):
    """Canonical record produced by every source mapper."""
    source_kind: SourceKind
    channel: str = "unknown"

    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    external_id: Optional[str] = None
    location: Optional[str] = None
    occupation: Optional[str] = None

    interest_tags: Set[str] = Field(default_factory=set)
    product_interest: Set[str] = Field(default_factory=set)
    objection_types: Set[str] = Field(default_factory=set)

    budget: Optional[float] = None
    buying_capacity: BuyingCapacity = BuyingCapacity.MEDIUM
    buying_timeline: BuyingTimeline = BuyingTimeline.UNKNOWN
    sentiment: Sentiment = Sentiment.NEUTRAL
    personality_type: PersonalityType = PersonalityType.UNKNOWN
    emotion_score: float = Field(default=50, ge=0, le=100)

    past_interactions: List[Interaction] = Field(default_factory=list)
    lead_stage: str = "new"
    extra: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("budget")
    @classmethod
    def budget_not_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError("budget must not be negative")
        return v

    @property
    def quality_score(self) -> int:
        return weighted_presence({field: getattr(self, field) for field in QUALITY_WEIGHTS})

    @property
    def last_interaction_at(self) -> Optional[datetime]:
        stamps = [
            i.timestamp if i.timestamp.tzinfo else i.timestamp.replace(tzinfo=timezone.utc)
            for i in self.past_interactions if i.timestamp
        ]
        return max(stamps) if stamps else None

    def identity_keys(self) -> List[str]:
        """Contact identities used to serialize duplicate resolution."""
        keys = []
        if self.email:
            keys.append(f"email:{self.email}")
        if self.phone:
            keys.append(f"phone:{self.phone}")
        if self.external_id:
            keys.append(f"external:{self.external_id}")
        return keys

    def to_record(self) -> Dict[str, Any]:
        """Column values for a Prospect row (sets become sorted lists)."""
        return {
            "name": self.name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "external_id": self.external_id,
            "location": self.location,
            "occupation": self.occupation,
            "interest_tags": sorted(self.interest_tags),
            "product_interest": sorted(self.product_interest),
            "objection_types": sorted(self.objection_types),
            "budget": self.budget,
            "buying_capacity": self.buying_capacity.value,
            "buying_timeline": self.buying_timeline.value,
            "sentiment": self.sentiment.value,
            "personality_type": self.personality_type.value,
            "emotion_score": self.emotion_score,
            "past_interactions": [
                i.model_dump(mode="json", exclude_none=True) for i in self.past_interactions
            ],
            "channel": self.channel,
            "source_kind": self.source_kind.value,
            "quality_score": self.quality_score,
            "lead_stage": self.lead_stage,
            "extra": self.extra,
        }
