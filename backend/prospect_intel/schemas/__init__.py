from prospect_intel.schemas.prospect import (
    SourceKind,
    BuyingCapacity,
    BuyingTimeline,
    Sentiment,
    PersonalityType,
    Interaction,
    NormalizedProspect,
)

__all__ = [
    "SourceKind",
    "BuyingCapacity",
    "BuyingTimeline",
    "Sentiment",
    "PersonalityType",
    "Interaction",
    "NormalizedProspect",
]
