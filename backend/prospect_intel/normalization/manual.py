"""Mappers for hand-entered prospects and records consolidated from another tenant."""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Type
from uuid import UUID

from prospect_intel.normalization.base import SourceMapper
from prospect_intel.normalization.chat import ChatTranscriptMapper
from prospect_intel.normalization import text as tx
from prospect_intel.schemas.prospect import (
    BuyingCapacity,
    BuyingTimeline,
    NormalizedProspect,
    PersonalityType,
    Sentiment,
    SourceKind,
)

logger = logging.getLogger(__name__)

ENUM_FIELDS: Dict[str, Type[Enum]] = {
    "buying_capacity": BuyingCapacity,
    "buying_timeline": BuyingTimeline,
    "sentiment": Sentiment,
    "personality_type": PersonalityType,
}

SET_FIELDS = ("interest_tags", "product_interest", "objection_types")

KNOWN_FIELDS = {
    "name", "first_name", "last_name", "email", "phone", "external_id",
    "location", "occupation", "budget", "emotion_score", "past_interactions",
    "channel", "lead_stage", "notes",
    *ENUM_FIELDS, *SET_FIELDS,
}


def _enum_value(enum_cls: Type[Enum], value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    candidate = value.strip().lower()
    if candidate in {member.value for member in enum_cls}:
        return candidate
    logger.debug(f"Ignoring unknown {enum_cls.__name__} value: {value!r}")
    return None


def _emotion_score(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(min(max(value, 0), 100))


class ManualEntryMapper(SourceMapper):
    """Known fields are cleaned; anything else lands verbatim in `extra`."""

    source_kind = SourceKind.MANUAL_INPUT
    default_channel = "manual"
    keep_unknown_fields = True

    def map(self, payload: Any, tenant_id: Optional[UUID] = None) -> NormalizedProspect:
        data = self.require_dict(payload)
        fields = self.known_fields(data)
        if self.keep_unknown_fields:
            fields["extra"] = {k: v for k, v in data.items() if k not in KNOWN_FIELDS}
        return self.build(**fields)

    def known_fields(self, data: Dict[str, Any]) -> Dict[str, Any]:
        notes = data.get("notes") if isinstance(data.get("notes"), str) else ""
        signals = tx.analyze_conversation(notes)

        fields: Dict[str, Any] = {
            "name": data.get("name"),
            "first_name": tx.clean_name(data.get("first_name")),
            "last_name": tx.clean_name(data.get("last_name")),
            "email": self.first_email(data.get("email")),
            "phone": self.first_phone(data.get("phone")),
            "external_id": data.get("external_id"),
            "location": tx.collapse_whitespace(data.get("location")),
            "occupation": tx.collapse_whitespace(data.get("occupation")),
            "budget": tx.parse_budget(data.get("budget")),
            "interest_tags": tx.as_string_set(data.get("interest_tags")) | signals.tags,
            "product_interest": tx.as_string_set(data.get("product_interest")),
            "objection_types": tx.as_string_set(data.get("objection_types")) | signals.objections,
            "past_interactions": ChatTranscriptMapper._interactions(
                data.get("past_interactions") if isinstance(data.get("past_interactions"), list) else []
            ),
            "lead_stage": data.get("lead_stage") if isinstance(data.get("lead_stage"), str) else "new",
        }
        if not fields["name"] and (fields["first_name"] or fields["last_name"]):
            fields["name"] = " ".join(p for p in (fields["first_name"], fields["last_name"]) if p)

        if isinstance(data.get("channel"), str) and data["channel"].strip():
            fields["channel"] = data["channel"].strip().lower()

        for field, enum_cls in ENUM_FIELDS.items():
            value = _enum_value(enum_cls, data.get(field))
            if value:
                fields[field] = value

        emotion = _emotion_score(data.get("emotion_score"))
        if emotion is not None:
            fields["emotion_score"] = emotion

        return fields


class ConsolidationMapper(ManualEntryMapper):
    """
    A record already normalized under another tenant, re-validated here.
    Accepts the record itself or {"record": {...}, "origin_tenant_id": ...}.
    """

    source_kind = SourceKind.CROSS_USER_CONSOLIDATION
    default_channel = "consolidated"
    keep_unknown_fields = False

    def map(self, payload: Any, tenant_id: Optional[UUID] = None) -> NormalizedProspect:
        data = self.require_dict(payload)
        record = data.get("record") if isinstance(data.get("record"), dict) else data
        return self.build(**self.known_fields(record))
