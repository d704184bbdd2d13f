"""Mappers for the public chatbot: full transcripts and the pre-chat form."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from prospect_intel.exceptions import MalformedPayload
from prospect_intel.normalization.base import SourceMapper
from prospect_intel.normalization import text as tx
from prospect_intel.schemas.prospect import Interaction, NormalizedProspect, SourceKind


class ChatTranscriptMapper(SourceMapper):
    """
    Payload: {"messages": [{"content"|"message", "role"|"sender", "timestamp"}],
              "visitor_name"?, "visitor_email"?, "visitor_phone"?, "visitor_id"?}
    """

    source_kind = SourceKind.CHATBOT_CONVERSATION
    default_channel = "chatbot"

    def map(self, payload: Any, tenant_id: Optional[UUID] = None) -> NormalizedProspect:
        data = self.require_dict(payload)
        messages = data.get("messages")
        if not isinstance(messages, list):
            raise MalformedPayload(self.source_kind.value, "'messages' must be a list")

        interactions = self._interactions(messages)
        visitor_text = " ".join(
            i.content for i in interactions if (i.role or "user") in ("user", "visitor", "prospect")
        )
        signals = tx.analyze_conversation(visitor_text)

        return self.build(
            name=data.get("visitor_name") or data.get("name"),
            email=self.first_email(data.get("visitor_email"), data.get("email"), text=visitor_text),
            phone=self.first_phone(data.get("visitor_phone"), data.get("phone"), text=visitor_text),
            external_id=data.get("visitor_id") or data.get("session_id"),
            interest_tags=signals.tags,
            objection_types=signals.objections,
            buying_timeline=tx.detect_timeline(visitor_text) or "unknown",
            past_interactions=interactions,
            lead_stage="hot" if signals.wants_to_join else "contacted",
        )

    @staticmethod
    def _interactions(messages: List[Any]) -> List[Interaction]:
        interactions = []
        for message in messages:
            if isinstance(message, str):
                content, role, timestamp = message, None, None
            elif isinstance(message, dict):
                content = message.get("content") or message.get("message") or ""
                role = message.get("role") or message.get("sender")
                timestamp = message.get("timestamp") or message.get("created_at")
            else:
                continue
            if not str(content).strip():
                continue
            interactions.append(Interaction(content=str(content), role=role, timestamp=timestamp))
        return interactions


class ChatPreformMapper(SourceMapper):
    """Pre-chat form: name, email, phone, location, budget, challenge, product_interest."""

    source_kind = SourceKind.CHATBOT_PREFORM
    default_channel = "chatbot"

    def map(self, payload: Any, tenant_id: Optional[UUID] = None) -> NormalizedProspect:
        data: Dict[str, Any] = self.require_dict(payload)
        challenge = data.get("challenge") if isinstance(data.get("challenge"), str) else ""
        signals = tx.analyze_conversation(challenge)

        return self.build(
            name=data.get("name"),
            email=self.first_email(data.get("email")),
            phone=self.first_phone(data.get("phone")),
            location=tx.collapse_whitespace(data.get("location")),
            budget=tx.parse_budget(data.get("budget")),
            interest_tags=signals.tags,
            objection_types=signals.objections,
            product_interest=tx.as_string_set(data.get("product_interest") or data.get("interested_in")),
            buying_timeline=tx.detect_timeline(challenge) or "unknown",
            lead_stage="new",
        )
