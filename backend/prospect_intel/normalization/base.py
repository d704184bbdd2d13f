"""
Base mapper interface for raw source payloads.
Every source kind must have exactly one mapper implementing this interface.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from uuid import UUID

from prospect_intel.exceptions import MalformedPayload
from prospect_intel.schemas.prospect import NormalizedProspect, SourceKind
from prospect_intel.normalization import text as tx


class SourceMapper(ABC):
    """
    Maps one raw source shape into a NormalizedProspect.

    Mappers are pure: no datastore access, no clock reads, no network.
    """

    source_kind: SourceKind
    default_channel: str = "unknown"

    @abstractmethod
    def map(self, payload: Any, tenant_id: Optional[UUID] = None) -> NormalizedProspect:
        """
        Build the canonical record.

        Raises:
            MalformedPayload: payload is not a shape this mapper can read
        """
        pass

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def require_dict(self, payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise MalformedPayload(
                self.source_kind.value,
                f"expected an object, got {type(payload).__name__}"
            )
        return payload

    def text_of(self, payload: Any, *keys: str) -> str:
        """First non-empty string under any of the keys (or the payload itself)."""
        if isinstance(payload, str):
            return payload
        if isinstance(payload, dict):
            for key in keys:
                value = payload.get(key)
                if isinstance(value, str) and value.strip():
                    return value
        return ""

    @staticmethod
    def first_email(*candidates: Any, text: str = "") -> Optional[str]:
        for candidate in candidates:
            email = tx.clean_email(candidate)
            if email:
                return email
        found = tx.extract_emails(text)
        return found[0] if found else None

    @staticmethod
    def first_phone(*candidates: Any, text: str = "") -> Optional[str]:
        for candidate in candidates:
            phone = tx.clean_phone(candidate)
            if phone:
                return phone
        found = tx.extract_phones(text)
        return found[0] if found else None

    @staticmethod
    def first_of(values: Any) -> Optional[str]:
        if isinstance(values, list):
            for value in values:
                if isinstance(value, str) and value.strip():
                    return value
        return None

    def build(self, **fields) -> NormalizedProspect:
        """Fill defaults shared by all mappers and derive first/last name."""
        fields.setdefault("channel", self.default_channel)
        if fields.get("external_id") is not None:
            fields["external_id"] = str(fields["external_id"]).strip() or None
        name = tx.clean_name(fields.get("name"))
        fields["name"] = name
        if name and not (fields.get("first_name") or fields.get("last_name")):
            fields.update(tx.split_name(name))
        return NormalizedProspect(source_kind=self.source_kind, **fields)

    @staticmethod
    def string_list(values: Any) -> List[str]:
        if not isinstance(values, list):
            return []
        return [v for v in values if isinstance(v, str)]
