"""Mappers for OCR'd screenshots, PDF extracts and CSV rows."""

from typing import Any, Dict, Optional
from uuid import UUID

from prospect_intel.exceptions import MalformedPayload
from prospect_intel.normalization.base import SourceMapper
from prospect_intel.normalization import text as tx
from prospect_intel.schemas.prospect import NormalizedProspect, SourceKind


class ScreenshotMapper(SourceMapper):
    """
    OCR output: {"extracted_text", "platform"?, "name_candidates"?,
                 "number_candidates"?, "profile_id"?}, or the bare text.
    """

    source_kind = SourceKind.SCREENSHOT_UPLOAD
    default_channel = "social_media"

    def map(self, payload: Any, tenant_id: Optional[UUID] = None) -> NormalizedProspect:
        if not isinstance(payload, (dict, str)):
            raise MalformedPayload(self.source_kind.value, "expected OCR output object or text")
        data = payload if isinstance(payload, dict) else {}
        text = self.text_of(payload, "extracted_text", "text")
        signals = tx.analyze_conversation(text)
        platform = data.get("platform") if isinstance(data.get("platform"), str) else None

        return self.build(
            name=self.first_of(data.get("name_candidates")),
            email=self.first_email(text=text),
            phone=self.first_phone(*self.string_list(data.get("number_candidates")), text=text),
            external_id=data.get("profile_id"),
            channel=platform.lower() if platform else self.default_channel,
            interest_tags=signals.tags,
            objection_types=signals.objections,
            buying_timeline=tx.detect_timeline(text) or "unknown",
        )


class PdfMapper(SourceMapper):
    source_kind = SourceKind.PDF_UPLOAD
    default_channel = "document"

    def map(self, payload: Any, tenant_id: Optional[UUID] = None) -> NormalizedProspect:
        if not isinstance(payload, (dict, str)):
            raise MalformedPayload(self.source_kind.value, "expected extracted text")
        data = payload if isinstance(payload, dict) else {}
        text = self.text_of(payload, "extracted_text", "text")

        return self.build(
            name=self.first_of(data.get("name_candidates")),
            email=self.first_email(text=text),
            phone=self.first_phone(*self.string_list(data.get("number_candidates")), text=text),
            interest_tags=tx.extract_interest_tags(text),
        )


# Column header aliases, matched case-insensitively
CSV_FIELD_ALIASES = {
    "name": ("name", "full_name", "fullname", "full name"),
    "first_name": ("first_name", "firstname", "first name"),
    "last_name": ("last_name", "lastname", "last name", "surname"),
    "email": ("email", "email_address", "e-mail", "email address"),
    "phone": ("phone", "phone_number", "mobile", "contact_number", "cellphone"),
    "location": ("location", "address", "city"),
    "occupation": ("occupation", "job", "position", "job_title", "title"),
    "notes": ("notes", "interests", "remarks"),
}


class CsvRowMapper(SourceMapper):
    """One row of an uploaded spreadsheet, keyed by its header."""

    source_kind = SourceKind.CSV_UPLOAD
    default_channel = "csv_import"

    def map(self, payload: Any, tenant_id: Optional[UUID] = None) -> NormalizedProspect:
        row = self._canonical_row(self.require_dict(payload))

        name = row.get("name")
        if not name and (row.get("first_name") or row.get("last_name")):
            name = " ".join(p for p in (row.get("first_name"), row.get("last_name")) if p)

        notes = row.get("notes") or ""
        return self.build(
            name=name,
            first_name=tx.clean_name(row.get("first_name")),
            last_name=tx.clean_name(row.get("last_name")),
            email=self.first_email(row.get("email")),
            phone=self.first_phone(row.get("phone")),
            location=tx.collapse_whitespace(row.get("location")),
            occupation=tx.collapse_whitespace(row.get("occupation")),
            interest_tags=tx.extract_interest_tags(notes),
        )

    @staticmethod
    def _canonical_row(row: Dict[str, Any]) -> Dict[str, str]:
        lowered = {
            str(k).strip().lower(): v for k, v in row.items()
            if v is not None and str(v).strip()
        }
        canonical = {}
        for field, aliases in CSV_FIELD_ALIASES.items():
            for alias in aliases:
                if alias in lowered:
                    canonical[field] = str(lowered[alias]).strip()
                    break
        return canonical
