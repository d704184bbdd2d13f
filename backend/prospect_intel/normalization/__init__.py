"""
Normalization engine: mapper registry and dispatch.
"""
import logging
from typing import Any, Dict, Optional, Union
from uuid import UUID

from pydantic import ValidationError

from prospect_intel.exceptions import MalformedPayload, UnsupportedSourceKind
from prospect_intel.schemas.prospect import NormalizedProspect, SourceKind
from .base import SourceMapper
from .chat import ChatTranscriptMapper, ChatPreformMapper
from .documents import ScreenshotMapper, PdfMapper, CsvRowMapper
from .web import BrowserExtensionMapper, SocialApiMapper, WebsiteCrawlerMapper
from .manual import ManualEntryMapper, ConsolidationMapper

logger = logging.getLogger(__name__)

# Registry of source mappers, one per source kind
MAPPER_REGISTRY: Dict[SourceKind, SourceMapper] = {
    SourceKind.CHATBOT_CONVERSATION: ChatTranscriptMapper(),
    SourceKind.CHATBOT_PREFORM: ChatPreformMapper(),
    SourceKind.SCREENSHOT_UPLOAD: ScreenshotMapper(),
    SourceKind.CSV_UPLOAD: CsvRowMapper(),
    SourceKind.PDF_UPLOAD: PdfMapper(),
    SourceKind.BROWSER_EXTENSION: BrowserExtensionMapper(),
    SourceKind.SOCIAL_API: SocialApiMapper(),
    SourceKind.WEBSITE_CRAWLER: WebsiteCrawlerMapper(),
    SourceKind.MANUAL_INPUT: ManualEntryMapper(),
    SourceKind.CROSS_USER_CONSOLIDATION: ConsolidationMapper(),
}

_missing = set(SourceKind) - set(MAPPER_REGISTRY)
if _missing:
    raise RuntimeError(f"No mapper registered for: {sorted(k.value for k in _missing)}")


def resolve_source_kind(source_kind: Union[str, SourceKind, None]) -> SourceKind:
    """Parse a source kind, failing on unknown or empty values."""
    if isinstance(source_kind, SourceKind):
        return source_kind
    if not source_kind or not isinstance(source_kind, str):
        raise UnsupportedSourceKind(source_kind)
    try:
        return SourceKind(source_kind.strip().lower())
    except ValueError:
        raise UnsupportedSourceKind(source_kind) from None


def get_mapper(source_kind: Union[str, SourceKind, None]) -> SourceMapper:
    return MAPPER_REGISTRY[resolve_source_kind(source_kind)]


class NormalizationEngine:
    """Maps heterogeneous raw payloads onto one canonical record shape."""

    def normalize(
        self,
        source_kind: Union[str, SourceKind, None],
        raw_payload: Any,
        tenant_id: Optional[UUID] = None
    ) -> NormalizedProspect:
        kind = resolve_source_kind(source_kind)
        mapper = MAPPER_REGISTRY[kind]
        try:
            prospect = mapper.map(raw_payload, tenant_id)
        except ValidationError as e:
            raise MalformedPayload(kind.value, str(e)) from e

        logger.debug(
            f"Normalized {kind.value} payload: email={prospect.email} "
            f"phone={prospect.phone} quality={prospect.quality_score}"
        )
        return prospect

    def validate(self, source_kind: Union[str, SourceKind, None], raw_payload: Any) -> SourceKind:
        """Up-front input check used before a job is queued."""
        kind = resolve_source_kind(source_kind)
        self.normalize(kind, raw_payload)
        return kind


# Singleton instance
normalization_engine = NormalizationEngine()


def normalize(source_kind, raw_payload, tenant_id=None) -> NormalizedProspect:
    return normalization_engine.normalize(source_kind, raw_payload, tenant_id)


__all__ = [
    "SourceMapper",
    "MAPPER_REGISTRY",
    "NormalizationEngine",
    "normalization_engine",
    "normalize",
    "get_mapper",
    "resolve_source_kind",
]
