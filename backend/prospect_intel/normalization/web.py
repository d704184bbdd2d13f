"""Mappers for browser-extension captures, social API profiles and site crawls."""

from typing import Any, Optional
from uuid import UUID

from prospect_intel.normalization.base import SourceMapper
from prospect_intel.normalization import text as tx
from prospect_intel.schemas.prospect import NormalizedProspect, SourceKind


class BrowserExtensionMapper(SourceMapper):
    """Profile captured from a page: name, profile_url, platform, bio, location."""

    source_kind = SourceKind.BROWSER_EXTENSION
    default_channel = "web"

    def map(self, payload: Any, tenant_id: Optional[UUID] = None) -> NormalizedProspect:
        data = self.require_dict(payload)
        bio = self.text_of(data, "bio", "about", "headline")
        platform = data.get("platform") if isinstance(data.get("platform"), str) else None
        signals = tx.analyze_conversation(bio)

        return self.build(
            name=data.get("name"),
            email=self.first_email(data.get("email"), text=bio),
            phone=self.first_phone(data.get("phone"), text=bio),
            external_id=data.get("profile_url") or data.get("profile_id"),
            location=tx.collapse_whitespace(data.get("location")),
            occupation=tx.collapse_whitespace(data.get("occupation") or data.get("headline")),
            channel=platform.lower() if platform else self.default_channel,
            interest_tags=signals.tags,
            objection_types=signals.objections,
        )


class SocialApiMapper(SourceMapper):
    """Profile returned by a social platform API."""

    source_kind = SourceKind.SOCIAL_API
    default_channel = "social_media"

    def map(self, payload: Any, tenant_id: Optional[UUID] = None) -> NormalizedProspect:
        data = self.require_dict(payload)
        bio = self.text_of(data, "bio", "description", "about")
        external_id = data.get("id") or data.get("profile_id") or data.get("username")

        return self.build(
            name=data.get("name") or data.get("display_name"),
            email=self.first_email(data.get("email"), text=bio),
            phone=self.first_phone(data.get("phone"), text=bio),
            external_id=str(external_id) if external_id is not None else None,
            location=tx.collapse_whitespace(data.get("location")),
            occupation=tx.collapse_whitespace(data.get("occupation") or data.get("work")),
            interest_tags=tx.extract_interest_tags(bio),
        )


class WebsiteCrawlerMapper(SourceMapper):
    """Contact block scraped from a company site."""

    source_kind = SourceKind.WEBSITE_CRAWLER
    default_channel = "website"

    def map(self, payload: Any, tenant_id: Optional[UUID] = None) -> NormalizedProspect:
        data = self.require_dict(payload)
        page_text = self.text_of(data, "page_text", "content")

        return self.build(
            name=data.get("contact_name"),
            email=self.first_email(data.get("contact_email"), text=page_text),
            phone=self.first_phone(data.get("contact_phone"), text=page_text),
            occupation=tx.collapse_whitespace(data.get("company_name")),
            location=tx.collapse_whitespace(data.get("location")),
            external_id=data.get("source_url"),
            interest_tags=tx.extract_interest_tags(page_text),
        )
