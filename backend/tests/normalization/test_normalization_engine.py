# tests/normalization/test_normalization_engine.py
"""
Tests for the normalization engine and source mappers

Coverage:
- Registry covers every source kind
- Contact field cleaning (email, phone, name split, budget)
- Conversation signals (interest tags, objections, join intent)
- Per-source payload shapes
- Input errors

Run with: pytest tests/normalization/test_normalization_engine.py -v
"""

import pytest
from uuid import uuid4

from prospect_intel.exceptions import InputError, MalformedPayload, UnsupportedSourceKind
from prospect_intel.normalization import MAPPER_REGISTRY, normalization_engine, normalize
from prospect_intel.normalization import text as tx
from prospect_intel.schemas.prospect import SourceKind


# ============================================================================
# TEST: Registry
# ============================================================================

class TestMapperRegistry:
    """Every source kind dispatches to a mapper"""

    def test_every_source_kind_has_a_mapper(self):
        assert set(MAPPER_REGISTRY) == set(SourceKind)

    def test_mapper_declares_its_own_kind(self):
        for kind, mapper in MAPPER_REGISTRY.items():
            assert mapper.source_kind == kind

    def test_unknown_source_kind_rejected(self):
        with pytest.raises(UnsupportedSourceKind):
            normalize("fax_machine", {"name": "Juan"})

    def test_missing_source_kind_rejected(self):
        with pytest.raises(UnsupportedSourceKind):
            normalize(None, {"name": "Juan"})

    def test_source_kind_is_case_insensitive(self):
        prospect = normalize("MANUAL_INPUT", {"name": "Juan"})
        assert prospect.source_kind == SourceKind.MANUAL_INPUT


# ============================================================================
# TEST: Field cleaning
# ============================================================================

class TestFieldCleaning:
    """Contact fields are canonicalized"""

    def test_email_lowercased_and_trimmed(self):
        assert tx.clean_email("  JUAN@Example.COM ") == "juan@example.com"

    def test_malformed_email_dropped(self):
        assert tx.clean_email("not-an-email") is None
        assert tx.clean_email("juan@localhost") is None

    def test_phone_local_and_international_compare_equal(self):
        assert tx.clean_phone("0917-123-4567") == tx.clean_phone("+63 917 123 4567")

    def test_phone_too_short_dropped(self):
        assert tx.clean_phone("12-34") is None

    def test_phone_keeps_digits_and_plus_only(self):
        phone = tx.clean_phone("(555) 010-0000 ext")
        assert phone is not None
        assert all(c.isdigit() or c == "+" for c in phone)

    @pytest.mark.parametrize("raw,expected", [
        ("₱5,000", 5000.0),
        ("PHP 12,500.50", 12500.5),
        ("Php. 5,000", 5000.0),
        ("Rs. 5000", 5000.0),
        ("₱5,000 - ₱10,000", 5000.0),
        (2000, 2000.0),
        ("unknown", None),
        (None, None),
    ])
    def test_parse_budget(self, raw, expected):
        assert tx.parse_budget(raw) == expected

    def test_name_split(self):
        parts = tx.split_name("Juan Dela Cruz")
        assert parts["first_name"] == "Juan"
        assert "Cruz" in parts["last_name"]

    def test_interest_tags_match_word_prefixes(self):
        tags = tx.extract_interest_tags("Looking to invest in properties and a small negosyo")
        assert {"investment", "property", "business_opportunity"} <= tags

    def test_interest_tags_ignore_substrings(self):
        assert "sales" not in tx.extract_interest_tags("wholesalesman")


# ============================================================================
# TEST: Conversation signals
# ============================================================================

class TestConversationSignals:

    def test_join_phrase_marks_interest(self):
        signals = tx.analyze_conversation("Paano sumali? Interested ako")
        assert signals.wants_to_join is True
        assert "interested" in signals.tags

    def test_price_question_is_a_tag_not_an_objection(self):
        signals = tx.analyze_conversation("Magkano po?")
        assert "price_inquiry" in signals.tags
        assert "price" not in signals.objections

    def test_objections(self):
        signals = tx.analyze_conversation("Too expensive and I'm busy. Is this legit?")
        assert signals.objections == {"price", "time", "trust"}


# ============================================================================
# TEST: Source mappers
# ============================================================================

class TestSourceMappers:
    """Each raw shape lands on the canonical record"""

    def test_manual_input_juan(self):
        prospect = normalize(
            "manual_input",
            {"name": "Juan Dela Cruz", "email": "JUAN@example.com ", "budget": "₱5,000"},
            uuid4()
        )

        assert prospect.email == "juan@example.com"
        assert prospect.budget == 5000.0
        assert prospect.first_name == "Juan"
        assert prospect.channel == "manual"
        # name 15 + email 20 + budget 10
        assert prospect.quality_score == 45

    def test_manual_input_keeps_unknown_fields(self):
        prospect = normalize("manual_input", {"name": "Ana", "favorite_color": "blue"})
        assert prospect.extra == {"favorite_color": "blue"}

    def test_manual_input_ignores_unknown_enum_values(self):
        prospect = normalize("manual_input", {"name": "Ana", "sentiment": "ecstatic"})
        assert prospect.sentiment.value == "neutral"

    def test_chat_transcript(self):
        prospect = normalize("chatbot_conversation", {
            "visitor_name": "Maria Santos",
            "messages": [
                {"role": "user", "content": "Hi! How to join? Email me at maria@test.com",
                 "timestamp": "2024-01-15T10:00:00Z"},
                {"role": "assistant", "content": "Sure, here is how"},
                {"role": "user", "content": "Magkano po?", "timestamp": "2024-01-15T10:05:00Z"},
            ],
        })

        assert prospect.email == "maria@test.com"
        assert prospect.first_name == "Maria"
        assert {"interested", "price_inquiry"} <= prospect.interest_tags
        assert prospect.lead_stage == "hot"
        assert len(prospect.past_interactions) == 3
        assert prospect.last_interaction_at.minute == 5

    def test_chat_transcript_requires_message_list(self):
        with pytest.raises(MalformedPayload):
            normalize("chatbot_conversation", {"messages": "hello"})

    def test_screenshot_accepts_bare_text(self):
        prospect = normalize("screenshot_upload", "Call me 0917 123 4567, need extra income")
        assert prospect.phone is not None
        assert "income" in prospect.interest_tags

    def test_screenshot_platform_becomes_channel(self):
        prospect = normalize("screenshot_upload", {
            "extracted_text": "hello",
            "platform": "Facebook",
            "name_candidates": ["Pedro Reyes"],
            "profile_id": 12345,
        })
        assert prospect.channel == "facebook"
        assert prospect.name == "Pedro Reyes"
        assert prospect.external_id == "12345"

    def test_csv_row_header_aliases(self):
        prospect = normalize("csv_upload", {
            "Full Name": "Liza Soberano",
            "E-mail": "liza@example.com",
            "Mobile": "09171234567",
            "Position": "Nurse",
        })
        assert prospect.name == "Liza Soberano"
        assert prospect.email == "liza@example.com"
        assert prospect.occupation == "Nurse"
        assert prospect.phone

    def test_website_crawler(self):
        prospect = normalize("website_crawler", {
            "company_name": "Acme Insurance",
            "contact_email": "sales@acme.ph",
            "source_url": "https://acme.ph/contact",
        })
        assert prospect.occupation == "Acme Insurance"
        assert prospect.external_id == "https://acme.ph/contact"

    def test_consolidation_drops_unknown_fields(self):
        prospect = normalize("cross_user_consolidation", {
            "record": {"name": "Ana", "email": "ana@example.com", "foo": 1},
            "origin_tenant_id": str(uuid4()),
        })
        assert prospect.email == "ana@example.com"
        assert prospect.extra == {}

    def test_non_object_payload_rejected(self):
        with pytest.raises(MalformedPayload):
            normalize("manual_input", ["not", "an", "object"])

    def test_validate_returns_kind(self):
        assert normalization_engine.validate("social_api", {"id": 1}) == SourceKind.SOCIAL_API

    def test_input_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            normalization_engine.validate("nope", {})
        assert issubclass(MalformedPayload, InputError)


# ============================================================================
# TEST: Record shape
# ============================================================================

class TestNormalizedRecord:

    def test_identity_keys(self):
        prospect = normalize("manual_input", {
            "name": "Juan", "email": "juan@example.com", "external_id": "fb-1"
        })
        assert prospect.identity_keys() == ["email:juan@example.com", "external:fb-1"]

    def test_to_record_sorts_sets(self):
        prospect = normalize("manual_input", {
            "name": "Juan", "interest_tags": "sales, health, business"
        })
        assert prospect.to_record()["interest_tags"] == ["business", "health", "sales"]
