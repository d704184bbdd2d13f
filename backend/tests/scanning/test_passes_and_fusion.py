# tests/scanning/test_passes_and_fusion.py
"""
Tests for the deterministic pass logic and score fusion

Coverage:
- Pass 1 cleaning, language and spam detection
- Pass 2 classification and buying intent
- Pass 3 sentiment, urgency, emotion
- Pass 4 specialists
- Pass 5 ScoutScore monotonicity
- Pass 6 compliance gating

Run with: pytest tests/scanning/test_passes_and_fusion.py -v
"""

import itertools
import pytest
from uuid import uuid4

from prospect_intel.normalization import normalize
from prospect_intel.scanning import passes
from prospect_intel.scanning.context import PassOutcome, PipelineContext
from prospect_intel.scanning.fusion import (
    fuse,
    hot_prospect_score,
    lead_quality,
    scoutscore_v10,
)
from prospect_intel.scanning.specialists import (
    Investigator,
    PersonalityProfiler,
    SalesFitAnalyst,
    SpecialistInput,
    run_specialists,
    default_specialists,
)


def make_input(**overrides):
    values = dict(
        text="",
        keywords=[],
        buying_intent="low",
        sentiment="neutral",
        urgency_level="low",
        buying_signals=[],
        interest_tags=[],
        product_interest=[],
        budget=None,
        occupation=None,
        default_capacity="medium",
    )
    values.update(overrides)
    return SpecialistInput(**values)


# ============================================================================
# TEST: Pass 1
# ============================================================================

class TestCleanAndExtract:

    def test_strips_symbols_and_collapses_whitespace(self):
        assert passes.clean_text("Hi!!   call me (now) +63917 😀") == "Hi!! call me now +63917"

    def test_tagalog_detection(self):
        result = passes.clean_and_extract({"notes": "Gusto ko po sumali sa negosyo na ito"})
        assert result["detected_language"] == "tagalog"

    def test_english_default(self):
        result = passes.clean_and_extract("I would like to know more about the business")
        assert result["detected_language"] == "english"

    def test_spam_patterns(self):
        result = passes.clean_and_extract("Congratulations! Click here to claim now")
        assert result["has_spam"] is True
        assert set(result["spam_patterns"]) == {"congratulations", "click here", "claim now"}

    def test_chat_payload_uses_message_text(self):
        payload = {"visitor_id": "v1", "messages": [{"content": "Hello"}, {"content": "Magkano?"}]}
        assert passes.payload_text(payload) == "Hello Magkano?"


# ============================================================================
# TEST: Pass 2
# ============================================================================

class TestClassification:

    def test_price_question_is_high_intent(self):
        prospect = normalize("manual_input", {"email": "juan@example.com"})

        result = passes.classify("Magkano po ang business package?", prospect)

        assert result["buying_intent"] == "high"
        assert "business" in result["keywords"]
        assert "Small_Business" in result["industries"]
        assert result["personal_info"]["emails"] == ["juan@example.com"]
        assert result["has_contact_info"] is True

    def test_curiosity_is_medium_intent(self):
        prospect = normalize("manual_input", {"name": "Ana"})
        result = passes.classify("I am curious, tell me more", prospect)
        assert result["buying_intent"] == "medium"
        assert result["has_contact_info"] is False

    def test_no_signal_is_low_intent(self):
        prospect = normalize("manual_input", {"name": "Ana"})
        assert passes.classify("Hello", prospect)["buying_intent"] == "low"


# ============================================================================
# TEST: Pass 3
# ============================================================================

class TestBehaviorAndEmotion:

    def test_very_positive(self):
        result = passes.behavior_and_emotion({"notes": "So excited, this is amazing, I love it!"})
        assert result["sentiment"] == "very_positive"
        assert result["emotion_score"] == 90

    def test_very_negative(self):
        result = passes.behavior_and_emotion("This is a scam, fake, not worth it")
        assert result["sentiment"] == "very_negative"

    def test_urgency_raises_emotion_and_caps(self):
        result = passes.behavior_and_emotion("Excited! Amazing! Love it! I want it now, asap")
        assert result["urgency_level"] == "high"
        assert result["emotion_score"] == 100

    def test_hidden_buying_signals(self):
        result = passes.behavior_and_emotion("Paano po? I need to ask my asawa if I can afford it")
        assert set(result["buying_signals"]) == {
            "seeking_guidance", "budget_consideration", "family_involvement"
        }


# ============================================================================
# TEST: Pass 4 specialists
# ============================================================================

class TestSpecialists:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("budget,ability", [
        (60000, "very_high"), (15000, "high"), (5000, "medium"), (500, "low"),
    ])
    async def test_budget_tiers(self, budget, ability):
        finding = await SalesFitAnalyst().analyze(make_input(budget=budget))
        assert finding.findings["buying_ability"] == ability
        assert finding.confidence == 85

    @pytest.mark.asyncio
    async def test_occupation_status_without_budget(self):
        finding = await SalesFitAnalyst().analyze(make_input(text="business owner in cebu"))
        assert finding.findings["buying_ability"] == "high"

    @pytest.mark.asyncio
    async def test_product_fit_grows_with_interests(self):
        few = await SalesFitAnalyst().analyze(make_input(interest_tags=["income"]))
        many = await SalesFitAnalyst().analyze(make_input(interest_tags=["income", "health", "sales"]))
        assert many.findings["product_fit"] > few.findings["product_fit"]

    @pytest.mark.asyncio
    async def test_investigator_pain_points(self):
        finding = await Investigator().analyze(make_input(text="bills are piling up, i am always busy"))
        assert set(finding.findings["pain_points"]) == {"income", "time_freedom"}

    @pytest.mark.asyncio
    async def test_personality_unknown_without_cues(self):
        finding = await PersonalityProfiler().analyze(make_input(text="hello"))
        assert finding.findings["personality_type"] == "unknown"
        assert finding.confidence == 40

    @pytest.mark.asyncio
    async def test_personality_driver(self):
        finding = await PersonalityProfiler().analyze(make_input(text="i want results fast, asap"))
        assert finding.findings["personality_type"] == "driver"
        assert finding.findings["communication_style"] == "direct_results_focused"

    @pytest.mark.asyncio
    async def test_run_specialists_from_context(self):
        prospect = normalize("manual_input", {"name": "Juan", "budget": "₱5,000"})
        context = PipelineContext(job_id=uuid4(), tenant_id=uuid4(), raw_payload={}, prospect=prospect)
        context.record(PassOutcome(1, "Clean + Extract", {"cleaned_text": "need extra income"}))

        findings = await run_specialists(default_specialists(), context)

        assert [f.specialist_type for f in findings] == [
            "sales_analyst", "investigator", "personality_profiler"
        ]
        assert findings[0].findings["buying_ability"] == "medium"
        assert "income" in findings[1].findings["pain_points"]


# ============================================================================
# TEST: Pass 5 fusion
# ============================================================================

INTENTS = ("low", "medium", "high")
SENTIMENTS = ("very_negative", "negative", "neutral", "positive", "very_positive")
ABILITIES = ("low", "medium", "high", "very_high")
FITS = (0, 50, 75, 100)


class TestFusion:

    def test_maximum_score(self):
        assert scoutscore_v10("high", "very_positive", "very_high", 100, True) == 100

    def test_minimum_score(self):
        assert scoutscore_v10("low", "very_negative", "low", 0, False) == 0

    def test_score_monotone_in_every_factor(self):
        """Moving any single factor to a better tier never lowers the score"""
        for intent, sentiment, ability, fit, contact in itertools.product(
            INTENTS, SENTIMENTS, ABILITIES, FITS, (False, True)
        ):
            base = scoutscore_v10(intent, sentiment, ability, fit, contact)
            for better in INTENTS[INTENTS.index(intent):]:
                assert scoutscore_v10(better, sentiment, ability, fit, contact) >= base
            for better in SENTIMENTS[SENTIMENTS.index(sentiment):]:
                assert scoutscore_v10(intent, better, ability, fit, contact) >= base
            for better in ABILITIES[ABILITIES.index(ability):]:
                assert scoutscore_v10(intent, sentiment, better, fit, contact) >= base
            for better in FITS[FITS.index(fit):]:
                assert scoutscore_v10(intent, sentiment, ability, better, contact) >= base
            assert scoutscore_v10(intent, sentiment, ability, fit, True) >= base

    @pytest.mark.parametrize("score,quality", [
        (100, "hot"), (80, "hot"), (79, "warm"), (60, "warm"), (59, "qualified"), (40, "qualified"), (39, "cold"),
    ])
    def test_lead_quality_thresholds(self, score, quality):
        assert lead_quality(score) == quality

    def test_fuse(self):
        result = fuse(
            {"buying_intent": "high", "has_contact_info": True},
            {"sentiment": "positive"},
            {
                "sales_analyst": {"buying_ability": "medium", "product_fit": 80, "confidence": 80},
                "investigator": {"pain_points": [], "confidence": 60},
                "personality_profiler": {"personality_type": "driver", "confidence": 70},
            },
        )

        # 30 intent + 10 sentiment + 15 ability + 15 fit + 10 contact
        assert result["scoutscore_v10"] == 80
        assert result["lead_quality"] == "hot"
        assert result["confidence_score"] == 70.0
        assert result["personality_type"] == "driver"

    def test_hot_prospect_score(self):
        assert hot_prospect_score(85, "very_positive", "very_high", 80) == 100
        assert hot_prospect_score(65, "positive", "high", 55) == 55
        assert hot_prospect_score(10, "neutral", "low", 20) == 0


# ============================================================================
# TEST: Pass 6 compliance
# ============================================================================

FILTERS = [
    {"filter_type": "income_claims", "filter_name": "Guaranteed income", "severity": "high",
     "patterns": ["guaranteed income"]},
    {"filter_type": "health_claims", "filter_name": "Cure claims", "severity": "critical",
     "patterns": ["miracle cure"]},
    {"filter_type": "spam", "filter_name": "Spam", "severity": "low", "patterns": ["act fast"]},
]


class TestCompliance:

    def test_clean_payload_proceeds(self):
        result = passes.evaluate_compliance({"notes": "interested in the business"}, FILTERS)
        assert result["should_proceed"] is True
        assert result["risk_level"] == "low"

    def test_any_violation_blocks(self):
        result = passes.evaluate_compliance({"notes": "Guaranteed INCOME every month"}, FILTERS)
        assert result["should_proceed"] is False
        assert result["risk_level"] == "high"
        assert result["violations"][0]["detected_pattern"] == "guaranteed income"

    def test_highest_severity_wins(self):
        result = passes.evaluate_compliance(
            {"a": "guaranteed income", "b": ["a miracle cure"]}, FILTERS
        )
        assert result["risk_level"] == "critical"
        assert len(result["violations"]) == 2

    def test_pattern_in_a_key_is_caught(self):
        result = passes.evaluate_compliance({"guaranteed income": True, "notes": "hi"}, FILTERS)
        assert result["should_proceed"] is False
        assert result["violations"][0]["filter_type"] == "income_claims"

    def test_block_reason_names_filters(self):
        result = passes.evaluate_compliance("miracle cure, guaranteed income", FILTERS)
        reason = passes.block_reason(result)
        assert "critical" in reason
        assert "Cure claims" in reason and "Guaranteed income" in reason


# ============================================================================
# TEST: Context
# ============================================================================

class TestPipelineContext:

    def test_out_of_order_record_rejected(self):
        prospect = normalize("manual_input", {"name": "Juan"})
        context = PipelineContext(job_id=uuid4(), tenant_id=uuid4(), raw_payload={}, prospect=prospect)

        with pytest.raises(ValueError):
            context.record(PassOutcome(2, "First-Pass Classification", {}))

    def test_missing_pass_results(self):
        prospect = normalize("manual_input", {"name": "Juan"})
        context = PipelineContext(job_id=uuid4(), tenant_id=uuid4(), raw_payload={}, prospect=prospect)

        with pytest.raises(KeyError):
            context.results(1)
        assert context.get(1, "cleaned_text", "fallback") == "fallback"
