"""Seed industry models, tagging rules and compliance filters - Async version."""

import asyncio

from sqlalchemy import select

from prospect_intel.database import AsyncSessionLocal, Base, engine
from prospect_intel.models import ComplianceFilter, IndustryModel, IndustryTaggingRule
from prospect_intel.services.industry_catalog import OBJECTION_RESPONSES, PERSONALITY_APPROACHES

DEFAULT_WEIGHTS = {
    "buying_intent": 0.3,
    "sentiment": 0.2,
    "buying_capacity": 0.2,
    "pain_point_coverage": 0.2,
    "objection_difficulty": 0.1,
}

INDUSTRY_MODELS = [
    {
        "industry": "MLM",
        "display_name": "Network Marketing",
        "pain_points": ["income", "time_freedom"],
        "common_objections": ["price", "trust", "time"],
        "buying_signals": ["interested", "price_inquiry"],
    },
    {
        "industry": "Insurance",
        "display_name": "Insurance",
        "pain_points": ["security", "health"],
        "common_objections": ["price", "trust"],
        "buying_signals": ["price_inquiry"],
    },
    {
        "industry": "Real_Estate",
        "display_name": "Real Estate",
        "pain_points": ["income", "security"],
        "common_objections": ["price", "time"],
        "buying_signals": ["price_inquiry", "interested"],
    },
    {
        "industry": "Small_Business",
        "display_name": "Small Business",
        "pain_points": ["income", "time_freedom"],
        "common_objections": ["price", "time"],
        "buying_signals": ["interested"],
    },
]

TAGGING_RULES = [
    ("MLM", "Side income seeker", "keyword", {"keywords": ["extra income", "side hustle", "sideline"]}, "side_income_seeker"),
    ("MLM", "Ready to join", "pattern", {"pattern": r"(how to join|paano sumali|sign me up)"}, "ready_to_join"),
    ("MLM", "Enthusiastic", "sentiment", {"sentiments": ["very_positive"]}, "enthusiastic"),
    ("Insurance", "Family protector", "keyword", {"keywords": ["family", "kids", "anak"]}, "family_protector"),
    ("Insurance", "Price shopper", "behavior", {"behaviors": ["price_inquiry", "price"]}, "price_shopper"),
    ("Real_Estate", "Investor", "keyword", {"keywords": ["investment", "rental", "appreciation"]}, "property_investor"),
    ("Small_Business", "Growth focused", "keyword", {"keywords": ["scale", "growth", "revenue"]}, "growth_focused"),
]

COMPLIANCE_FILTERS = [
    ("income_claims", "Guaranteed income claims", "high",
     ["guaranteed income", "get rich quick", "guaranteed returns"]),
    ("health_claims", "Medical cure claims", "critical",
     ["cures cancer", "cure diabetes", "miracle cure"]),
    ("spam", "Spam markers", "medium", ["click here now", "limited time only!!!"]),
]


async def seed():
    """Insert reference rows that are not there yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Seeding industry intelligence data...")

        existing = set((await db.execute(select(IndustryModel.industry))).scalars().all())
        for model in INDUSTRY_MODELS:
            if model["industry"] in existing:
                continue
            db.add(IndustryModel(
                **model,
                scoring_weights=DEFAULT_WEIGHTS,
                personality_approaches=PERSONALITY_APPROACHES,
                objection_responses={
                    objection: responses[model["industry"]]
                    for objection, responses in OBJECTION_RESPONSES.items()
                    if model["industry"] in responses
                },
            ))
            print(f"  ✓ Industry model: {model['industry']}")

        existing_rules = set((await db.execute(select(IndustryTaggingRule.rule_name))).scalars().all())
        for position, (industry, name, rule_type, config, tag) in enumerate(TAGGING_RULES):
            if name in existing_rules:
                continue
            db.add(IndustryTaggingRule(
                industry=industry,
                rule_name=name,
                rule_type=rule_type,
                rule_config=config,
                tag_to_apply=tag,
                position=position,
            ))
            print(f"  ✓ Tagging rule: {industry} / {name}")

        existing_filters = set((await db.execute(select(ComplianceFilter.filter_name))).scalars().all())
        for filter_type, name, severity, patterns in COMPLIANCE_FILTERS:
            if name in existing_filters:
                continue
            db.add(ComplianceFilter(
                filter_type=filter_type,
                filter_name=name,
                severity=severity,
                patterns=patterns,
            ))
            print(f"  ✓ Compliance filter: {name} ({severity})")

        await db.commit()
        print("✅ Seeding complete")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
