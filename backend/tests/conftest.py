# tests/conftest.py

import pytest
import pytest_asyncio
from uuid import uuid4

from prospect_intel.database import Base, create_engine_for, create_session_factory
from prospect_intel import models  # noqa: F401
from prospect_intel.models import ComplianceFilter, IndustryModel, IndustryTaggingRule
from prospect_intel.redis_client import KeyedLock


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite database, fresh per test"""
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'prospects.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def tenant_id():
    return uuid4()


@pytest.fixture
def identity_lock():
    """In-process lock registry bound to the current test's event loop"""
    return KeyedLock()


@pytest_asyncio.fixture
async def seeded_industry(session_factory):
    """MLM model with weights, two tagging rules and one compliance filter"""
    async with session_factory() as session:
        session.add(IndustryModel(
            industry="MLM",
            display_name="Network Marketing",
            pain_points=["income", "time_freedom"],
            common_objections=["price", "trust"],
            buying_signals=["interested"],
            scoring_weights={
                "buying_intent": 0.5,
                "sentiment": 0.5,
                "buying_capacity": 0,
            },
            objection_responses={"price": "Think of it as an investment."},
            personality_approaches={},
        ))
        session.add(IndustryTaggingRule(
            industry="MLM",
            rule_name="Side income seeker",
            rule_type="keyword",
            rule_config={"keywords": ["extra income"]},
            tag_to_apply="side_income_seeker",
            position=0,
        ))
        session.add(IndustryTaggingRule(
            industry="MLM",
            rule_name="Ready to join",
            rule_type="pattern",
            rule_config={"pattern": r"how to join"},
            tag_to_apply="ready_to_join",
            position=1,
        ))
        session.add(ComplianceFilter(
            filter_type="income_claims",
            filter_name="Guaranteed income claims",
            severity="high",
            patterns=["guaranteed income"],
        ))
        await session.commit()
