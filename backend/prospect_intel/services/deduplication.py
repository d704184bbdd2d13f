"""Duplicate resolution and field-by-field merge of prospect records."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from prospect_intel.exceptions import MergeConflict, ProspectNotFound
from prospect_intel.models import Prospect, ProspectMergeLog, as_utc
from prospect_intel.redis_client import KeyedLock, create_keyed_lock
from prospect_intel.schemas.prospect import NormalizedProspect, weighted_presence

logger = logging.getLogger(__name__)

# Identity families, tried in order; the first with any match wins
IDENTITY_FIELDS = ("email", "phone", "external_id")

SCALAR_FIELDS = (
    "name", "first_name", "last_name", "email", "phone", "external_id",
    "location", "occupation", "budget", "channel",
    "scoutscore_v10", "confidence_score", "industry", "industry_score", "buying_intent",
)
# Enum-like fields whose default value counts as empty
DEFAULTED_FIELDS = {"buying_timeline": "unknown", "personality_type": "unknown"}
SET_FIELDS = ("interest_tags", "product_interest", "objection_types", "applied_tags")

MERGE_CONFIDENCE = 95

# One process-wide registry so concurrent jobs share identity locks
_identity_lock = None


def get_identity_lock():
    global _identity_lock
    if _identity_lock is None:
        _identity_lock = create_keyed_lock(prefix="prospect:identity")
    return _identity_lock


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def merge_fields(master: Prospect, other: Dict[str, Any]) -> Prospect:
    """
    Apply another record's values onto the master.

    Scalars fill only where the master is empty, set-valued fields union,
    past interactions concatenate without dedup.
    """
    for name in SCALAR_FIELDS:
        if _is_empty(getattr(master, name)) and not _is_empty(other.get(name)):
            setattr(master, name, other[name])

    for name, default in DEFAULTED_FIELDS.items():
        if getattr(master, name) in (None, default) and other.get(name) not in (None, default):
            setattr(master, name, other[name])

    for name in SET_FIELDS:
        merged = set(getattr(master, name) or []) | set(other.get(name) or [])
        setattr(master, name, sorted(merged))

    master.past_interactions = list(master.past_interactions or []) + list(other.get("past_interactions") or [])

    extra = dict(other.get("extra") or {})
    extra.update(master.extra or {})
    master.extra = extra

    master.quality_score = weighted_presence({
        "name": master.name,
        "email": master.email,
        "phone": master.phone,
        "location": master.location,
        "occupation": master.occupation,
        "interest_tags": master.interest_tags,
        "budget": master.budget,
    })
    return master


def prospect_snapshot(prospect: Prospect) -> Dict[str, Any]:
    """JSON-safe copy of every column."""
    snapshot = {}
    for column in Prospect.__table__.columns:
        value = getattr(prospect, column.key)
        if isinstance(value, UUID):
            value = str(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        snapshot[column.key] = value
    return snapshot


def _later(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    if a is None:
        return b
    if b is None:
        return a
    return max(as_utc(a), as_utc(b))


@dataclass
class ResolutionResult:
    prospect: Prospect
    is_new: bool
    matched_on: Optional[str] = None
    absorbed_ids: List[UUID] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prospect_id": str(self.prospect.id),
            "is_new": self.is_new,
            "matched_on": self.matched_on,
            "absorbed_ids": [str(i) for i in self.absorbed_ids],
        }


class DuplicateResolver:
    """Find, merge or insert prospect records within one tenant."""

    def __init__(self, db: AsyncSession, identity_lock=None):
        self.db = db
        self.identity_lock = identity_lock or get_identity_lock()

    async def find_duplicates(
        self,
        tenant_id: UUID,
        candidate: NormalizedProspect
    ) -> List[Prospect]:
        """
        Existing records sharing an identity with the candidate.

        Short-circuiting OR over email, phone, external id: the first family
        with any match is returned on its own. Oldest record first.
        """
        matches, _ = await self._find_with_family(tenant_id, candidate)
        return matches

    async def _find_with_family(self, tenant_id: UUID, candidate: NormalizedProspect):
        for name in IDENTITY_FIELDS:
            value = getattr(candidate, name)
            if not value:
                continue
            result = await self.db.execute(
                select(Prospect).where(
                    and_(
                        Prospect.tenant_id == tenant_id,
                        getattr(Prospect, name) == value
                    )
                ).order_by(Prospect.created_at, Prospect.id)
            )
            matches = list(result.scalars().all())
            if matches:
                logger.debug(f"Duplicate family {name} matched {len(matches)} record(s)")
                return matches, name
        return [], None

    async def _get(self, tenant_id: UUID, prospect_id: UUID) -> Prospect:
        result = await self.db.execute(
            select(Prospect).where(
                and_(Prospect.tenant_id == tenant_id, Prospect.id == prospect_id)
            )
        )
        prospect = result.scalar_one_or_none()
        if not prospect:
            raise ProspectNotFound(prospect_id)
        return prospect

    async def merge(
        self,
        tenant_id: UUID,
        master_id: UUID,
        duplicate_id: UUID,
        reason: str = "duplicate_detected"
    ) -> Prospect:
        """
        Absorb the duplicate into the master, hard-delete it and log the merge.
        Flushes but does not commit.
        """
        if master_id == duplicate_id:
            raise ValueError("Cannot merge a prospect into itself")

        master = await self._get(tenant_id, master_id)
        duplicate = await self._get(tenant_id, duplicate_id)

        snapshot = prospect_snapshot(duplicate)
        duplicate_last_interaction = duplicate.last_interaction_at

        # Delete first so unique contact fields can move onto the master
        await self.db.delete(duplicate)
        await self.db.flush()

        merge_fields(master, snapshot)
        master.last_interaction_at = _later(master.last_interaction_at, duplicate_last_interaction)

        self.db.add(ProspectMergeLog(
            tenant_id=tenant_id,
            master_prospect_id=master.id,
            merged_prospect_id=duplicate_id,
            merge_reason=reason,
            confidence_score=MERGE_CONFIDENCE,
            merged_data=snapshot,
        ))
        await self.db.flush()

        logger.info(f"Merged prospect {duplicate_id} into {master.id} ({reason})")
        return master

    def apply_candidate(self, master: Prospect, candidate: NormalizedProspect) -> Prospect:
        """Merge an incoming normalized record onto an existing row."""
        merge_fields(master, candidate.to_record())
        master.last_interaction_at = _later(master.last_interaction_at, candidate.last_interaction_at)
        return master

    async def insert(self, tenant_id: UUID, candidate: NormalizedProspect) -> Prospect:
        """New record with normalized fields and no pipeline scores yet."""
        prospect = Prospect(
            tenant_id=tenant_id,
            last_interaction_at=candidate.last_interaction_at,
            **candidate.to_record()
        )
        self.db.add(prospect)
        await self.db.flush()
        return prospect

    async def resolve(self, tenant_id: UUID, candidate: NormalizedProspect) -> ResolutionResult:
        """
        Merge into an existing record or insert a new one, then commit.

        Serialized per contact identity. A unique violation means another
        worker won the insert race; it surfaces as MergeConflict so the job
        is retried and finds the winner on the next attempt.
        """
        keys = [f"{tenant_id}:{key}" for key in candidate.identity_keys()]

        async with self.identity_lock.hold(keys):
            matches, family = await self._find_with_family(tenant_id, candidate)
            try:
                if matches:
                    master = matches[0]
                    absorbed = []
                    for other in matches[1:]:
                        await self.merge(tenant_id, master.id, other.id)
                        absorbed.append(other.id)
                    self.apply_candidate(master, candidate)
                    await self.db.commit()
                    result = ResolutionResult(master, False, family, absorbed)
                else:
                    prospect = await self.insert(tenant_id, candidate)
                    await self.db.commit()
                    result = ResolutionResult(prospect, True)
            except IntegrityError as e:
                await self.db.rollback()
                raise MergeConflict(
                    f"Identity conflict for tenant {tenant_id}: {candidate.identity_keys()}"
                ) from e

        logger.info(
            f"Resolved prospect {result.prospect.id}: "
            f"{'inserted' if result.is_new else f'merged on {family}'}"
        )
        return result


def create_duplicate_resolver(db: AsyncSession, identity_lock: Optional[KeyedLock] = None) -> DuplicateResolver:
    return DuplicateResolver(db, identity_lock)
