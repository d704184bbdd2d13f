"""Pipeline context: the in-memory mirror of one execution's pass log."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import UUID

from prospect_intel.schemas.prospect import NormalizedProspect


@dataclass(frozen=True)
class PassOutcome:
    """Output of one pass, exactly as written to the pass log."""
    number: int
    name: str
    results: Dict[str, Any]
    processing_time_ms: int = 0


@dataclass
class PipelineContext:
    """
    Everything a pass may read: the job inputs plus the outcomes of the
    passes already persisted. Outcomes are only ever appended, in order.
    """
    job_id: UUID
    tenant_id: UUID
    raw_payload: Any
    prospect: NormalizedProspect
    outcomes: Dict[int, PassOutcome] = field(default_factory=dict)

    def record(self, outcome: PassOutcome) -> None:
        expected = len(self.outcomes) + 1
        if outcome.number != expected:
            raise ValueError(f"Pass {outcome.number} recorded out of order; expected pass {expected}")
        self.outcomes[outcome.number] = outcome

    def results(self, number: int) -> Dict[str, Any]:
        outcome = self.outcomes.get(number)
        if outcome is None:
            raise KeyError(f"Pass {number} has not completed")
        return outcome.results

    def get(self, number: int, key: str, default: Any = None) -> Any:
        outcome = self.outcomes.get(number)
        return outcome.results.get(key, default) if outcome else default

    @property
    def completed_passes(self) -> List[int]:
        return sorted(self.outcomes)

    @property
    def last_pass(self) -> Optional[int]:
        return max(self.outcomes) if self.outcomes else None
