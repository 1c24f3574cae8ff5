"""Match / no-match decision over the best ranked candidate."""

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from ..core.errors import InvalidInput
from .types import QueryResult

from util.logging import logger


@dataclass(frozen=True)
class MatchOutcome:
    matched: bool
    distance: Optional[int]
    threshold: int
    best: Optional[QueryResult] = None

    @property
    def record_id(self) -> Optional[str]:
        return self.best.record.id if self.best is not None else None


def decide(best: Union[QueryResult, Sequence[QueryResult], None], max_distance: int) -> MatchOutcome:
    """Apply ``max_distance`` to the best candidate.

    ``best`` may be a single QueryResult, the ordered list returned by a query
    (its first element is used), or None. No candidate never matches.
    """
    if max_distance < 0:
        raise InvalidInput(f"max_distance must be >= 0, got {max_distance}")

    if best is not None and not isinstance(best, QueryResult):
        best = best[0] if len(best) > 0 else None

    if best is None:
        outcome = MatchOutcome(matched=False, distance=None, threshold=max_distance)
    else:
        outcome = MatchOutcome(
            matched=best.distance <= max_distance,
            distance=best.distance,
            threshold=max_distance,
            best=best,
        )

    logger.log_decision(outcome.matched, outcome.distance, max_distance, outcome.record_id)
    return outcome
