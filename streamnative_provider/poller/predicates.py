"""
Readiness predicates: classify one fetch into a Verdict.

Each predicate takes the fetched object (or None) and the fetch error (or
None). Exactly one of the two is set.
"""

from typing import Optional

from streamnative_provider.client.errors import ApiError
from streamnative_provider.models.meta import READY_CONDITION, CloudObject
from streamnative_provider.models.poller import Verdict


def condition_ready(obj: Optional[CloudObject], error: Optional[ApiError]) -> Verdict:
    """Converged once the Ready condition is True. The object must exist."""
    if error is not None:
        return Verdict.failed(str(error))
    for condition in obj.status.conditions:
        if condition.type == READY_CONDITION and condition.status == "True":
            return Verdict.converged()
    current = obj.status.condition(READY_CONDITION)
    if current is None:
        return Verdict.pending("no Ready condition reported yet")
    detail = current.message or current.reason
    if detail:
        return Verdict.pending(f"Ready is {current.status}: {detail}")
    return Verdict.pending(f"Ready is {current.status}")


def generation_observed(obj: Optional[CloudObject], error: Optional[ApiError]) -> Verdict:
    """Converged once the controller has observed the latest spec."""
    if error is not None:
        return Verdict.failed(str(error))
    observed = obj.status.observed_generation
    generation = obj.metadata.generation
    if observed == generation:
        return Verdict.converged()
    return Verdict.pending(f"observed generation {observed} of {generation}")


def absence_confirmed(obj: Optional[CloudObject], error: Optional[ApiError]) -> Verdict:
    """Converged once the object is gone. Other fetch errors fail fast."""
    if error is not None:
        if error.not_found:
            return Verdict.converged()
        return Verdict.failed(str(error))
    if obj.metadata.deletion_timestamp is not None:
        return Verdict.pending("deletion in progress")
    return Verdict.pending("still exists")


def existence_confirmed(obj: Optional[CloudObject], error: Optional[ApiError]) -> Verdict:
    """Converged once the object can be read back after a create."""
    if error is not None:
        if error.not_found:
            return Verdict.pending("not visible yet")
        return Verdict.failed(str(error))
    return Verdict.converged()
