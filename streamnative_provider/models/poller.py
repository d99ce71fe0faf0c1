"""Convergence poller requests, verdicts and outcomes."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_POLL_INTERVAL_SECONDS = 10.0


class PollPhase(str, Enum):
    PENDING = "pending"         # not converged yet; poll again
    CONVERGED = "converged"     # terminal
    FAILED = "failed"           # terminal


class Verdict(BaseModel):
    """What a readiness predicate concluded about one fetch."""

    phase: PollPhase
    reason: Optional[str] = None

    @classmethod
    def converged(cls) -> "Verdict":
        return cls(phase=PollPhase.CONVERGED)

    @classmethod
    def pending(cls, reason: str) -> "Verdict":
        return cls(phase=PollPhase.PENDING, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "Verdict":
        return cls(phase=PollPhase.FAILED, reason=reason)


class PollRequest(BaseModel):
    """What to poll and for how long. Lives for a single mutating call."""

    resource_kind: str
    namespace: Optional[str] = None
    name: str
    timeout_seconds: float = Field(gt=0)
    poll_interval_seconds: float = Field(gt=0, default=DEFAULT_POLL_INTERVAL_SECONDS)

    @property
    def target(self) -> str:
        if self.namespace:
            return f"{self.resource_kind.lower()}: {self.namespace}/{self.name}"
        return f"{self.resource_kind.lower()}: {self.name}"


class PollOutcome(BaseModel):
    """Final result of a poll, returned on success and attached to failures."""

    resource_kind: str
    namespace: Optional[str] = None
    name: str
    phase: PollPhase
    attempts: int = 0
    elapsed_seconds: float = 0.0
    last_reason: Optional[str] = None

    @property
    def converged(self) -> bool:
        return self.phase == PollPhase.CONVERGED
