"""
Convergence Poller: waits for the remote reconciler to catch up.

Every mutating call against the control plane returns before the remote
controller has acted on it. The poller re-fetches the object at a fixed
interval and asks a readiness predicate to classify each fetch.

Behavioral Contract:
- The deadline is fixed when polling starts and never moves
- Fetches are strictly sequential; the polled object is never mutated
- A Failed verdict stops polling immediately, there is no retry
- Sleeps are clamped to the remaining time and interrupted by cancellation
- No state is shared between runs; one poller may serve many requests
"""

import logging
import threading
import time
from typing import Callable, NoReturn, Optional, TypeVar

from streamnative_provider.client.errors import ApiError
from streamnative_provider.models.poller import (
    PollOutcome,
    PollPhase,
    PollRequest,
    Verdict,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fetch = Callable[[], T]
Classify = Callable[[Optional[T], Optional[ApiError]], Verdict]
Clock = Callable[[], float]
Sleep = Callable[[float, Optional[threading.Event]], bool]


class ConvergenceError(Exception):
    """Polling ended without convergence. Carries the final outcome."""

    def __init__(self, message: str, outcome: PollOutcome):
        super().__init__(message)
        self.outcome = outcome


class DeadlineExceededError(ConvergenceError):
    """The deadline passed while the predicate still reported Pending."""
    pass


class RemoteRejectedError(ConvergenceError):
    """The predicate reported Failed, e.g. a fetch error other than not-found."""
    pass


class PollCancelledError(ConvergenceError):
    """The caller's cancellation event fired while waiting."""
    pass


def interruptible_sleep(seconds: float, cancel: Optional[threading.Event] = None) -> bool:
    """Sleep for ``seconds``. Returns True if ``cancel`` fired first."""
    if cancel is None:
        time.sleep(seconds)
        return False
    return cancel.wait(seconds)


class ConvergencePoller:
    """
    Generic poll-until-ready loop shared by every resource handler.

    The clock and sleep function are injectable so tests can run the loop
    against a fake clock without real waiting.
    """

    def __init__(self, clock: Clock = time.monotonic, sleep: Sleep = interruptible_sleep):
        self._clock = clock
        self._sleep = sleep

    def run(
        self,
        request: PollRequest,
        fetch: Fetch,
        classify: Classify,
        cancel: Optional[threading.Event] = None,
    ) -> PollOutcome:
        """
        Poll until ``classify`` reports Converged.

        Returns the outcome on convergence. Raises RemoteRejectedError on a
        Failed verdict, DeadlineExceededError once the deadline has passed,
        and PollCancelledError when ``cancel`` is set.
        """
        start = self._clock()
        deadline = start + request.timeout_seconds
        attempts = 0
        reason: Optional[str] = None

        while True:
            if cancel is not None and cancel.is_set():
                self._fail(PollCancelledError, request, start, attempts, reason, "cancelled")

            attempts += 1
            obj, error = None, None
            try:
                obj = fetch()
            except ApiError as exc:
                error = exc

            verdict = classify(obj, error)
            reason = verdict.reason
            logger.debug(
                "Poll attempt %d for %s: %s (%s)",
                attempts, request.target, verdict.phase.value, reason or "-",
            )

            if verdict.phase == PollPhase.CONVERGED:
                outcome = self._outcome(request, PollPhase.CONVERGED, start, attempts, reason)
                logger.info(
                    "%s converged after %d attempt(s) in %.1fs",
                    request.target, attempts, outcome.elapsed_seconds,
                )
                return outcome

            if verdict.phase == PollPhase.FAILED:
                self._fail(RemoteRejectedError, request, start, attempts, reason, "rejected")

            remaining = deadline - self._clock()
            if remaining <= 0:
                self._fail(DeadlineExceededError, request, start, attempts, reason, "timed out")

            if self._sleep(min(request.poll_interval_seconds, remaining), cancel):
                self._fail(PollCancelledError, request, start, attempts, reason, "cancelled")

            if self._clock() >= deadline:
                self._fail(DeadlineExceededError, request, start, attempts, reason, "timed out")

    def _outcome(
        self,
        request: PollRequest,
        phase: PollPhase,
        start: float,
        attempts: int,
        reason: Optional[str],
    ) -> PollOutcome:
        return PollOutcome(
            resource_kind=request.resource_kind,
            namespace=request.namespace,
            name=request.name,
            phase=phase,
            attempts=attempts,
            elapsed_seconds=max(0.0, self._clock() - start),
            last_reason=reason,
        )

    def _fail(
        self,
        error_cls: type,
        request: PollRequest,
        start: float,
        attempts: int,
        reason: Optional[str],
        verb: str,
    ) -> NoReturn:
        phase = PollPhase.FAILED if error_cls is RemoteRejectedError else PollPhase.PENDING
        outcome = self._outcome(request, phase, start, attempts, reason)
        message = (
            f"waiting for {request.target} {verb} after "
            f"{outcome.elapsed_seconds:.1f}s and {attempts} attempt(s)"
        )
        if reason:
            message = f"{message}: {reason}"
        logger.warning(message)
        raise error_cls(message, outcome)
