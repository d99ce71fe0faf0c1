"""
Resource handler plumbing shared by every managed resource.

A handler turns a typed configuration into an API object, submits it, and
runs the convergence poller until the remote reconciler has caught up.
Every failure leaves the handler as a ProviderError whose ``code`` names the
operation (``ERROR_CREATE_PULSAR_CLUSTER`` and so on) with the underlying
exception chained.
"""

import logging
import threading
from typing import Callable, ClassVar, Optional, Tuple, Type

from pydantic import BaseModel, Field

from streamnative_provider.client.api import CloudApi
from streamnative_provider.client.errors import ApiError, is_not_found
from streamnative_provider.models.meta import CloudObject
from streamnative_provider.models.poller import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    PollOutcome,
    PollRequest,
    Verdict,
)
from streamnative_provider.poller.convergence import (
    ConvergencePoller,
    DeadlineExceededError,
)

logger = logging.getLogger(__name__)

MINUTE = 60.0


class ProviderError(Exception):
    """A resource or data source operation failed."""

    def __init__(self, code: str, message: str):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message

    @property
    def not_found(self) -> bool:
        return is_not_found(self.__cause__)

    @property
    def timed_out(self) -> bool:
        return isinstance(self.__cause__, DeadlineExceededError)


class ResourceTimeouts(BaseModel):
    """Per-operation deadlines, in seconds."""

    create_seconds: float = Field(gt=0, default=20 * MINUTE)
    update_seconds: float = Field(gt=0, default=20 * MINUTE)
    delete_seconds: float = Field(gt=0, default=20 * MINUTE)


def parse_resource_id(resource_id: str) -> Tuple[str, str]:
    """Split an ``<organization>/<name>`` identifier."""
    parts = resource_id.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(
            f"resource id must look like <organization>/<name>, got: {resource_id!r}"
        )
    return parts[0], parts[1]


class ResourceHandler:
    """
    Base class for managed resources.

    Subclasses set the class attributes and implement create, read, update
    and delete. ``read`` returns None once the remote object is gone.
    """

    TYPE_NAME: ClassVar[str] = ""
    KIND: ClassVar[Type[CloudObject]] = CloudObject
    CODE: ClassVar[str] = ""
    CONFIG: ClassVar[Type[BaseModel]] = BaseModel
    STATE: ClassVar[Type[BaseModel]] = BaseModel
    DEFAULT_TIMEOUTS: ClassVar[ResourceTimeouts] = ResourceTimeouts()

    def __init__(
        self,
        client: CloudApi,
        poller: Optional[ConvergencePoller] = None,
        timeouts: Optional[ResourceTimeouts] = None,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        cancel: Optional[threading.Event] = None,
    ):
        self.client = client
        self.poller = poller or ConvergencePoller()
        self.timeouts = timeouts or self.DEFAULT_TIMEOUTS
        self.poll_interval_seconds = poll_interval_seconds
        self.cancel = cancel

    @classmethod
    def schema(cls) -> dict:
        return {
            "type": cls.TYPE_NAME,
            "config": cls.CONFIG.model_json_schema(),
            "state": cls.STATE.model_json_schema(),
        }

    def create(self, config: BaseModel) -> BaseModel:
        raise NotImplementedError

    def read(self, namespace: str, name: str) -> Optional[BaseModel]:
        raise NotImplementedError

    def update(self, state: BaseModel, config: BaseModel) -> BaseModel:
        raise NotImplementedError

    def delete(self, state: BaseModel) -> None:
        raise NotImplementedError

    def import_state(self, resource_id: str) -> BaseModel:
        """Adopt an existing remote object by ``<organization>/<name>``."""
        code = f"ERROR_IMPORT_{self.CODE}"
        try:
            namespace, name = parse_resource_id(resource_id)
        except ValueError as exc:
            raise ProviderError(code, str(exc)) from exc
        state = self.read(namespace, name)
        if state is None:
            raise ProviderError(code, f"import {resource_id!r}: {self.KIND.KIND} not found")
        return state

    def wait(
        self,
        namespace: Optional[str],
        name: str,
        classify: Callable[[Optional[CloudObject], Optional[ApiError]], Verdict],
        timeout_seconds: float,
        poll_interval_seconds: Optional[float] = None,
    ) -> PollOutcome:
        """Poll this handler's kind until ``classify`` converges."""
        request = PollRequest(
            resource_kind=self.KIND.KIND,
            namespace=namespace,
            name=name,
            timeout_seconds=timeout_seconds,
            poll_interval_seconds=poll_interval_seconds or self.poll_interval_seconds,
        )
        return self.poller.run(
            request,
            lambda: self.client.get(self.KIND, namespace, name),
            classify,
            cancel=self.cancel,
        )

    def get_or_none(self, namespace: str, name: str) -> Optional[CloudObject]:
        """Fetch this handler's kind, mapping not-found to None."""
        try:
            return self.client.get(self.KIND, namespace, name)
        except ApiError as exc:
            if exc.not_found:
                logger.info("%s %s/%s no longer exists", self.KIND.KIND, namespace, name)
                return None
            raise ProviderError(f"ERROR_READ_{self.CODE}", str(exc)) from exc
