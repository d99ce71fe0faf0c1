"""
In-memory control plane implementing CloudApi.

Stands in for the API server in tests and local runs. Reconciliation is
simulated by counting reads: an object converges (Ready=True, observed
generation caught up) after ``reconcile_after_reads`` reads following its
last mutation, and a deleted object disappears after
``delete_after_reads`` reads.
"""

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Dict, List, Optional, Tuple, Type, TypeVar
from uuid import uuid4

from streamnative_provider.client.api import (
    CREATE_FIELD_MANAGER,
    UPDATE_FIELD_MANAGER,
)
from streamnative_provider.client.errors import ApiError, ConflictError, NotFoundError
from streamnative_provider.models.meta import READY_CONDITION, CloudObject, Condition

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=CloudObject)

_Key = Tuple[str, Optional[str], str]


class InMemoryCloudClient:
    """Dictionary-backed API server with scripted reconciliation."""

    def __init__(
        self,
        reconcile_after_reads: int = 1,
        delete_after_reads: int = 1,
        ready_on_create: bool = False,
    ):
        self.reconcile_after_reads = reconcile_after_reads
        self.delete_after_reads = delete_after_reads
        self.ready_on_create = ready_on_create

        self._objects: Dict[_Key, CloudObject] = {}
        self._reads_since_mutation: Dict[_Key, int] = {}
        self._injected: Deque[ApiError] = deque()
        self.calls: List[Tuple[str, str, Optional[str], str]] = []

    # --- Test hooks ---

    def seed(self, obj: CloudObject, ready: bool = True) -> CloudObject:
        """Insert an object as if it had been created and reconciled."""
        stored = obj.model_copy(deep=True)
        meta = stored.metadata
        if not meta.uid:
            meta.uid = uuid4().hex
        if meta.generation == 0:
            meta.generation = 1
        if ready:
            stored.status.observed_generation = meta.generation
            _set_ready(stored, True)
        self._objects[self._key(type(stored), meta.namespace, meta.name)] = stored
        return stored.model_copy(deep=True)

    def inject_error(self, error: ApiError, times: int = 1) -> None:
        """Make the next ``times`` reads fail with ``error``."""
        for _ in range(times):
            self._injected.append(error)

    def peek(self, kind: Type[T], namespace: Optional[str], name: str) -> Optional[T]:
        """Look at an object without counting it as a read."""
        obj = self._objects.get(self._key(kind, namespace, name))
        return obj.model_copy(deep=True) if obj else None

    def call_count(self, method: str, kind: Optional[Type[CloudObject]] = None) -> int:
        return sum(
            1 for call in self.calls
            if call[0] == method and (kind is None or call[1] == kind.KIND)
        )

    # --- CloudApi ---

    def get(self, kind: Type[T], namespace: Optional[str], name: str) -> T:
        self.calls.append(("get", kind.KIND, namespace, name))
        if self._injected:
            raise self._injected.popleft()

        key = self._key(kind, namespace, name)
        obj = self._objects.get(key)
        if obj is None:
            raise NotFoundError(f"{kind.PLURAL} {name!r} not found")

        reads = self._reads_since_mutation.get(key, 0) + 1
        self._reads_since_mutation[key] = reads

        if obj.metadata.deletion_timestamp is not None:
            if reads >= self.delete_after_reads:
                del self._objects[key]
                self._reads_since_mutation.pop(key, None)
                raise NotFoundError(f"{kind.PLURAL} {name!r} not found")
        elif reads >= self.reconcile_after_reads:
            obj.status.observed_generation = obj.metadata.generation
            _set_ready(obj, True)

        return obj.model_copy(deep=True)

    def list(self, kind: Type[T], namespace: Optional[str]) -> List[T]:
        self.calls.append(("list", kind.KIND, namespace, ""))
        return [
            obj.model_copy(deep=True)
            for (kind_name, ns, _), obj in sorted(self._objects.items())
            if kind_name == kind.KIND and (not kind.NAMESPACED or ns == namespace)
        ]

    def create(self, obj: T, field_manager: str = CREATE_FIELD_MANAGER) -> T:
        kind = type(obj)
        stored = obj.model_copy(deep=True)
        meta = stored.metadata
        if not meta.name:
            meta.name = f"{kind.KIND.lower()}-{uuid4().hex[:8]}"
        self.calls.append(("create", kind.KIND, meta.namespace, meta.name))

        key = self._key(kind, meta.namespace, meta.name)
        if key in self._objects:
            raise ConflictError(f"{kind.PLURAL} {meta.name!r} already exists")

        meta.uid = uuid4().hex
        meta.generation = 1
        meta.resource_version = "1"
        meta.annotations.setdefault("cloud.streamnative.io/field-manager", field_manager)
        stored.status = type(stored.status)()
        _set_ready(stored, self.ready_on_create)
        if self.ready_on_create:
            stored.status.observed_generation = 1

        self._objects[key] = stored
        self._reads_since_mutation[key] = 0
        logger.debug("Created %s %s/%s", kind.KIND, meta.namespace, meta.name)
        return stored.model_copy(deep=True)

    def update(self, obj: T, field_manager: str = UPDATE_FIELD_MANAGER) -> T:
        kind = type(obj)
        meta = obj.metadata
        self.calls.append(("update", kind.KIND, meta.namespace, meta.name))

        key = self._key(kind, meta.namespace, meta.name)
        current = self._objects.get(key)
        if current is None:
            raise NotFoundError(f"{kind.PLURAL} {meta.name!r} not found")

        updated = obj.model_copy(deep=True)
        updated.status = current.status
        updated.metadata.uid = current.metadata.uid
        updated.metadata.generation = current.metadata.generation
        if updated.spec != current.spec:
            updated.metadata.generation += 1
            _set_ready(updated, False)
        updated.metadata.resource_version = str(
            int(current.metadata.resource_version or "1") + 1
        )

        self._objects[key] = updated
        self._reads_since_mutation[key] = 0
        return updated.model_copy(deep=True)

    def delete(
        self,
        kind: Type[CloudObject],
        namespace: Optional[str],
        name: str,
        propagation_policy: Optional[str] = None,
    ) -> None:
        self.calls.append(("delete", kind.KIND, namespace, name))
        key = self._key(kind, namespace, name)
        obj = self._objects.get(key)
        if obj is None:
            raise NotFoundError(f"{kind.PLURAL} {name!r} not found")
        if self.delete_after_reads <= 0:
            del self._objects[key]
            return
        obj.metadata.deletion_timestamp = datetime.now(timezone.utc)
        self._reads_since_mutation[key] = 0

    @staticmethod
    def _key(kind: Type[CloudObject], namespace: Optional[str], name: str) -> _Key:
        return (kind.KIND, namespace if kind.NAMESPACED else None, name)


def _set_ready(obj: CloudObject, ready: bool) -> None:
    status = "True" if ready else "False"
    conditions = [c for c in obj.status.conditions if c.type != READY_CONDITION]
    conditions.append(Condition(type=READY_CONDITION, status=status))
    obj.status.conditions = conditions
