"""Object metadata and status shared by every control-plane resource."""

from datetime import datetime
from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

API_GROUP = "cloud.streamnative.io"
API_VERSION = f"{API_GROUP}/v1alpha1"

READY_CONDITION = "Ready"


class CloudModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ObjectMeta(CloudModel):
    name: str = ""
    namespace: Optional[str] = None
    uid: Optional[str] = None
    generation: int = 0
    resource_version: Optional[str] = None
    annotations: Dict[str, str] = {}
    labels: Dict[str, str] = {}
    deletion_timestamp: Optional[datetime] = None


class Condition(CloudModel):
    type: str
    status: str                             # "True" | "False" | "Unknown"
    reason: Optional[str] = None
    message: Optional[str] = None


class ResourceStatus(CloudModel):
    conditions: List[Condition] = []
    observed_generation: int = 0

    def condition(self, condition_type: str) -> Optional[Condition]:
        """Last condition of the given type, if any."""
        found = None
        for condition in self.conditions:
            if condition.type == condition_type:
                found = condition
        return found

    def is_true(self, condition_type: str = READY_CONDITION) -> bool:
        return any(
            c.type == condition_type and c.status == "True"
            for c in self.conditions
        )


class CloudObject(CloudModel):
    """A custom resource served by the cloud API server."""

    KIND: ClassVar[str] = ""
    PLURAL: ClassVar[str] = ""
    NAMESPACED: ClassVar[bool] = True

    api_version: str = API_VERSION
    kind: str = ""
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    status: ResourceStatus = Field(default_factory=ResourceStatus)

    def model_post_init(self, context) -> None:
        if not self.kind:
            self.kind = self.KIND

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> Optional[str]:
        return self.metadata.namespace

    @property
    def resource_id(self) -> str:
        """Provider-facing identifier, ``<organization>/<name>``."""
        if self.NAMESPACED:
            return f"{self.metadata.namespace}/{self.metadata.name}"
        return self.metadata.name

    @property
    def ready(self) -> bool:
        return self.status.is_true(READY_CONDITION)


class PoolMemberReference(CloudModel):
    namespace: str = ""
    name: str = ""
