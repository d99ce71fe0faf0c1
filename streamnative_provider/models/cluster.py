"""Pulsar cluster: brokers and bookies provisioned inside an instance."""

from typing import Dict, List, Optional

from pydantic import Field

from streamnative_provider.models.instance import ENGINE_ANNOTATION, URSA_ENGINE
from streamnative_provider.models.meta import (
    CloudModel,
    CloudObject,
    PoolMemberReference,
)
from streamnative_provider.models.quantity import Quantity, units_from_resources

SERVERLESS_ANNOTATION = "cloud.streamnative.io/type"
DEFAULT_GATEWAY = "default"


class NodeResources(CloudModel):
    cpu: Optional[Quantity] = None
    memory: Optional[Quantity] = None


class Broker(CloudModel):
    replicas: Optional[int] = None
    resources: Optional[NodeResources] = None
    image: str = ""


class BookKeeper(CloudModel):
    replicas: Optional[int] = None
    resources: Optional[NodeResources] = None
    image: str = ""


class KafkaConfig(CloudModel):
    pass


class MqttConfig(CloudModel):
    pass


class ProtocolsConfig(CloudModel):
    kafka: Optional[KafkaConfig] = None
    mqtt: Optional[MqttConfig] = None


class AuditLog(CloudModel):
    categories: List[str] = []


class ClusterConfig(CloudModel):
    websocket_enabled: Optional[bool] = None
    function_enabled: Optional[bool] = None
    transaction_enabled: Optional[bool] = None
    protocols: Optional[ProtocolsConfig] = None
    audit_log: Optional[AuditLog] = None
    custom: Dict[str, str] = {}


class ServiceEndpoint(CloudModel):
    dns_name: str = ""
    type: str = ""                          # "service" endpoints carry client traffic
    gateway: Optional[str] = None


class EndpointAccess(CloudModel):
    gateway: str = DEFAULT_GATEWAY


class PulsarClusterSpec(CloudModel):
    instance_name: str = ""
    display_name: Optional[str] = None
    location: Optional[str] = None
    pool_member_ref: Optional[PoolMemberReference] = None
    release_channel: Optional[str] = None
    broker: Broker = Field(default_factory=Broker)
    book_keeper: Optional[BookKeeper] = Field(default=None, alias="bookkeeper")
    config: Optional[ClusterConfig] = None
    service_endpoints: List[ServiceEndpoint] = []
    endpoint_access: List[EndpointAccess] = []


class PulsarCluster(CloudObject):
    KIND = "PulsarCluster"
    PLURAL = "pulsarclusters"

    spec: PulsarClusterSpec = Field(default_factory=PulsarClusterSpec)

    @property
    def ursa_engine(self) -> bool:
        return self.metadata.annotations.get(ENGINE_ANNOTATION) == URSA_ENGINE

    @property
    def compute_unit(self) -> float:
        resources = self.spec.broker.resources
        if resources is None:
            return units_from_resources(None, None)
        return units_from_resources(resources.cpu, resources.memory)

    @property
    def storage_unit(self) -> float:
        bookkeeper = self.spec.book_keeper
        if bookkeeper is None or bookkeeper.resources is None:
            return units_from_resources(None, None)
        return units_from_resources(
            bookkeeper.resources.cpu, bookkeeper.resources.memory
        )

    @property
    def pulsar_version(self) -> Optional[str]:
        return _image_tag(self.spec.broker.image)

    @property
    def bookkeeper_version(self) -> Optional[str]:
        if self.spec.book_keeper is None:
            return None
        return _image_tag(self.spec.book_keeper.image)


def _image_tag(image: str) -> Optional[str]:
    parts = image.split(":")
    if len(parts) > 1:
        return parts[1]
    return None
