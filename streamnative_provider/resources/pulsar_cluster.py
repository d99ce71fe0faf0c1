"""
Pulsar cluster resource.

Behavioral Contract:
- A cluster is placed either on a named pool member or by location
- The pool member must belong to the pool the instance is attached to
- Serverless clusters run 2 brokers at 0.5 compute units and only accept
  display name changes
- Ursa and serverless clusters have no bookkeeper tier and follow the
  rapid release channel
- Create waits for Ready; update waits for the new generation to be
  observed and then for Ready; delete waits until the object is gone
"""

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from streamnative_provider.client.errors import ApiError
from streamnative_provider.models.cluster import (
    DEFAULT_GATEWAY,
    SERVERLESS_ANNOTATION,
    AuditLog,
    BookKeeper,
    Broker,
    ClusterConfig,
    EndpointAccess,
    KafkaConfig,
    MqttConfig,
    NodeResources,
    ProtocolsConfig,
    PulsarCluster,
    PulsarClusterSpec,
)
from streamnative_provider.models.gateway import PulsarGateway
from streamnative_provider.models.instance import (
    ENGINE_ANNOTATION,
    SERVERLESS_TYPE,
    URSA_ENGINE,
    PulsarInstance,
)
from streamnative_provider.models.meta import ObjectMeta, PoolMemberReference
from streamnative_provider.models.pool import PoolMember
from streamnative_provider.models.quantity import (
    DEFAULT_UNIT,
    cpu_quantity,
    memory_quantity,
)
from streamnative_provider.poller.convergence import ConvergenceError
from streamnative_provider.poller.predicates import (
    absence_confirmed,
    condition_ready,
    generation_observed,
)
from streamnative_provider.resources.base import (
    MINUTE,
    ProviderError,
    ResourceHandler,
    ResourceTimeouts,
)
from streamnative_provider.schema import validation
from streamnative_provider.schema.descriptions import describe

logger = logging.getLogger(__name__)

RAPID_CHANNEL = "rapid"
DEFAULT_BOOKIE_REPLICAS = 3
DEFAULT_BROKER_REPLICAS = 2
SERVICE_ENDPOINT_TYPE = "service"


class PulsarClusterSettings(BaseModel):
    """Broker feature switches and protocol handlers."""

    websocket_enabled: bool = Field(default=True, description=describe("websocket_enabled"))
    function_enabled: bool = Field(default=True, description=describe("function_enabled"))
    transaction_enabled: bool = Field(default=False, description=describe("transaction_enabled"))
    kafka_enabled: bool = Field(default=True, description=describe("kafka"))
    mqtt_enabled: bool = Field(default=True, description=describe("mqtt"))
    audit_log_categories: List[str] = Field(default=[], description=describe("categories"))
    custom: Dict[str, str] = Field(default={}, description=describe("custom"))

    @field_validator("audit_log_categories")
    @classmethod
    def _categories(cls, value: List[str]) -> List[str]:
        return validation.audit_log_categories(value, "audit_log_categories")


class EndpointAccessConfig(BaseModel):
    gateway: str = DEFAULT_GATEWAY


class PulsarClusterConfig(BaseModel):
    organization: str = Field(description=describe("organization"))
    name: Optional[str] = Field(default=None, description=describe("cluster_name"))
    display_name: Optional[str] = Field(default=None, description=describe("cluster_display_name"))
    instance_name: str = Field(description=describe("instance_name"))
    location: Optional[str] = Field(default=None, description=describe("location"))
    pool_member_name: Optional[str] = Field(default=None, description=describe("pool_member_name"))
    release_channel: str = Field(default=RAPID_CHANNEL, description=describe("release_channel"))
    bookie_replicas: Optional[int] = Field(default=None, description=describe("bookie_replicas"))
    broker_replicas: int = Field(
        default=DEFAULT_BROKER_REPLICAS, description=describe("broker_replicas")
    )
    compute_unit_per_broker: float = Field(
        default=DEFAULT_UNIT, description=describe("compute_unit_per_broker")
    )
    storage_unit_per_bookie: Optional[float] = Field(
        default=None, description=describe("storage_unit_per_bookie")
    )
    config: Optional[PulsarClusterSettings] = None
    endpoint_access: List[EndpointAccessConfig] = Field(
        default=[], description=describe("endpoint_access")
    )

    @field_validator("organization", "instance_name")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        return validation.not_blank(value, info.field_name)

    @field_validator("location", "pool_member_name")
    @classmethod
    def _optional_not_blank(cls, value: Optional[str], info) -> Optional[str]:
        if value is None:
            return value
        return validation.not_blank(value, info.field_name)

    @field_validator("release_channel")
    @classmethod
    def _release_channel(cls, value: str) -> str:
        return validation.one_of(value, validation.RELEASE_CHANNELS, "release_channel")

    @field_validator("bookie_replicas")
    @classmethod
    def _bookie_replicas(cls, value: Optional[int]) -> Optional[int]:
        if value is None:
            return value
        return validation.int_between(value, 3, 15, "bookie_replicas")

    @field_validator("broker_replicas")
    @classmethod
    def _broker_replicas(cls, value: int) -> int:
        return validation.int_between(value, 1, 15, "broker_replicas")

    @field_validator("compute_unit_per_broker", "storage_unit_per_bookie")
    @classmethod
    def _units(cls, value: Optional[float], info) -> Optional[float]:
        if value is None:
            return value
        return validation.unit_between(value, info.field_name)


class PulsarClusterState(BaseModel):
    id: str
    organization: str
    name: str
    display_name: Optional[str] = None
    instance_name: str
    location: Optional[str] = None
    pool_member_name: Optional[str] = None
    release_channel: Optional[str] = None
    type: str = Field(default="", description=describe("instance_type"))
    bookie_replicas: Optional[int] = None
    broker_replicas: Optional[int] = None
    compute_unit_per_broker: float = DEFAULT_UNIT
    storage_unit_per_bookie: float = DEFAULT_UNIT
    config: Optional[PulsarClusterSettings] = None
    endpoint_access: List[EndpointAccessConfig] = []
    ready: bool = Field(default=False, description=describe("cluster_ready"))
    http_tls_service_urls: List[str] = Field(default=[], description=describe("http_tls_service_urls"))
    pulsar_tls_service_urls: List[str] = Field(default=[], description=describe("pulsar_tls_service_urls"))
    websocket_service_urls: List[str] = Field(default=[], description=describe("websocket_service_urls"))
    kafka_service_urls: List[str] = Field(default=[], description=describe("kafka_service_urls"))
    mqtt_service_urls: List[str] = Field(default=[], description=describe("mqtt_service_urls"))
    pulsar_version: Optional[str] = Field(default=None, description=describe("pulsar_version"))
    bookkeeper_version: Optional[str] = Field(default=None, description=describe("bookkeeper_version"))

    @property
    def http_tls_service_url(self) -> Optional[str]:
        return _first(self.http_tls_service_urls)

    @property
    def pulsar_tls_service_url(self) -> Optional[str]:
        return _first(self.pulsar_tls_service_urls)

    @property
    def websocket_service_url(self) -> Optional[str]:
        return _first(self.websocket_service_urls)

    @property
    def kafka_service_url(self) -> Optional[str]:
        return _first(self.kafka_service_urls)

    @property
    def mqtt_service_url(self) -> Optional[str]:
        return _first(self.mqtt_service_urls)


class PulsarClusterResource(ResourceHandler):
    TYPE_NAME = "streamnative_pulsar_cluster"
    KIND = PulsarCluster
    CODE = "PULSAR_CLUSTER"
    CONFIG = PulsarClusterConfig
    STATE = PulsarClusterState
    DEFAULT_TIMEOUTS = ResourceTimeouts(
        create_seconds=60 * MINUTE,
        update_seconds=15 * MINUTE,
        delete_seconds=15 * MINUTE,
    )

    def create(self, config: PulsarClusterConfig) -> PulsarClusterState:
        namespace = config.organization
        if not config.pool_member_name and not config.location:
            raise ProviderError(
                "ERROR_CREATE_PULSAR_CLUSTER",
                "either pool_member_name or location must be provided",
            )

        try:
            instance = self.client.get(PulsarInstance, namespace, config.instance_name)
        except ApiError as exc:
            raise ProviderError(
                "ERROR_GET_PULSAR_INSTANCE_ON_CREATE_PULSAR_CLUSTER", str(exc)
            ) from exc

        if config.pool_member_name:
            self._check_pool_member(namespace, config.pool_member_name, instance)

        cluster = self._build(config, instance)

        for access in cluster.spec.endpoint_access:
            if access.gateway == DEFAULT_GATEWAY:
                continue
            try:
                self.client.get(PulsarGateway, namespace, access.gateway)
            except ApiError as exc:
                raise ProviderError(
                    "ERROR_GET_PULSAR_GATEWAY_ON_CREATE_PULSAR_CLUSTER", str(exc)
                ) from exc

        try:
            created = self.client.create(cluster)
        except ApiError as exc:
            raise ProviderError("ERROR_CREATE_PULSAR_CLUSTER", str(exc)) from exc

        if not created.ready:
            try:
                self.wait(
                    namespace, created.name, condition_ready,
                    self.timeouts.create_seconds,
                )
            except ConvergenceError as exc:
                raise ProviderError("ERROR_RETRY_READ_PULSAR_CLUSTER", str(exc)) from exc

        return self._read_required(namespace, created.name)

    def read(self, namespace: str, name: str) -> Optional[PulsarClusterState]:
        cluster = self.get_or_none(namespace, name)
        if cluster is None:
            return None
        try:
            instance = self.client.get(PulsarInstance, namespace, cluster.spec.instance_name)
        except ApiError as exc:
            raise ProviderError("ERROR_READ_PULSAR_INSTANCE", str(exc)) from exc
        return cluster_state(cluster, instance)

    def update(self, state: PulsarClusterState, config: PulsarClusterConfig) -> PulsarClusterState:
        namespace, name = state.organization, state.name
        serverless = state.type == SERVERLESS_TYPE
        display_name_changed = (config.display_name or None) != (state.display_name or None)

        if serverless and not display_name_changed:
            raise ProviderError(
                "ERROR_UPDATE_PULSAR_CLUSTER",
                "only display_name can be updated for serverless instance",
            )
        self._check_immutable(state, config, serverless)

        try:
            cluster = self.client.get(PulsarCluster, namespace, name)
        except ApiError as exc:
            raise ProviderError("ERROR_READ_PULSAR_CLUSTER", str(exc)) from exc

        before = cluster.spec.model_copy(deep=True)
        if display_name_changed:
            cluster.spec.display_name = config.display_name
        self._apply_sizing(cluster, config)
        if config.config is not None and not cluster.ursa_engine:
            cluster.spec.config = _cluster_config(config.config, cluster.spec.config)

        if cluster.spec == before:
            logger.info("Pulsar cluster %s/%s is up to date", namespace, name)
            return self._read_required(namespace, name)

        try:
            self.client.update(cluster)
        except ApiError as exc:
            raise ProviderError("ERROR_UPDATE_PULSAR_CLUSTER", str(exc)) from exc

        try:
            self.wait(namespace, name, generation_observed, self.timeouts.update_seconds)
            self.wait(namespace, name, condition_ready, self.timeouts.update_seconds)
        except ConvergenceError as exc:
            raise ProviderError("ERROR_RETRY_READ_PULSAR_CLUSTER", str(exc)) from exc

        return self._read_required(namespace, name)

    def delete(self, state: PulsarClusterState) -> None:
        namespace, name = state.organization, state.name
        try:
            self.client.delete(PulsarCluster, namespace, name)
        except ApiError as exc:
            raise ProviderError("ERROR_DELETE_PULSAR_CLUSTER", str(exc)) from exc

        try:
            self.wait(namespace, name, absence_confirmed, self.timeouts.delete_seconds)
        except ConvergenceError as exc:
            raise ProviderError("ERROR_RETRY_READ_PULSAR_CLUSTER", str(exc)) from exc

    # --- Helpers ---

    def _read_required(self, namespace: str, name: str) -> PulsarClusterState:
        state = self.read(namespace, name)
        if state is None:
            raise ProviderError(
                "ERROR_READ_PULSAR_CLUSTER", f"pulsar cluster {namespace}/{name} not found"
            )
        return state

    def _check_pool_member(self, namespace: str, pool_member_name: str, instance: PulsarInstance) -> None:
        try:
            pool_member = self.client.get(PoolMember, namespace, pool_member_name)
        except ApiError as exc:
            raise ProviderError(
                "ERROR_GET_POOL_MEMBER_ON_CREATE_PULSAR_CLUSTER", str(exc)
            ) from exc
        instance_pool = instance.spec.pool_ref.name if instance.spec.pool_ref else ""
        if pool_member.spec.pool_name != instance_pool:
            raise ProviderError(
                "ERROR_CREATE_PULSAR_CLUSTER",
                "the pool member does not belong to the pool which pulsar instance is attached",
            )

    def _build(self, config: PulsarClusterConfig, instance: PulsarInstance) -> PulsarCluster:
        compute_unit = config.compute_unit_per_broker
        storage_unit = config.storage_unit_per_bookie or DEFAULT_UNIT
        annotations: Dict[str, str] = {}

        if instance.serverless:
            if compute_unit != DEFAULT_UNIT:
                raise ProviderError(
                    "ERROR_CREATE_PULSAR_CLUSTER",
                    "compute_unit must be 0.5 for serverless instance",
                )
            if config.broker_replicas != DEFAULT_BROKER_REPLICAS:
                raise ProviderError(
                    "ERROR_CREATE_PULSAR_CLUSTER",
                    "broker_replicas must be 2 for serverless instance",
                )
            annotations[SERVERLESS_ANNOTATION] = SERVERLESS_TYPE
        if instance.ursa_engine:
            annotations[ENGINE_ANNOTATION] = URSA_ENGINE

        lean = instance.serverless or instance.ursa_engine
        if lean and config.release_channel != RAPID_CHANNEL:
            raise ProviderError(
                "ERROR_CREATE_PULSAR_CLUSTER",
                "release_channel must be rapid for ursa engine or serverless instance",
            )

        spec = PulsarClusterSpec(
            instance_name=config.instance_name,
            display_name=config.display_name or None,
            release_channel=config.release_channel,
            broker=Broker(
                replicas=config.broker_replicas,
                resources=_resources(compute_unit),
            ),
            endpoint_access=[EndpointAccess(gateway=a.gateway) for a in config.endpoint_access],
        )
        if not lean:
            spec.book_keeper = BookKeeper(
                replicas=config.bookie_replicas or DEFAULT_BOOKIE_REPLICAS,
                resources=_resources(storage_unit),
            )
            spec.config = _cluster_config(config.config, None)
        if config.pool_member_name:
            spec.pool_member_ref = PoolMemberReference(
                namespace=config.organization, name=config.pool_member_name
            )
        else:
            spec.location = config.location

        return PulsarCluster(
            metadata=ObjectMeta(
                name=config.name or "",
                namespace=config.organization,
                annotations=annotations,
            ),
            spec=spec,
        )

    @staticmethod
    def _check_immutable(state: PulsarClusterState, config: PulsarClusterConfig, serverless: bool) -> None:
        changed = []
        if config.organization != state.organization:
            changed.append("organization")
        if config.name and config.name != state.name:
            changed.append("name")
        if config.instance_name != state.instance_name:
            changed.append("instance_name")
        if (config.location or None) != (state.location or None):
            changed.append("location")
        if (config.pool_member_name or None) != (state.pool_member_name or None):
            changed.append("pool_member_name")
        if not serverless and state.release_channel and config.release_channel != state.release_channel:
            changed.append("release_channel")
        if changed:
            raise ProviderError(
                "ERROR_UPDATE_PULSAR_CLUSTER",
                f"The pulsar cluster {', '.join(changed)} does not support updates, "
                f"please recreate it",
            )

    @staticmethod
    def _apply_sizing(cluster: PulsarCluster, config: PulsarClusterConfig) -> None:
        spec = cluster.spec
        spec.broker.replicas = config.broker_replicas
        if config.compute_unit_per_broker != cluster.compute_unit:
            spec.broker.resources = _resources(config.compute_unit_per_broker)
        if spec.book_keeper is None:
            return
        if config.bookie_replicas is not None:
            spec.book_keeper.replicas = config.bookie_replicas
        storage_unit = config.storage_unit_per_bookie
        if storage_unit is not None and storage_unit != cluster.storage_unit:
            spec.book_keeper.resources = _resources(storage_unit)


def _resources(units: float) -> NodeResources:
    return NodeResources(cpu=cpu_quantity(units), memory=memory_quantity(units))


def _cluster_config(
    settings: Optional[PulsarClusterSettings], current: Optional[ClusterConfig]
) -> ClusterConfig:
    """Translate the settings block onto the remote config, keeping what it does not name."""
    config = current.model_copy(deep=True) if current else ClusterConfig()
    if settings is None:
        return config
    config.websocket_enabled = settings.websocket_enabled
    config.function_enabled = settings.function_enabled
    config.transaction_enabled = settings.transaction_enabled
    config.protocols = ProtocolsConfig(
        kafka=KafkaConfig() if settings.kafka_enabled else None,
        mqtt=MqttConfig() if settings.mqtt_enabled else None,
    )
    if settings.audit_log_categories:
        config.audit_log = AuditLog(categories=list(settings.audit_log_categories))
    else:
        config.audit_log = None
    if settings.custom:
        config.custom = dict(settings.custom)
    return config


def _settings(config: ClusterConfig) -> PulsarClusterSettings:
    protocols = config.protocols or ProtocolsConfig()
    return PulsarClusterSettings(
        websocket_enabled=bool(config.websocket_enabled),
        function_enabled=bool(config.function_enabled),
        transaction_enabled=bool(config.transaction_enabled),
        kafka_enabled=protocols.kafka is not None,
        mqtt_enabled=protocols.mqtt is not None,
        audit_log_categories=list(config.audit_log.categories) if config.audit_log else [],
        custom=dict(config.custom),
    )


def service_urls(cluster: PulsarCluster, istio_enabled: bool) -> Dict[str, List[str]]:
    """Client-facing URLs for every ``service`` endpoint of the cluster."""
    urls: Dict[str, List[str]] = {
        "http_tls_service_urls": [],
        "pulsar_tls_service_urls": [],
        "websocket_service_urls": [],
        "kafka_service_urls": [],
        "mqtt_service_urls": [],
    }
    config = cluster.spec.config
    protocols = config.protocols if config else None
    for endpoint in cluster.spec.service_endpoints:
        if endpoint.type != SERVICE_ENDPOINT_TYPE:
            continue
        dns = endpoint.dns_name
        urls["http_tls_service_urls"].append(f"https://{dns}")
        urls["pulsar_tls_service_urls"].append(f"pulsar+ssl://{dns}:6651")
        if config is None:
            continue
        if config.websocket_enabled:
            if istio_enabled:
                urls["websocket_service_urls"].append(f"wss://{dns}")
            else:
                urls["websocket_service_urls"].append(f"ws://{dns}:9443")
        if protocols is not None:
            if protocols.kafka is not None and istio_enabled:
                urls["kafka_service_urls"].append(f"{dns}:9093")
            if protocols.mqtt is not None:
                urls["mqtt_service_urls"].append(f"mqtts://{dns}:8883")
    return urls


def cluster_state(cluster: PulsarCluster, instance: PulsarInstance) -> PulsarClusterState:
    spec = cluster.spec
    lean = instance.serverless or cluster.ursa_engine
    pool_member = spec.pool_member_ref
    return PulsarClusterState(
        id=cluster.resource_id,
        organization=cluster.namespace,
        name=cluster.name,
        display_name=spec.display_name,
        instance_name=spec.instance_name,
        location=spec.location or None,
        pool_member_name=pool_member.name if pool_member and pool_member.name else None,
        release_channel=spec.release_channel or None,
        type=instance.spec.type,
        bookie_replicas=spec.book_keeper.replicas if spec.book_keeper else None,
        broker_replicas=spec.broker.replicas,
        compute_unit_per_broker=cluster.compute_unit,
        storage_unit_per_bookie=cluster.storage_unit,
        config=_settings(spec.config) if spec.config else None,
        endpoint_access=[EndpointAccessConfig(gateway=a.gateway) for a in spec.endpoint_access],
        ready=cluster.ready,
        pulsar_version=cluster.pulsar_version,
        bookkeeper_version=None if lean else cluster.bookkeeper_version,
        **service_urls(cluster, instance.istio_enabled),
    )


def _first(values: List[str]) -> Optional[str]:
    return values[0] if values else None
