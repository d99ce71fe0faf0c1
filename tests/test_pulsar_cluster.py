"""Tests for the pulsar cluster resource."""

import pytest
from pydantic import ValidationError

from streamnative_provider.client.memory import InMemoryCloudClient
from streamnative_provider.models import (
    ObjectMeta,
    PoolMember,
    PoolMemberSpec,
    PulsarCluster,
    PulsarGateway,
    PulsarInstance,
)
from streamnative_provider.models.cluster import (
    SERVERLESS_ANNOTATION,
    ClusterConfig,
    KafkaConfig,
    MqttConfig,
    ProtocolsConfig,
    PulsarClusterSpec,
    ServiceEndpoint,
)
from streamnative_provider.models.instance import (
    ENGINE_ANNOTATION,
    ISTIO_ENABLED_ANNOTATION,
    PulsarInstanceSpec,
)
from streamnative_provider.resources.base import ProviderError
from streamnative_provider.resources.pulsar_cluster import (
    EndpointAccessConfig,
    PulsarClusterConfig,
    PulsarClusterResource,
    PulsarClusterSettings,
    PulsarClusterState,
    cluster_state,
)


def _make_config(**overrides) -> PulsarClusterConfig:
    values = {
        "organization": "acme",
        "name": "c1",
        "instance_name": "inst",
        "pool_member_name": "aws-use2",
    }
    values.update(overrides)
    return PulsarClusterConfig(**values)


class TestPulsarClusterConfig:
    def test_defaults(self):
        config = _make_config()
        assert config.release_channel == "rapid"
        assert config.broker_replicas == 2
        assert config.compute_unit_per_broker == 0.5
        assert config.bookie_replicas is None
        assert config.endpoint_access == []

    @pytest.mark.parametrize("field,value", [
        ("release_channel", "beta"),
        ("bookie_replicas", 2),
        ("bookie_replicas", 16),
        ("broker_replicas", 0),
        ("compute_unit_per_broker", 0.1),
        ("storage_unit_per_bookie", 9),
        ("instance_name", ""),
        ("location", "  "),
    ])
    def test_rejects_invalid(self, field, value):
        with pytest.raises(ValidationError):
            _make_config(**{field: value})

    def test_rejects_unknown_audit_category(self):
        with pytest.raises(ValidationError):
            PulsarClusterSettings(audit_log_categories=["Admin"])


class TestPulsarClusterCreate:
    @pytest.fixture(autouse=True)
    def _handler(self, cloud, poller, fake_clock, seed_instance):
        self.cloud = cloud
        self.clock = fake_clock
        self.seed_instance = seed_instance
        self.handler = PulsarClusterResource(cloud, poller=poller)
        seed_instance("inst")

    def test_create_on_pool_member(self):
        state = self.handler.create(_make_config())

        assert state.id == "acme/c1"
        assert state.ready
        assert state.type == "dedicated"
        assert state.pool_member_name == "aws-use2"
        assert state.location is None
        assert state.broker_replicas == 2
        assert state.bookie_replicas == 3
        assert state.compute_unit_per_broker == 0.5
        assert state.storage_unit_per_bookie == 0.5

        stored = self.cloud.peek(PulsarCluster, "acme", "c1")
        assert stored.spec.pool_member_ref.namespace == "acme"
        assert stored.spec.broker.resources.cpu == "1"

    def test_create_by_location(self):
        state = self.handler.create(_make_config(pool_member_name=None, location="us-east-2"))

        assert state.location == "us-east-2"
        assert state.pool_member_name is None
        assert self.cloud.call_count("get", PoolMember) == 0

    def test_requires_pool_member_or_location(self):
        with pytest.raises(ProviderError) as excinfo:
            self.handler.create(_make_config(pool_member_name=None))

        assert excinfo.value.code == "ERROR_CREATE_PULSAR_CLUSTER"
        assert self.cloud.call_count("create") == 0

    def test_generated_name(self):
        state = self.handler.create(_make_config(name=None))
        assert state.name.startswith("pulsarcluster-")

    def test_sizing(self):
        state = self.handler.create(_make_config(
            broker_replicas=3,
            compute_unit_per_broker=2,
            bookie_replicas=5,
            storage_unit_per_bookie=1,
        ))
        assert state.broker_replicas == 3
        assert state.compute_unit_per_broker == 2.0
        assert state.bookie_replicas == 5
        assert state.storage_unit_per_bookie == 1.0

    def test_settings(self):
        state = self.handler.create(_make_config(config=PulsarClusterSettings(
            transaction_enabled=True,
            mqtt_enabled=False,
            audit_log_categories=["Management"],
            custom={"allowAutoTopicCreation": "true"},
        )))

        assert state.config.transaction_enabled
        assert state.config.kafka_enabled
        assert not state.config.mqtt_enabled
        assert state.config.audit_log_categories == ["Management"]
        assert state.config.custom == {"allowAutoTopicCreation": "true"}

    def test_missing_instance(self):
        with pytest.raises(ProviderError) as excinfo:
            self.handler.create(_make_config(instance_name="missing"))
        assert excinfo.value.code == "ERROR_GET_PULSAR_INSTANCE_ON_CREATE_PULSAR_CLUSTER"

    def test_missing_pool_member(self):
        with pytest.raises(ProviderError) as excinfo:
            self.handler.create(_make_config(pool_member_name="gcp-usc1"))
        assert excinfo.value.code == "ERROR_GET_POOL_MEMBER_ON_CREATE_PULSAR_CLUSTER"

    def test_pool_member_from_another_pool(self):
        self.cloud.seed(PoolMember(
            metadata=ObjectMeta(name="gcp-usc1", namespace="acme"),
            spec=PoolMemberSpec(type="gcloud", pool_name="shared-gcp"),
        ))

        with pytest.raises(ProviderError) as excinfo:
            self.handler.create(_make_config(pool_member_name="gcp-usc1"))

        assert excinfo.value.code == "ERROR_CREATE_PULSAR_CLUSTER"
        assert "does not belong" in excinfo.value.message
        assert self.cloud.call_count("create") == 0

    def test_named_gateway_must_exist(self):
        config = _make_config(endpoint_access=[EndpointAccessConfig(gateway="private-gw")])
        with pytest.raises(ProviderError) as excinfo:
            self.handler.create(config)
        assert excinfo.value.code == "ERROR_GET_PULSAR_GATEWAY_ON_CREATE_PULSAR_CLUSTER"

    def test_named_gateway(self):
        self.cloud.seed(PulsarGateway(metadata=ObjectMeta(name="private-gw", namespace="acme")))
        config = _make_config(endpoint_access=[
            EndpointAccessConfig(gateway="default"),
            EndpointAccessConfig(gateway="private-gw"),
        ])

        state = self.handler.create(config)

        assert [a.gateway for a in state.endpoint_access] == ["default", "private-gw"]
        assert self.cloud.call_count("get", PulsarGateway) == 1

    def test_serverless(self):
        self.seed_instance("sl", instance_type="serverless")

        state = self.handler.create(_make_config(instance_name="sl"))

        stored = self.cloud.peek(PulsarCluster, "acme", "c1")
        assert stored.metadata.annotations[SERVERLESS_ANNOTATION] == "serverless"
        assert stored.spec.book_keeper is None
        assert stored.spec.config is None
        assert state.type == "serverless"
        assert state.bookie_replicas is None
        assert state.bookkeeper_version is None

    @pytest.mark.parametrize("overrides,message", [
        ({"compute_unit_per_broker": 1}, "compute_unit must be 0.5"),
        ({"broker_replicas": 3}, "broker_replicas must be 2"),
        ({"release_channel": "lts"}, "release_channel must be rapid"),
    ])
    def test_serverless_restrictions(self, overrides, message):
        self.seed_instance("sl", instance_type="serverless")

        with pytest.raises(ProviderError) as excinfo:
            self.handler.create(_make_config(instance_name="sl", **overrides))

        assert excinfo.value.code == "ERROR_CREATE_PULSAR_CLUSTER"
        assert message in excinfo.value.message

    def test_ursa_engine(self):
        self.seed_instance("ursa", annotations={ENGINE_ANNOTATION: "ursa"})

        self.handler.create(_make_config(instance_name="ursa", broker_replicas=3))

        stored = self.cloud.peek(PulsarCluster, "acme", "c1")
        assert stored.metadata.annotations[ENGINE_ANNOTATION] == "ursa"
        assert stored.spec.book_keeper is None
        assert stored.spec.broker.replicas == 3

    def test_ursa_requires_rapid_channel(self):
        self.seed_instance("ursa", annotations={ENGINE_ANNOTATION: "ursa"})
        with pytest.raises(ProviderError):
            self.handler.create(_make_config(instance_name="ursa", release_channel="lts"))

    def test_create_times_out(self, poller):
        cloud = InMemoryCloudClient(reconcile_after_reads=1000)
        cloud.seed(PulsarInstance(
            metadata=ObjectMeta(name="inst", namespace="acme"),
            spec=PulsarInstanceSpec(type="dedicated"),
        ))
        handler = PulsarClusterResource(cloud, poller=poller)

        with pytest.raises(ProviderError) as excinfo:
            handler.create(_make_config(pool_member_name=None, location="us-east-2"))

        assert excinfo.value.code == "ERROR_RETRY_READ_PULSAR_CLUSTER"
        assert excinfo.value.timed_out
        assert self.clock.now == pytest.approx(60 * 60)


class TestPulsarClusterUpdate:
    @pytest.fixture(autouse=True)
    def _handler(self, cloud, poller, seed_instance):
        self.cloud = cloud
        self.seed_instance = seed_instance
        self.handler = PulsarClusterResource(cloud, poller=poller)
        seed_instance("inst")
        self.state = self.handler.create(_make_config())

    def test_scale_brokers(self):
        updated = self.handler.update(self.state, _make_config(broker_replicas=3))

        assert updated.broker_replicas == 3
        assert updated.ready
        stored = self.cloud.peek(PulsarCluster, "acme", "c1")
        assert stored.metadata.generation == 2
        assert stored.status.observed_generation == 2

    def test_unchanged_config_skips_update(self):
        self.handler.update(self.state, _make_config())
        assert self.cloud.call_count("update") == 0

    def test_resize_units(self):
        updated = self.handler.update(
            self.state, _make_config(compute_unit_per_broker=1, storage_unit_per_bookie=2)
        )
        assert updated.compute_unit_per_broker == 1.0
        assert updated.storage_unit_per_bookie == 2.0

    def test_settings_applied(self):
        updated = self.handler.update(
            self.state, _make_config(config=PulsarClusterSettings(websocket_enabled=False))
        )
        assert not updated.config.websocket_enabled
        assert updated.config.function_enabled

    def test_display_name(self):
        updated = self.handler.update(self.state, _make_config(display_name="Production"))
        assert updated.display_name == "Production"

    @pytest.mark.parametrize("overrides", [
        {"instance_name": "other"},
        {"pool_member_name": None, "location": "us-east-2"},
        {"release_channel": "lts"},
        {"name": "c2"},
    ])
    def test_immutable_fields(self, overrides):
        with pytest.raises(ProviderError) as excinfo:
            self.handler.update(self.state, _make_config(**overrides))

        assert excinfo.value.code == "ERROR_UPDATE_PULSAR_CLUSTER"
        assert "does not support updates" in excinfo.value.message
        assert self.cloud.call_count("update") == 0

    def test_serverless_only_accepts_display_name(self):
        self.seed_instance("sl", instance_type="serverless")
        state = self.handler.create(_make_config(name="c2", instance_name="sl"))

        with pytest.raises(ProviderError, match="only display_name"):
            self.handler.update(state, _make_config(name="c2", instance_name="sl"))

        updated = self.handler.update(
            state, _make_config(name="c2", instance_name="sl", display_name="Serverless")
        )
        assert updated.display_name == "Serverless"

    def test_serverless_display_name_change_carries_sizing(self):
        self.seed_instance("sl", instance_type="serverless")
        state = self.handler.create(_make_config(name="c2", instance_name="sl"))

        updated = self.handler.update(state, _make_config(
            name="c2", instance_name="sl", display_name="Renamed",
            broker_replicas=5, compute_unit_per_broker=1,
            config=PulsarClusterSettings(transaction_enabled=True),
        ))

        stored = self.cloud.peek(PulsarCluster, "acme", "c2")
        assert stored.spec.broker.replicas == 5
        assert stored.spec.config.transaction_enabled
        assert updated.display_name == "Renamed"
        assert updated.broker_replicas == 5
        assert updated.compute_unit_per_broker == 1

    def test_ursa_ignores_settings(self):
        self.seed_instance("ursa", annotations={ENGINE_ANNOTATION: "ursa"})
        state = self.handler.create(_make_config(name="c3", instance_name="ursa"))

        self.handler.update(state, _make_config(
            name="c3", instance_name="ursa",
            config=PulsarClusterSettings(transaction_enabled=True),
        ))

        assert self.cloud.peek(PulsarCluster, "acme", "c3").spec.config is None


class TestPulsarClusterDelete:
    def _state(self) -> PulsarClusterState:
        return PulsarClusterState(
            id="acme/c1", organization="acme", name="c1", instance_name="inst",
        )

    def _seeded(self, **kwargs) -> InMemoryCloudClient:
        cloud = InMemoryCloudClient(**kwargs)
        cloud.seed(PulsarCluster(metadata=ObjectMeta(name="c1", namespace="acme")))
        return cloud

    def test_waits_until_gone(self, poller, fake_clock):
        cloud = self._seeded(delete_after_reads=3)

        PulsarClusterResource(cloud, poller=poller).delete(self._state())

        assert cloud.call_count("get", PulsarCluster) == 3
        assert fake_clock.sleeps == [10.0, 10.0]
        assert cloud.peek(PulsarCluster, "acme", "c1") is None

    def test_immediate_removal(self, poller, fake_clock):
        cloud = self._seeded(delete_after_reads=0)
        PulsarClusterResource(cloud, poller=poller).delete(self._state())
        assert fake_clock.sleeps == []

    def test_delete_times_out(self, poller):
        cloud = self._seeded(delete_after_reads=10 ** 6)

        with pytest.raises(ProviderError) as excinfo:
            PulsarClusterResource(cloud, poller=poller).delete(self._state())

        assert excinfo.value.code == "ERROR_RETRY_READ_PULSAR_CLUSTER"
        assert excinfo.value.timed_out

    def test_delete_missing(self, poller):
        cloud = InMemoryCloudClient()
        with pytest.raises(ProviderError) as excinfo:
            PulsarClusterResource(cloud, poller=poller).delete(self._state())
        assert excinfo.value.code == "ERROR_DELETE_PULSAR_CLUSTER"
        assert excinfo.value.not_found


class TestClusterState:
    def _make_cluster(self) -> PulsarCluster:
        return PulsarCluster(
            metadata=ObjectMeta(name="c1", namespace="acme"),
            spec=PulsarClusterSpec(
                instance_name="inst",
                service_endpoints=[
                    ServiceEndpoint(dns_name="c1.aws.sn.io", type="service"),
                    ServiceEndpoint(dns_name="c1-admin.aws.sn.io", type="admin"),
                ],
                config=ClusterConfig(
                    websocket_enabled=True,
                    protocols=ProtocolsConfig(kafka=KafkaConfig(), mqtt=MqttConfig()),
                ),
            ),
        )

    def test_service_urls_with_istio(self):
        instance = PulsarInstance(
            metadata=ObjectMeta(
                name="inst", namespace="acme",
                annotations={ISTIO_ENABLED_ANNOTATION: "true"},
            ),
        )

        state = cluster_state(self._make_cluster(), instance)

        assert state.http_tls_service_urls == ["https://c1.aws.sn.io"]
        assert state.http_tls_service_url == "https://c1.aws.sn.io"
        assert state.pulsar_tls_service_url == "pulsar+ssl://c1.aws.sn.io:6651"
        assert state.websocket_service_url == "wss://c1.aws.sn.io"
        assert state.kafka_service_url == "c1.aws.sn.io:9093"
        assert state.mqtt_service_url == "mqtts://c1.aws.sn.io:8883"

    def test_service_urls_without_istio(self):
        instance = PulsarInstance(metadata=ObjectMeta(name="inst", namespace="acme"))

        state = cluster_state(self._make_cluster(), instance)

        assert state.websocket_service_urls == ["ws://c1.aws.sn.io:9443"]
        assert state.kafka_service_urls == []
        assert state.kafka_service_url is None

    def test_read_requires_instance(self, poller):
        cloud = InMemoryCloudClient()
        cloud.seed(self._make_cluster())

        with pytest.raises(ProviderError) as excinfo:
            PulsarClusterResource(cloud, poller=poller).read("acme", "c1")

        assert excinfo.value.code == "ERROR_READ_PULSAR_INSTANCE"
