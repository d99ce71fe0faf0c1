"""Tests for the pulsar instance resource."""

import pytest
from pydantic import ValidationError

from streamnative_provider.client.errors import ApiError
from streamnative_provider.client.memory import InMemoryCloudClient
from streamnative_provider.models import PulsarInstance
from streamnative_provider.models.instance import ENGINE_ANNOTATION
from streamnative_provider.resources.base import ProviderError
from streamnative_provider.resources.pulsar_instance import (
    PulsarInstanceConfig,
    PulsarInstanceResource,
)


def _make_config(**overrides) -> PulsarInstanceConfig:
    values = {
        "organization": "acme",
        "name": "inst",
        "availability_mode": "zonal",
        "pool_name": "shared-aws",
        "pool_namespace": "streamnative",
        "type": "dedicated",
    }
    values.update(overrides)
    return PulsarInstanceConfig(**values)


class TestPulsarInstanceConfig:
    def test_defaults(self):
        config = _make_config(type=None)
        assert config.type is None
        assert config.engine is None

    @pytest.mark.parametrize("field,value", [
        ("availability_mode", "global"),
        ("type", "shared"),
        ("engine", "kafka"),
        ("name", " "),
        ("pool_namespace", ""),
    ])
    def test_rejects_invalid(self, field, value):
        with pytest.raises(ValidationError):
            _make_config(**{field: value})


class TestPulsarInstanceResource:
    @pytest.fixture(autouse=True)
    def _handler(self, cloud, poller, fake_clock):
        self.cloud = cloud
        self.clock = fake_clock
        self.handler = PulsarInstanceResource(cloud, poller=poller)

    def test_create_waits_until_ready(self):
        state = self.handler.create(_make_config())

        assert state.id == "acme/inst"
        assert state.ready
        assert state.type == "dedicated"
        assert state.pool_name == "shared-aws"
        assert state.pool_namespace == "streamnative"
        assert self.cloud.call_count("create", PulsarInstance) == 1

    def test_create_infers_type_from_pool(self):
        state = self.handler.create(_make_config(type=None))
        assert state.type == "serverless"

    def test_explicit_type_skips_pool_lookup(self):
        self.handler.create(_make_config(pool_name="unknown-pool"))
        assert not any(call[1] == "PoolOption" for call in self.cloud.calls)

    def test_missing_pool_option(self):
        with pytest.raises(ProviderError) as excinfo:
            self.handler.create(_make_config(type=None, pool_name="unknown-pool"))
        assert excinfo.value.code == "ERROR_GET_POOL_OPTION"
        assert excinfo.value.not_found

    def test_ursa_engine_annotation(self):
        state = self.handler.create(_make_config(engine="ursa"))

        stored = self.cloud.peek(PulsarInstance, "acme", "inst")
        assert stored.metadata.annotations[ENGINE_ANNOTATION] == "ursa"
        assert state.engine == "ursa"

    def test_classic_engine_has_no_annotation(self):
        self.handler.create(_make_config(engine="classic"))
        stored = self.cloud.peek(PulsarInstance, "acme", "inst")
        assert ENGINE_ANNOTATION not in stored.metadata.annotations

    def test_create_conflict(self, seed_instance):
        seed_instance("inst")
        with pytest.raises(ProviderError) as excinfo:
            self.handler.create(_make_config())
        assert excinfo.value.code == "ERROR_CREATE_PULSAR_INSTANCE"

    def test_create_ready_response_skips_wait(self, poller):
        cloud = InMemoryCloudClient(ready_on_create=True)
        handler = PulsarInstanceResource(cloud, poller=poller)

        handler.create(_make_config())

        assert cloud.call_count("get", PulsarInstance) == 1
        assert self.clock.sleeps == []

    def test_create_times_out(self, poller):
        cloud = InMemoryCloudClient(reconcile_after_reads=1000)
        handler = PulsarInstanceResource(cloud, poller=poller)

        with pytest.raises(ProviderError) as excinfo:
            handler.create(_make_config())

        assert excinfo.value.code == "ERROR_RETRY_READ_PULSAR_INSTANCE"
        assert excinfo.value.timed_out
        assert self.clock.now >= handler.timeouts.create_seconds

    def test_read_missing(self):
        assert self.handler.read("acme", "missing") is None

    def test_read_error(self):
        self.cloud.inject_error(ApiError("unavailable", status_code=503))
        with pytest.raises(ProviderError) as excinfo:
            self.handler.read("acme", "inst")
        assert excinfo.value.code == "ERROR_READ_PULSAR_INSTANCE"

    def test_update_is_rejected(self, seed_instance):
        seed_instance("inst")
        state = self.handler.read("acme", "inst")

        with pytest.raises(ProviderError) as excinfo:
            self.handler.update(state, _make_config(availability_mode="regional"))

        assert excinfo.value.code == "ERROR_UPDATE_PULSAR_INSTANCE"
        assert "recreate" in excinfo.value.message

    def test_delete_does_not_wait(self, seed_instance):
        seed_instance("inst")
        state = self.handler.read("acme", "inst")
        gets_before = self.cloud.call_count("get")

        self.handler.delete(state)

        assert self.cloud.call_count("delete", PulsarInstance) == 1
        assert self.cloud.call_count("get") == gets_before
        assert self.clock.sleeps == []

    def test_delete_missing(self):
        state = self.handler.STATE(id="acme/gone", organization="acme", name="gone")
        with pytest.raises(ProviderError) as excinfo:
            self.handler.delete(state)
        assert excinfo.value.code == "ERROR_DELETE_PULSAR_INSTANCE"
        assert excinfo.value.not_found

    def test_import(self, seed_instance):
        seed_instance("inst", annotations={ENGINE_ANNOTATION: "ursa"})
        state = self.handler.import_state("acme/inst")
        assert state.name == "inst"
        assert state.engine == "ursa"

    @pytest.mark.parametrize("resource_id", ["inst", "acme/", "a/b/c"])
    def test_import_bad_id(self, resource_id):
        with pytest.raises(ProviderError) as excinfo:
            self.handler.import_state(resource_id)
        assert excinfo.value.code == "ERROR_IMPORT_PULSAR_INSTANCE"

    def test_import_missing(self):
        with pytest.raises(ProviderError, match="not found"):
            self.handler.import_state("acme/missing")
