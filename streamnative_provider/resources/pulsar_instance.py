"""
Pulsar instance resource.

Instances are immutable once created: any change to the configuration has to
be applied by recreating the instance.
"""

import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from streamnative_provider.client.errors import ApiError
from streamnative_provider.models.instance import (
    ENGINE_ANNOTATION,
    URSA_ENGINE,
    PulsarInstance,
    PulsarInstanceSpec,
)
from streamnative_provider.models.meta import ObjectMeta
from streamnative_provider.models.pool import PoolDeploymentType, PoolOption, PoolRef
from streamnative_provider.poller.convergence import ConvergenceError
from streamnative_provider.poller.predicates import condition_ready
from streamnative_provider.resources.base import (
    MINUTE,
    ProviderError,
    ResourceHandler,
    ResourceTimeouts,
)
from streamnative_provider.schema import validation
from streamnative_provider.schema.descriptions import describe

logger = logging.getLogger(__name__)

INSTANCE_TYPE_BY_DEPLOYMENT = {
    PoolDeploymentType.HOSTED: "serverless",
    PoolDeploymentType.MANAGED: "byoc",
    PoolDeploymentType.MANAGED_PRO: "byoc-pro",
}


class PulsarInstanceConfig(BaseModel):
    organization: str = Field(description=describe("organization"))
    name: str = Field(description=describe("instance_name"))
    availability_mode: str = Field(description=describe("availability_mode"))
    pool_name: str = Field(description=describe("pool_name"))
    pool_namespace: str = Field(description=describe("pool_namespace"))
    type: Optional[str] = Field(default=None, description=describe("instance_type"))
    engine: Optional[str] = Field(default=None, description=describe("instance_engine"))

    @field_validator("organization", "name", "pool_name", "pool_namespace")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        return validation.not_blank(value, info.field_name)

    @field_validator("availability_mode")
    @classmethod
    def _availability_mode(cls, value: str) -> str:
        return validation.one_of(value, validation.AVAILABILITY_MODES, "availability_mode")

    @field_validator("type")
    @classmethod
    def _type(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return validation.one_of(value, validation.INSTANCE_TYPES, "type")

    @field_validator("engine")
    @classmethod
    def _engine(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return validation.one_of(value, validation.ENGINES, "engine")


class PulsarInstanceState(BaseModel):
    id: str
    organization: str
    name: str
    availability_mode: str = ""
    pool_name: str = ""
    pool_namespace: str = ""
    type: str = ""
    engine: Optional[str] = None
    ready: bool = Field(default=False, description=describe("instance_ready"))


class PulsarInstanceResource(ResourceHandler):
    TYPE_NAME = "streamnative_pulsar_instance"
    KIND = PulsarInstance
    CODE = "PULSAR_INSTANCE"
    CONFIG = PulsarInstanceConfig
    STATE = PulsarInstanceState
    DEFAULT_TIMEOUTS = ResourceTimeouts(
        create_seconds=3 * MINUTE,
        update_seconds=3 * MINUTE,
        delete_seconds=3 * MINUTE,
    )

    def create(self, config: PulsarInstanceConfig) -> PulsarInstanceState:
        namespace = config.organization
        instance_type = config.type or self._type_from_pool(config)

        instance = PulsarInstance(
            metadata=ObjectMeta(name=config.name, namespace=namespace),
            spec=PulsarInstanceSpec(
                availability_mode=config.availability_mode,
                type=instance_type,
                pool_ref=PoolRef(namespace=config.pool_namespace, name=config.pool_name),
            ),
        )
        if config.engine == URSA_ENGINE:
            instance.metadata.annotations = {ENGINE_ANNOTATION: URSA_ENGINE}

        try:
            created = self.client.create(instance)
        except ApiError as exc:
            raise ProviderError("ERROR_CREATE_PULSAR_INSTANCE", str(exc)) from exc

        if not created.ready:
            try:
                self.wait(
                    namespace, created.name, condition_ready,
                    self.timeouts.create_seconds,
                )
            except ConvergenceError as exc:
                raise ProviderError("ERROR_RETRY_READ_PULSAR_INSTANCE", str(exc)) from exc

        state = self.read(namespace, created.name)
        if state is None:
            raise ProviderError(
                "ERROR_RETRY_READ_PULSAR_INSTANCE",
                f"pulsar instance {namespace}/{created.name} disappeared after create",
            )
        return state

    def read(self, namespace: str, name: str) -> Optional[PulsarInstanceState]:
        instance = self.get_or_none(namespace, name)
        if instance is None:
            return None
        return instance_state(instance)

    def update(self, state: PulsarInstanceState, config: PulsarInstanceConfig) -> PulsarInstanceState:
        raise ProviderError(
            "ERROR_UPDATE_PULSAR_INSTANCE",
            "The pulsar instance does not support updates, please recreate it",
        )

    def delete(self, state: PulsarInstanceState) -> None:
        try:
            self.client.delete(PulsarInstance, state.organization, state.name)
        except ApiError as exc:
            raise ProviderError("ERROR_DELETE_PULSAR_INSTANCE", str(exc)) from exc

    def _type_from_pool(self, config: PulsarInstanceConfig) -> str:
        """Infer the instance type from the pool's deployment type."""
        option_name = PoolOption.name_for(config.pool_namespace, config.pool_name)
        try:
            option = self.client.get(PoolOption, config.organization, option_name)
        except ApiError as exc:
            raise ProviderError("ERROR_GET_POOL_OPTION", str(exc)) from exc
        return INSTANCE_TYPE_BY_DEPLOYMENT.get(option.spec.deployment_type, "")


def instance_state(instance: PulsarInstance) -> PulsarInstanceState:
    pool_ref = instance.spec.pool_ref or PoolRef()
    return PulsarInstanceState(
        id=instance.resource_id,
        organization=instance.namespace,
        name=instance.name,
        availability_mode=instance.spec.availability_mode,
        pool_name=pool_ref.name,
        pool_namespace=pool_ref.namespace,
        type=instance.spec.type,
        engine=URSA_ENGINE if instance.ursa_engine else None,
        ready=instance.ready,
    )
