"""Pulsar gateway resource."""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from streamnative_provider.client.errors import ApiError
from streamnative_provider.models.gateway import (
    PRIVATE_ACCESS,
    PrivateService,
    PulsarGateway,
    PulsarGatewaySpec,
)
from streamnative_provider.models.meta import ObjectMeta, PoolMemberReference
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


class PulsarGatewayConfig(BaseModel):
    organization: str = Field(description=describe("organization"))
    name: str = Field(description=describe("gateway_name"))
    access: str = Field(description=describe("gateway_access"))
    pool_member_name: str = Field(description=describe("pool_member_name"))
    pool_member_namespace: str = Field(description=describe("pool_member_namespace"))
    allowed_ids: Optional[List[str]] = Field(default=None, description=describe("gateway_allowed_ids"))
    wait_for_completion: bool = Field(default=True, description=describe("wait_for_completion"))

    @field_validator("organization", "name", "pool_member_name", "pool_member_namespace")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        return validation.not_blank(value, info.field_name)

    @field_validator("access")
    @classmethod
    def _access(cls, value: str) -> str:
        return validation.one_of(value, validation.GATEWAY_ACCESS, "access")

    @field_validator("allowed_ids")
    @classmethod
    def _allowed_ids(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        return validation.unique_strings(value, "allowed_ids")

    @model_validator(mode="after")
    def _allowed_ids_need_private_access(self) -> "PulsarGatewayConfig":
        if self.allowed_ids is not None and self.access != PRIVATE_ACCESS:
            raise ValueError("'allowed_ids' can only be set on a private gateway")
        return self


class PulsarGatewayState(BaseModel):
    id: str
    organization: str
    name: str
    access: str
    pool_member_name: str = ""
    pool_member_namespace: str = ""
    allowed_ids: Optional[List[str]] = None
    private_service_ids: List[str] = Field(
        default=[], description=describe("gateway_private_service_ids")
    )
    wait_for_completion: bool = True
    ready: bool = Field(default=False, description=describe("gateway_ready"))


class PulsarGatewayResource(ResourceHandler):
    TYPE_NAME = "streamnative_pulsar_gateway"
    KIND = PulsarGateway
    CODE = "PULSAR_GATEWAY"
    CONFIG = PulsarGatewayConfig
    STATE = PulsarGatewayState
    DEFAULT_TIMEOUTS = ResourceTimeouts(
        create_seconds=60 * MINUTE,
        update_seconds=15 * MINUTE,
        delete_seconds=60 * MINUTE,
    )

    def create(self, config: PulsarGatewayConfig) -> PulsarGatewayState:
        namespace = config.organization
        gateway = PulsarGateway(
            metadata=ObjectMeta(name=config.name, namespace=namespace),
            spec=PulsarGatewaySpec(
                access=config.access,
                pool_member_ref=PoolMemberReference(
                    namespace=config.pool_member_namespace,
                    name=config.pool_member_name,
                ),
            ),
        )
        if config.access == PRIVATE_ACCESS:
            gateway.spec.private_service = PrivateService(allowed_ids=config.allowed_ids or [])

        try:
            created = self.client.create(gateway)
        except ApiError as exc:
            raise ProviderError("ERROR_CREATE_PULSAR_GATEWAY", str(exc)) from exc

        if config.wait_for_completion:
            try:
                self.wait(
                    namespace, created.name, condition_ready,
                    self.timeouts.create_seconds,
                )
            except ConvergenceError as exc:
                raise ProviderError("ERROR_RETRY_READ_PULSAR_GATEWAY", str(exc)) from exc

        return self._read_required(namespace, created.name, config.wait_for_completion)

    def read(self, namespace: str, name: str) -> Optional[PulsarGatewayState]:
        gateway = self.get_or_none(namespace, name)
        if gateway is None:
            return None
        return gateway_state(gateway)

    def update(self, state: PulsarGatewayState, config: PulsarGatewayConfig) -> PulsarGatewayState:
        namespace, name = state.organization, state.name
        if config.name != state.name or config.access != state.access:
            raise ProviderError(
                "ERROR_UPDATE_PULSAR_GATEWAY",
                "The pulsar gateway does not support updates name and access, please recreate it",
            )

        try:
            gateway = self.client.get(PulsarGateway, namespace, name)
        except ApiError as exc:
            raise ProviderError("ERROR_READ_PULSAR_GATEWAY", str(exc)) from exc

        current_ids = gateway.spec.private_service.allowed_ids if gateway.spec.private_service else []
        if config.access != PRIVATE_ACCESS or (config.allowed_ids or []) == current_ids:
            return gateway_state(gateway, config.wait_for_completion)

        gateway.spec.private_service = PrivateService(allowed_ids=config.allowed_ids or [])
        try:
            self.client.update(gateway)
        except ApiError as exc:
            raise ProviderError("ERROR_UPDATE_PULSAR_GATEWAY", str(exc)) from exc

        if config.wait_for_completion:
            try:
                self.wait(namespace, name, generation_observed, self.timeouts.update_seconds)
                self.wait(namespace, name, condition_ready, self.timeouts.update_seconds)
            except ConvergenceError as exc:
                raise ProviderError("ERROR_RETRY_READ_PULSAR_GATEWAY", str(exc)) from exc

        return self._read_required(namespace, name, config.wait_for_completion)

    def delete(self, state: PulsarGatewayState) -> None:
        namespace, name = state.organization, state.name
        try:
            self.client.delete(PulsarGateway, namespace, name)
        except ApiError as exc:
            if exc.not_found:
                logger.info("Pulsar gateway %s/%s already deleted", namespace, name)
                return
            raise ProviderError("ERROR_DELETE_PULSAR_GATEWAY", str(exc)) from exc

        if state.wait_for_completion:
            try:
                self.wait(namespace, name, absence_confirmed, self.timeouts.delete_seconds)
            except ConvergenceError as exc:
                raise ProviderError("ERROR_RETRY_READ_PULSAR_GATEWAY", str(exc)) from exc

    def _read_required(self, namespace: str, name: str, wait_for_completion: bool) -> PulsarGatewayState:
        gateway = self.get_or_none(namespace, name)
        if gateway is None:
            raise ProviderError(
                "ERROR_READ_PULSAR_GATEWAY", f"pulsar gateway {namespace}/{name} not found"
            )
        return gateway_state(gateway, wait_for_completion)


def gateway_state(gateway: PulsarGateway, wait_for_completion: bool = True) -> PulsarGatewayState:
    spec = gateway.spec
    allowed_ids = None
    if spec.access == PRIVATE_ACCESS and spec.private_service is not None:
        allowed_ids = list(spec.private_service.allowed_ids)
    return PulsarGatewayState(
        id=gateway.resource_id,
        organization=gateway.namespace,
        name=gateway.name,
        access=spec.access,
        pool_member_name=spec.pool_member_ref.name,
        pool_member_namespace=spec.pool_member_ref.namespace,
        allowed_ids=allowed_ids,
        private_service_ids=[i.id for i in gateway.status.private_service_ids],
        wait_for_completion=wait_for_completion,
        ready=gateway.ready,
    )
