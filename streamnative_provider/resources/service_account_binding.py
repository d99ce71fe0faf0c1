"""
Service account binding resource.

Binds a service account to a pool member, named
``<service-account>.<pool-member-namespace>.<pool-member-name>``. The pool
member is given directly or taken from an existing cluster. Bindings cannot
be updated in place.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from streamnative_provider.client.errors import ApiError
from streamnative_provider.models.binding import (
    ServiceAccountBinding,
    ServiceAccountBindingSpec,
)
from streamnative_provider.models.cluster import PulsarCluster
from streamnative_provider.models.meta import ObjectMeta, PoolMemberReference
from streamnative_provider.poller.convergence import ConvergenceError
from streamnative_provider.poller.predicates import existence_confirmed
from streamnative_provider.resources.base import (
    MINUTE,
    ProviderError,
    ResourceHandler,
    ResourceTimeouts,
)
from streamnative_provider.schema import validation
from streamnative_provider.schema.descriptions import describe

logger = logging.getLogger(__name__)

READ_BACK_INTERVAL_SECONDS = 5.0


class ServiceAccountBindingConfig(BaseModel):
    organization: str = Field(description=describe("organization"))
    service_account_name: str = Field(description=describe("service_account_name"))
    cluster_name: Optional[str] = Field(default=None, description=describe("cluster_name"))
    pool_member_name: Optional[str] = Field(default=None, description=describe("pool_member_name"))
    pool_member_namespace: Optional[str] = Field(
        default=None, description=describe("pool_member_namespace")
    )
    enable_iam_account_creation: bool = Field(
        default=False, description=describe("enable_iam_account_creation")
    )
    aws_assume_role_arns: List[str] = Field(default=[], description=describe("aws_assume_role_arns"))

    @field_validator("organization", "service_account_name")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        return validation.not_blank(value, info.field_name)


class ServiceAccountBindingState(BaseModel):
    id: str
    organization: str
    name: str = Field(description=describe("service_account_binding_name"))
    service_account_name: str
    cluster_name: Optional[str] = None
    pool_member_name: str = ""
    pool_member_namespace: str = ""
    enable_iam_account_creation: bool = False
    aws_assume_role_arns: List[str] = []


class ServiceAccountBindingResource(ResourceHandler):
    TYPE_NAME = "streamnative_service_account_binding"
    KIND = ServiceAccountBinding
    CODE = "SERVICE_ACCOUNT_BINDING"
    CONFIG = ServiceAccountBindingConfig
    STATE = ServiceAccountBindingState
    DEFAULT_TIMEOUTS = ResourceTimeouts(
        create_seconds=3 * MINUTE,
        update_seconds=3 * MINUTE,
        delete_seconds=3 * MINUTE,
    )

    def create(self, config: ServiceAccountBindingConfig) -> ServiceAccountBindingState:
        namespace = config.organization
        pool_member = self._pool_member(config)

        binding = ServiceAccountBinding(
            metadata=ObjectMeta(
                name=ServiceAccountBinding.name_for(
                    config.service_account_name, pool_member.namespace, pool_member.name
                ),
                namespace=namespace,
            ),
            spec=ServiceAccountBindingSpec(
                service_account_name=config.service_account_name,
                pool_member_ref=pool_member,
                enable_iam_account_creation=config.enable_iam_account_creation,
                aws_assume_role_arns=list(config.aws_assume_role_arns),
            ),
        )
        try:
            created = self.client.create(binding)
        except ApiError as exc:
            raise ProviderError("ERROR_CREATE_SERVICE_ACCOUNT_BINDING", str(exc)) from exc

        # Read-after-write lag; poll gently.
        try:
            self.wait(
                namespace, created.name, existence_confirmed,
                self.timeouts.create_seconds,
                poll_interval_seconds=READ_BACK_INTERVAL_SECONDS,
            )
        except ConvergenceError as exc:
            raise ProviderError("ERROR_RETRY_CREATE_SERVICE_ACCOUNT_BINDING", str(exc)) from exc

        state = self.read(namespace, created.name)
        if state is None:
            raise ProviderError(
                "ERROR_RETRY_CREATE_SERVICE_ACCOUNT_BINDING",
                f"service account binding {namespace}/{created.name} disappeared after create",
            )
        return state.model_copy(update={"cluster_name": config.cluster_name})

    def read(self, namespace: str, name: str) -> Optional[ServiceAccountBindingState]:
        binding = self.get_or_none(namespace, name)
        if binding is None:
            return None
        return binding_state(binding)

    def update(
        self, state: ServiceAccountBindingState, config: ServiceAccountBindingConfig
    ) -> ServiceAccountBindingState:
        raise ProviderError(
            "ERROR_UPDATE_SERVICE_ACCOUNT_BINDING",
            "The service account binding does not support updates, please recreate it",
        )

    def delete(self, state: ServiceAccountBindingState) -> None:
        try:
            self.client.delete(ServiceAccountBinding, state.organization, state.name)
        except ApiError as exc:
            raise ProviderError("ERROR_DELETE_SERVICE_ACCOUNT_BINDING", str(exc)) from exc

    def _pool_member(self, config: ServiceAccountBindingConfig) -> PoolMemberReference:
        if config.cluster_name:
            try:
                cluster = self.client.get(PulsarCluster, config.organization, config.cluster_name)
            except ApiError as exc:
                raise ProviderError("ERROR_READ_PULSAR_CLUSTER", str(exc)) from exc
            ref = cluster.spec.pool_member_ref
            if ref is None or not ref.name:
                raise ProviderError(
                    "ERROR_CREATE_SERVICE_ACCOUNT_BINDING",
                    f"pulsar cluster {config.cluster_name!r} is not placed on a pool member",
                )
            return ref.model_copy()

        if config.pool_member_name and config.pool_member_namespace:
            return PoolMemberReference(
                namespace=config.pool_member_namespace, name=config.pool_member_name
            )
        raise ProviderError(
            "ERROR_CREATE_SERVICE_ACCOUNT_BINDING",
            "either (pool_member_name & pool_member_namespace) or cluster_name must be provided",
        )


def binding_state(binding: ServiceAccountBinding) -> ServiceAccountBindingState:
    spec = binding.spec
    return ServiceAccountBindingState(
        id=binding.resource_id,
        organization=binding.namespace,
        name=binding.name,
        service_account_name=spec.service_account_name,
        pool_member_name=spec.pool_member_ref.name,
        pool_member_namespace=spec.pool_member_ref.namespace,
        enable_iam_account_creation=spec.enable_iam_account_creation,
        aws_assume_role_arns=list(spec.aws_assume_role_arns),
    )
