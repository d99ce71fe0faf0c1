"""
Read-only lookups of existing control-plane objects.

Data sources never poll: a lookup either finds the object or fails with a
ProviderError whose code names the lookup (``ERROR_READ_POOL_MEMBER`` ...).
"""

import logging
from typing import ClassVar, Optional, Type

from pydantic import BaseModel, Field

from streamnative_provider.client.api import CloudApi
from streamnative_provider.client.errors import ApiError
from streamnative_provider.models.binding import ServiceAccountBinding
from streamnative_provider.models.cluster import PulsarCluster
from streamnative_provider.models.gateway import PulsarGateway
from streamnative_provider.models.instance import PulsarInstance
from streamnative_provider.models.meta import CloudObject
from streamnative_provider.models.pool import Organization, PoolMember
from streamnative_provider.resources.base import ProviderError
from streamnative_provider.resources.pulsar_cluster import PulsarClusterState, cluster_state
from streamnative_provider.resources.pulsar_gateway import PulsarGatewayState, gateway_state
from streamnative_provider.resources.pulsar_instance import PulsarInstanceState, instance_state
from streamnative_provider.resources.service_account_binding import (
    ServiceAccountBindingState,
    binding_state,
)
from streamnative_provider.schema.descriptions import describe

logger = logging.getLogger(__name__)


class OrganizationData(BaseModel):
    id: str
    name: str = Field(description=describe("organization"))
    display_name: Optional[str] = None


class PoolMemberData(BaseModel):
    id: str
    organization: str
    name: str = Field(description=describe("pool_member_name"))
    type: str = Field(default="", description=describe("pool_member_type"))
    pool_name: str = Field(default="", description=describe("pool_name"))
    location: str = Field(default="", description=describe("pool_member_location"))


class PulsarInstanceData(PulsarInstanceState):
    oauth2_issuer_url: Optional[str] = Field(default=None, description=describe("oauth2_issuer_url"))
    oauth2_audience: Optional[str] = Field(default=None, description=describe("oauth2_audience"))


class DataSource:
    """Base class for lookups; subclasses fetch one kind and flatten it."""

    TYPE_NAME: ClassVar[str] = ""
    KIND: ClassVar[Type[CloudObject]] = CloudObject
    CODE: ClassVar[str] = ""
    STATE: ClassVar[Type[BaseModel]] = BaseModel

    def __init__(self, client: CloudApi):
        self.client = client

    @classmethod
    def schema(cls) -> dict:
        return {"type": cls.TYPE_NAME, "state": cls.STATE.model_json_schema()}

    def read(self, organization: str, name: Optional[str] = None) -> BaseModel:
        obj = self._get(self.KIND, organization, name)
        return self.flatten(obj)

    def flatten(self, obj: CloudObject) -> BaseModel:
        raise NotImplementedError

    def _get(self, kind: Type[CloudObject], namespace: Optional[str], name: Optional[str]) -> CloudObject:
        if not name:
            raise ProviderError(f"ERROR_READ_{self.CODE}", "a name is required")
        try:
            return self.client.get(kind, namespace, name)
        except ApiError as exc:
            raise ProviderError(f"ERROR_READ_{self.CODE}", str(exc)) from exc


class OrganizationDataSource(DataSource):
    TYPE_NAME = "streamnative_organization"
    KIND = Organization
    CODE = "ORGANIZATION"
    STATE = OrganizationData

    def read(self, organization: str, name: Optional[str] = None) -> OrganizationData:
        # Organizations are cluster-scoped and named by themselves.
        obj = self._get(Organization, None, name or organization)
        return self.flatten(obj)

    def flatten(self, obj: Organization) -> OrganizationData:
        return OrganizationData(id=obj.name, name=obj.name, display_name=obj.spec.display_name)


class PoolMemberDataSource(DataSource):
    TYPE_NAME = "streamnative_pool_member"
    KIND = PoolMember
    CODE = "POOL_MEMBER"
    STATE = PoolMemberData

    def flatten(self, obj: PoolMember) -> PoolMemberData:
        return PoolMemberData(
            id=obj.resource_id,
            organization=obj.namespace,
            name=obj.name,
            type=obj.spec.type.value if obj.spec.type else "",
            pool_name=obj.spec.pool_name,
            location=obj.location,
        )


class PulsarInstanceDataSource(DataSource):
    TYPE_NAME = "streamnative_pulsar_instance"
    KIND = PulsarInstance
    CODE = "PULSAR_INSTANCE"
    STATE = PulsarInstanceData

    def flatten(self, obj: PulsarInstance) -> PulsarInstanceData:
        data = PulsarInstanceData(**instance_state(obj).model_dump())
        auth = obj.status.auth
        if auth is not None and auth.type == "oauth2" and auth.oauth2 is not None:
            data.oauth2_issuer_url = auth.oauth2.issuer_url
            data.oauth2_audience = auth.oauth2.audience
        return data


class PulsarClusterDataSource(DataSource):
    TYPE_NAME = "streamnative_pulsar_cluster"
    KIND = PulsarCluster
    CODE = "PULSAR_CLUSTER"
    STATE = PulsarClusterState

    def read(self, organization: str, name: Optional[str] = None) -> PulsarClusterState:
        cluster = self._get(PulsarCluster, organization, name)
        try:
            instance = self.client.get(PulsarInstance, organization, cluster.spec.instance_name)
        except ApiError as exc:
            raise ProviderError("ERROR_READ_PULSAR_INSTANCE", str(exc)) from exc
        return cluster_state(cluster, instance)


class PulsarGatewayDataSource(DataSource):
    TYPE_NAME = "streamnative_pulsar_gateway"
    KIND = PulsarGateway
    CODE = "PULSAR_GATEWAY"
    STATE = PulsarGatewayState

    def flatten(self, obj: PulsarGateway) -> PulsarGatewayState:
        return gateway_state(obj)


class ServiceAccountBindingDataSource(DataSource):
    TYPE_NAME = "streamnative_service_account_binding"
    KIND = ServiceAccountBinding
    CODE = "SERVICE_ACCOUNT_BINDING"
    STATE = ServiceAccountBindingState

    def flatten(self, obj: ServiceAccountBinding) -> ServiceAccountBindingState:
        return binding_state(obj)
