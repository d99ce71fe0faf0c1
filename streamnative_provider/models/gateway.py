"""Pulsar gateway: public or private network entry point on a pool member."""

from typing import List, Optional

from pydantic import Field

from streamnative_provider.models.meta import (
    CloudModel,
    CloudObject,
    PoolMemberReference,
    ResourceStatus,
)

PRIVATE_ACCESS = "private"
PUBLIC_ACCESS = "public"


class PrivateService(CloudModel):
    allowed_ids: List[str] = []


class PrivateServiceId(CloudModel):
    id: str


class PulsarGatewaySpec(CloudModel):
    access: str = PUBLIC_ACCESS
    pool_member_ref: PoolMemberReference = Field(default_factory=PoolMemberReference)
    private_service: Optional[PrivateService] = None


class PulsarGatewayStatus(ResourceStatus):
    private_service_ids: List[PrivateServiceId] = []


class PulsarGateway(CloudObject):
    KIND = "PulsarGateway"
    PLURAL = "pulsargateways"

    spec: PulsarGatewaySpec = Field(default_factory=PulsarGatewaySpec)
    status: PulsarGatewayStatus = Field(default_factory=PulsarGatewayStatus)
