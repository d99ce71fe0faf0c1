"""Pulsar instance: the logical tenant unit that clusters are created in."""

from typing import Optional

from pydantic import Field

from streamnative_provider.models.meta import CloudModel, CloudObject, ResourceStatus
from streamnative_provider.models.pool import PoolRef

ENGINE_ANNOTATION = "cloud.streamnative.io/engine"
URSA_ENGINE = "ursa"
ISTIO_ENABLED_ANNOTATION = "annotations.cloud.streamnative.io/istio-enabled"
SERVERLESS_TYPE = "serverless"


class PulsarInstanceSpec(CloudModel):
    availability_mode: str = ""
    type: str = ""
    pool_ref: Optional[PoolRef] = None


class OAuth2Status(CloudModel):
    issuer_url: str = Field(default="", alias="issuerURL")
    audience: str = ""


class InstanceAuthStatus(CloudModel):
    type: str = ""
    oauth2: Optional[OAuth2Status] = Field(default=None, alias="oauth2")


class PulsarInstanceStatus(ResourceStatus):
    auth: Optional[InstanceAuthStatus] = None


class PulsarInstance(CloudObject):
    KIND = "PulsarInstance"
    PLURAL = "pulsarinstances"

    spec: PulsarInstanceSpec = Field(default_factory=PulsarInstanceSpec)
    status: PulsarInstanceStatus = Field(default_factory=PulsarInstanceStatus)

    @property
    def serverless(self) -> bool:
        return self.spec.type == SERVERLESS_TYPE

    @property
    def ursa_engine(self) -> bool:
        return self.metadata.annotations.get(ENGINE_ANNOTATION) == URSA_ENGINE

    @property
    def istio_enabled(self) -> bool:
        return self.metadata.annotations.get(ISTIO_ENABLED_ANNOTATION) == "true"
