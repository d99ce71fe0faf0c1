"""Organizations and the infrastructure pools clusters are scheduled onto."""

from enum import Enum
from typing import Optional

from pydantic import Field

from streamnative_provider.models.meta import CloudModel, CloudObject


class OrganizationSpec(CloudModel):
    display_name: Optional[str] = None


class Organization(CloudObject):
    """Top-level tenant. Every other resource lives in its namespace."""

    KIND = "Organization"
    PLURAL = "organizations"
    NAMESPACED = False

    spec: OrganizationSpec = Field(default_factory=OrganizationSpec)


class PoolDeploymentType(str, Enum):
    HOSTED = "hosted"
    MANAGED = "managed"
    MANAGED_PRO = "managed-pro"


class PoolMemberType(str, Enum):
    AWS = "aws"
    GCLOUD = "gcloud"
    AZURE = "azure"


class PoolRef(CloudModel):
    namespace: str = ""
    name: str = ""


class PoolOptionSpec(CloudModel):
    pool_ref: Optional[PoolRef] = None
    deployment_type: Optional[PoolDeploymentType] = None
    cloud_type: Optional[str] = None


class PoolOption(CloudObject):
    """Per-organization view of a pool; named ``<pool-namespace>-<pool-name>``."""

    KIND = "PoolOption"
    PLURAL = "pooloptions"

    spec: PoolOptionSpec = Field(default_factory=PoolOptionSpec)

    @staticmethod
    def name_for(pool_namespace: str, pool_name: str) -> str:
        return f"{pool_namespace}-{pool_name}"


class AWSPoolMemberSpec(CloudModel):
    region: str = ""


class GCloudPoolMemberSpec(CloudModel):
    location: str = ""


class AzurePoolMemberSpec(CloudModel):
    location: str = ""


class PoolMemberSpec(CloudModel):
    type: Optional[PoolMemberType] = None
    pool_name: str = ""
    aws: Optional[AWSPoolMemberSpec] = None
    gcloud: Optional[GCloudPoolMemberSpec] = None
    azure: Optional[AzurePoolMemberSpec] = None


class PoolMember(CloudObject):
    KIND = "PoolMember"
    PLURAL = "poolmembers"

    spec: PoolMemberSpec = Field(default_factory=PoolMemberSpec)

    @property
    def location(self) -> str:
        """Region (AWS) or location (GCloud, Azure) of this member."""
        spec = self.spec
        if spec.type == PoolMemberType.AWS and spec.aws:
            return spec.aws.region
        if spec.type == PoolMemberType.GCLOUD and spec.gcloud:
            return spec.gcloud.location
        if spec.type == PoolMemberType.AZURE and spec.azure:
            return spec.azure.location
        return ""
