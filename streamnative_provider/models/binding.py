"""Service account binding: grants a service account access to a pool member."""

from typing import List

from pydantic import Field

from streamnative_provider.models.meta import (
    CloudModel,
    CloudObject,
    PoolMemberReference,
)


class ServiceAccountBindingSpec(CloudModel):
    service_account_name: str = ""
    pool_member_ref: PoolMemberReference = Field(default_factory=PoolMemberReference)
    enable_iam_account_creation: bool = Field(
        default=False, alias="enableIAMAccountCreation"
    )
    aws_assume_role_arns: List[str] = Field(default=[], alias="awsAssumeRoleARNs")


class ServiceAccountBinding(CloudObject):
    KIND = "ServiceAccountBinding"
    PLURAL = "serviceaccountbindings"

    spec: ServiceAccountBindingSpec = Field(default_factory=ServiceAccountBindingSpec)

    @staticmethod
    def name_for(
        service_account_name: str,
        pool_member_namespace: str,
        pool_member_name: str,
    ) -> str:
        return f"{service_account_name}.{pool_member_namespace}.{pool_member_name}"
