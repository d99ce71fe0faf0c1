"""
Attribute descriptions shared by every resource and data source schema.

Built once at import time and exposed read-only; configuration models pull
their field descriptions from here.
"""

from types import MappingProxyType
from typing import Mapping

_DESCRIPTIONS = {
    "key_file_path": (
        "The path of the private key file, you can set it to 'KEY_FILE_PATH' "
        "environment variable, find it in the cloud console under the service "
        "account with admin permission"
    ),
    "client_id": (
        "Client ID of the service account, you can set it to "
        "'GLOBAL_DEFAULT_CLIENT_ID' environment variable"
    ),
    "client_secret": (
        "Client Secret of the service account, you can set it to "
        "'GLOBAL_DEFAULT_CLIENT_SECRET' environment variable"
    ),
    "organization": "The organization name",
    "service_account_name": "The service account name",
    "service_account_binding_name": "The service account binding name",
    "cluster_name": "The pulsar cluster name",
    "cluster_display_name": "The pulsar cluster display name",
    "availability_mode": "The availability mode, supporting 'zonal' and 'regional'",
    "pool_name": "The infrastructure pool name",
    "pool_namespace": "The infrastructure pool namespace",
    "pool_member_name": "The infrastructure pool member name",
    "pool_member_namespace": "The infrastructure pool member namespace",
    "pool_member_type": "Type of infrastructure pool member, one of aws, gcloud and azure",
    "pool_member_location": "The location of the infrastructure pool member",
    "instance_name": "The pulsar instance name",
    "instance_type": (
        "The streamnative cloud instance type, supporting 'serverless', "
        "'dedicated', 'byoc' and 'byoc-pro'"
    ),
    "instance_engine": (
        "The streamnative cloud instance engine, supporting 'ursa' and "
        "'classic', default 'classic'"
    ),
    "location": "The location of the pulsar cluster",
    "release_channel": (
        "The release channel of the pulsar cluster subscribe to, it must to be "
        "lts or rapid, default rapid"
    ),
    "bookie_replicas": "The number of bookie replicas",
    "broker_replicas": "The number of broker replicas",
    "compute_unit_per_broker": "compute unit per broker, 1 compute unit is 2 cpu and 8gb memory",
    "storage_unit_per_bookie": "storage unit per bookie, 1 storage unit is 2 cpu and 8gb memory",
    "cluster_ready": "Pulsar cluster is ready, it will be set to 'True' after the cluster is ready",
    "instance_ready": "Pulsar instance is ready, it will be set to 'True' after the instance is ready",
    "gateway_ready": "Pulsar gateway is ready, it will be set to 'True' after the gateway is ready",
    "websocket_enabled": "Whether the websocket is enabled",
    "function_enabled": "Whether the function is enabled",
    "transaction_enabled": "Whether the transaction is enabled",
    "kafka": "Controls the kafka protocol config of pulsar cluster",
    "mqtt": "Controls the mqtt protocol config of pulsar cluster",
    "categories": (
        "Controls the audit log categories config of pulsar cluster, supported "
        'categories: "Management", "Describe", "Produce", "Consume"'
    ),
    "custom": "Controls the custom config of pulsar cluster",
    "endpoint_access": "The gateways the pulsar cluster is exposed through",
    "http_tls_service_urls": (
        "The service url of the pulsar cluster, use it to management the pulsar "
        "cluster. There'll be multiple service urls if the cluster attached "
        "with multiple gateways"
    ),
    "pulsar_tls_service_urls": (
        "The service url of the pulsar cluster, use it to produce and consume "
        "message. There'll be multiple service urls if the cluster attached "
        "with multiple gateways"
    ),
    "kafka_service_urls": (
        "If you want to connect to the pulsar cluster using the kafka protocol, "
        "use this kafka service url"
    ),
    "mqtt_service_urls": (
        "If you want to connect to the pulsar cluster using the mqtt protocol, "
        "use this mqtt service url"
    ),
    "websocket_service_urls": (
        "If you want to connect to the pulsar cluster using the websocket "
        "protocol, use this websocket service url"
    ),
    "pulsar_version": "The version of the pulsar cluster",
    "bookkeeper_version": "The version of the bookkeeper cluster",
    "gateway_name": "The name of the pulsar gateway",
    "gateway_access": "The access type of the pulsar gateway, valid values are 'public' and 'private'",
    "gateway_allowed_ids": (
        "The whitelist of the private service, only can be configured when "
        "access is private. They are account ids in AWS, the project names in "
        "GCP, and the subscription ids in Azure"
    ),
    "gateway_private_service_ids": (
        "The private service ids are service names of PrivateLink in AWS, the "
        "ids of Private Service Attachment in GCP, and the aliases of "
        "PrivateLinkService in Azure."
    ),
    "wait_for_completion": "If true, will block until the status of resource has a Ready condition",
    "oauth2_issuer_url": "The issuer url of the oauth2",
    "oauth2_audience": "The audience of the oauth2",
    "enable_iam_account_creation": "Whether to create an IAM account for the service account binding",
    "aws_assume_role_arns": (
        "A list of AWS IAM roles' arn which can be assumed by the AWS IAM role "
        "created for the service account binding"
    ),
}

DESCRIPTIONS: Mapping[str, str] = MappingProxyType(_DESCRIPTIONS)


def describe(key: str) -> str:
    """Look up a description; unknown keys are a programming error."""
    return DESCRIPTIONS[key]
