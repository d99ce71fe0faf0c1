"""
Provider: the registry of resources and data sources bound to one client.
"""

import logging
import threading
from typing import Dict, Optional, Type

import httpx

from streamnative_provider.client.api import CloudApi, CloudClient
from streamnative_provider.data_sources.lookups import (
    DataSource,
    OrganizationDataSource,
    PoolMemberDataSource,
    PulsarClusterDataSource,
    PulsarGatewayDataSource,
    PulsarInstanceDataSource,
    ServiceAccountBindingDataSource,
)
from streamnative_provider.models.poller import DEFAULT_POLL_INTERVAL_SECONDS
from streamnative_provider.poller.convergence import ConvergencePoller
from streamnative_provider.provider.auth import ClientCredentialsAuth
from streamnative_provider.provider.config import ProviderConfig
from streamnative_provider.resources.base import (
    ProviderError,
    ResourceHandler,
    ResourceTimeouts,
)
from streamnative_provider.resources.pulsar_cluster import PulsarClusterResource
from streamnative_provider.resources.pulsar_gateway import PulsarGatewayResource
from streamnative_provider.resources.pulsar_instance import PulsarInstanceResource
from streamnative_provider.resources.service_account_binding import (
    ServiceAccountBindingResource,
)

logger = logging.getLogger(__name__)

RESOURCES: Dict[str, Type[ResourceHandler]] = {
    cls.TYPE_NAME: cls
    for cls in (
        PulsarInstanceResource,
        PulsarClusterResource,
        PulsarGatewayResource,
        ServiceAccountBindingResource,
    )
}

DATA_SOURCES: Dict[str, Type[DataSource]] = {
    cls.TYPE_NAME: cls
    for cls in (
        OrganizationDataSource,
        PoolMemberDataSource,
        PulsarInstanceDataSource,
        PulsarClusterDataSource,
        PulsarGatewayDataSource,
        ServiceAccountBindingDataSource,
    )
}


class Provider:
    """Hands out resource handlers and data sources sharing one API client."""

    def __init__(
        self,
        client: CloudApi,
        poller: Optional[ConvergencePoller] = None,
        timeouts: Optional[Dict[str, ResourceTimeouts]] = None,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        cancel: Optional[threading.Event] = None,
    ):
        self.client = client
        self.poller = poller or ConvergencePoller()
        self.timeouts = timeouts or {}
        self.poll_interval_seconds = poll_interval_seconds
        self.cancel = cancel

    @classmethod
    def configure(
        cls,
        config: ProviderConfig,
        http_client: Optional[httpx.Client] = None,
        **kwargs,
    ) -> "Provider":
        """Authenticate against the issuer and connect to the API server."""
        auth = ClientCredentialsAuth(
            config.credentials(),
            issuer=config.issuer,
            audience=config.audience,
        )
        client = CloudClient(
            config.api_server,
            auth=auth,
            timeout_seconds=config.request_timeout_seconds,
            http_client=http_client,
        )
        logger.info("Configured provider for %s", config.api_server)
        return cls(client, **kwargs)

    def resource(self, type_name: str) -> ResourceHandler:
        handler_cls = RESOURCES.get(type_name)
        if handler_cls is None:
            raise ProviderError("ERROR_UNKNOWN_RESOURCE", f"unknown resource type {type_name!r}")
        return handler_cls(
            self.client,
            poller=self.poller,
            timeouts=self.timeouts.get(type_name),
            poll_interval_seconds=self.poll_interval_seconds,
            cancel=self.cancel,
        )

    def data_source(self, type_name: str) -> DataSource:
        source_cls = DATA_SOURCES.get(type_name)
        if source_cls is None:
            raise ProviderError("ERROR_UNKNOWN_DATA_SOURCE", f"unknown data source {type_name!r}")
        return source_cls(self.client)

    @staticmethod
    def schema() -> dict:
        return {
            "provider": ProviderConfig.model_json_schema(),
            "resources": {name: cls.schema() for name, cls in RESOURCES.items()},
            "data_sources": {name: cls.schema() for name, cls in DATA_SOURCES.items()},
        }
