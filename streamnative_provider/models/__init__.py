"""StreamNative cloud API data models."""

from streamnative_provider.models.binding import (
    ServiceAccountBinding,
    ServiceAccountBindingSpec,
)
from streamnative_provider.models.cluster import (
    BookKeeper,
    Broker,
    ClusterConfig,
    EndpointAccess,
    PulsarCluster,
    PulsarClusterSpec,
    ServiceEndpoint,
)
from streamnative_provider.models.gateway import (
    PrivateService,
    PrivateServiceId,
    PulsarGateway,
    PulsarGatewaySpec,
)
from streamnative_provider.models.instance import PulsarInstance, PulsarInstanceSpec
from streamnative_provider.models.meta import (
    CloudObject,
    Condition,
    ObjectMeta,
    PoolMemberReference,
    ResourceStatus,
)
from streamnative_provider.models.poller import (
    PollOutcome,
    PollPhase,
    PollRequest,
    Verdict,
)
from streamnative_provider.models.pool import (
    Organization,
    PoolMember,
    PoolMemberSpec,
    PoolOption,
    PoolOptionSpec,
    PoolRef,
)

__all__ = [
    "BookKeeper",
    "Broker",
    "CloudObject",
    "ClusterConfig",
    "Condition",
    "EndpointAccess",
    "ObjectMeta",
    "Organization",
    "PollOutcome",
    "PollPhase",
    "PollRequest",
    "PoolMember",
    "PoolMemberReference",
    "PoolMemberSpec",
    "PoolOption",
    "PoolOptionSpec",
    "PoolRef",
    "PrivateService",
    "PrivateServiceId",
    "PulsarCluster",
    "PulsarClusterSpec",
    "PulsarGateway",
    "PulsarGatewaySpec",
    "PulsarInstance",
    "PulsarInstanceSpec",
    "ResourceStatus",
    "ServiceAccountBinding",
    "ServiceAccountBindingSpec",
    "ServiceEndpoint",
    "Verdict",
]
