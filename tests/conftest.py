"""Shared fixtures: a fake clock for the poller and an in-memory control plane."""

import pytest

from streamnative_provider.client.memory import InMemoryCloudClient
from streamnative_provider.models import (
    ObjectMeta,
    Organization,
    PoolMember,
    PoolMemberSpec,
    PoolOption,
    PoolOptionSpec,
    PoolRef,
    PulsarInstance,
    PulsarInstanceSpec,
)
from streamnative_provider.models.pool import AWSPoolMemberSpec
from streamnative_provider.poller.convergence import ConvergencePoller

ORG = "acme"
POOL_NAMESPACE = "streamnative"
POOL_NAME = "shared-aws"
POOL_MEMBER = "aws-use2"


class FakeClock:
    """Monotonic clock that only moves when someone sleeps or fetches."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds, cancel=None) -> bool:
        self.sleeps.append(seconds)
        self.now += seconds
        return cancel is not None and cancel.is_set()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def poller(fake_clock):
    return ConvergencePoller(clock=fake_clock, sleep=fake_clock.sleep)


@pytest.fixture
def cloud():
    """Control plane seeded with an organization, a pool and one pool member."""
    client = InMemoryCloudClient()
    client.seed(Organization(metadata=ObjectMeta(name=ORG)))
    client.seed(PoolOption(
        metadata=ObjectMeta(name=PoolOption.name_for(POOL_NAMESPACE, POOL_NAME), namespace=ORG),
        spec=PoolOptionSpec(
            pool_ref=PoolRef(namespace=POOL_NAMESPACE, name=POOL_NAME),
            deployment_type="hosted",
        ),
    ))
    client.seed(PoolMember(
        metadata=ObjectMeta(name=POOL_MEMBER, namespace=ORG),
        spec=PoolMemberSpec(
            type="aws",
            pool_name=POOL_NAME,
            aws=AWSPoolMemberSpec(region="us-east-2"),
        ),
    ))
    return client


@pytest.fixture
def seed_instance(cloud):
    """Seed a Ready pulsar instance attached to the shared pool."""

    def seed(name="inst", instance_type="dedicated", annotations=None):
        return cloud.seed(PulsarInstance(
            metadata=ObjectMeta(name=name, namespace=ORG, annotations=annotations or {}),
            spec=PulsarInstanceSpec(
                availability_mode="zonal",
                type=instance_type,
                pool_ref=PoolRef(namespace=POOL_NAMESPACE, name=POOL_NAME),
            ),
        ))

    return seed
