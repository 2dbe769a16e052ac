import os
import sys
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "backend"))

from memwatch.core.exceptions import UpstreamListError  # noqa: E402
from memwatch.db.models import Base  # noqa: E402
from memwatch.schemas.node_memory import NodeCapacity, NodeUsage  # noqa: E402

MIB = 1024 * 1024


class FakeClusterClient:
    """Stands in for ClusterClient with fixed listings."""

    def __init__(self, capacities=None, usages=None, capacity_error=None, usage_error=None):
        self.capacities = capacities or []
        self.usages = usages or []
        self.capacity_error = capacity_error
        self.usage_error = usage_error
        self.calls = []

    def list_node_capacity(self):
        self.calls.append("capacity")
        if self.capacity_error:
            raise UpstreamListError("nodes", self.capacity_error)
        return list(self.capacities)

    def list_node_usage(self):
        self.calls.append("usage")
        if self.usage_error:
            raise UpstreamListError("node metrics", self.usage_error)
        return list(self.usages)


def capacity(name, mib):
    return NodeCapacity(name=name, memory_bytes=None if mib is None else mib * MIB)


def usage(name, mib):
    return NodeUsage(name=name, memory_bytes=None if mib is None else mib * MIB)


def config_map(**data):
    return SimpleNamespace(data=data)


@pytest.fixture
def fake_cluster():
    return FakeClusterClient(
        capacities=[capacity("n1", 8192), capacity("n2", 4096)],
        usages=[usage("n2", 3072), usage("n1", 6144)],
    )


@pytest.fixture
def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()
