from __future__ import annotations

import pytest

from rpc_versus.models import EndpointTarget


@pytest.fixture
def targets() -> tuple[EndpointTarget, ...]:
    return (
        EndpointTarget(name="A", url="http://a.test/rpc"),
        EndpointTarget(name="B", url="http://b.test/rpc"),
        EndpointTarget(name="C", url="http://c.test/rpc"),
    )
