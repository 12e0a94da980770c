"""Shared fixtures: small service graphs used across test modules."""

from __future__ import annotations

from pathlib import Path

import pytest

from trafficeval.model.flow import ServiceNode, TrafficFlow

SAMPLE_DATA = Path(__file__).parent / "sample_data"


@pytest.fixture
def sample_data_dir() -> Path:
    return SAMPLE_DATA


@pytest.fixture
def checkout_flow() -> TrafficFlow:
    """Gateway fanning out to auth and orders; orders calls the user DB twice.

    With multiplier 1: gw=1000, auth=1000 (warning), orders=1000,
    users=2000 (critical).
    """
    flow = TrafficFlow(name="checkout", id="flow-checkout")
    flow.add_node(
        ServiceNode(
            "gw",
            daily_qps=1000,
            max_qps=5000,
            rate_limit_qps=3000,
            label="API Gateway",
            microservice="api-gateway",
            api="/checkout",
            owner="edge",
        )
    )
    flow.add_node(
        ServiceNode(
            "auth",
            max_qps=2000,
            rate_limit_qps=800,
            label="Auth Service",
            microservice="auth",
            api="/verify",
            owner="identity",
        )
    )
    flow.add_node(
        ServiceNode(
            "orders",
            max_qps=2000,
            rate_limit_qps=1200,
            label="Order Service",
            microservice="orders",
            api="/create",
            owner="commerce",
        )
    )
    flow.add_node(
        ServiceNode(
            "users",
            max_qps=1500,
            rate_limit_qps=800,
            label="User DB",
            microservice="user-db",
            api="/query",
            owner="identity",
        )
    )
    flow.connect("gw", "auth")
    flow.connect("gw", "orders")
    flow.connect("orders", "users", multiplier=2)
    return flow


@pytest.fixture
def cyclic_flow() -> TrafficFlow:
    """Entry 'a' feeds 'b'; 'b' and 'c' call each other; 'd' hangs off 'c'."""
    flow = TrafficFlow(name="cyclic")
    for nid in ("a", "b", "c", "d"):
        flow.add_node(ServiceNode(nid, daily_qps=100, max_qps=1000, rate_limit_qps=500))
    flow.connect("a", "b")
    flow.connect("b", "c")
    flow.connect("c", "b")
    flow.connect("c", "d")
    return flow
