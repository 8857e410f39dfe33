import pytest

from .factories import make_node, make_channel, ckb


@pytest.fixture
def two_country_network():
    nodes = [
        make_node("a", country="US", city="New York", loc="40.71,-74.00"),
        make_node("b", country="DE", city="Berlin", loc="52.52,13.40"),
    ]
    channels = [make_channel("0xout1", "a", "b", ckb(10))]
    return nodes, channels
