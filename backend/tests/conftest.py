"""
Shared fixtures.
"""

import pytest

from fakes import Harness
from lib.realtime_voice_framework.core.errors import NegotiationError
from lib.realtime_voice_framework.transport import TransportConfig


@pytest.fixture
def transport_config():
    """Fast timeouts, no greeting delay."""
    return TransportConfig(
        ice_gathering_timeout=0.05,
        channel_open_timeout=0.5,
        greeting_delay=0,
        http_timeout=5,
    )


@pytest.fixture
def harness(transport_config):
    return Harness(transport_config)


@pytest.fixture
def negotiation_error():
    return NegotiationError("Realtime connection failed: 401 invalid token", status=401, body="invalid token")
