"""
Pytest fixtures for the Crowdfund SDK tests.
"""
import time

import pytest

from crowdfund_sdk._rate_limited_log import reset_rate_limits
from crowdfund_sdk.config import NetworkConfig
from crowdfund_sdk.orchestrator import TransactionOrchestrator

from tests.test_helpers import (
    FakeLedger, RecordingSigner, create_test_client, TEST_DONOR, TEST_PASSPHRASE,
)


# Make time.sleep instantaneous so confirmation polling doesn't slow the suite down
@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr(time, "sleep", lambda seconds, *_a, **_kw: sleeps.append(seconds))
    return sleeps


@pytest.fixture(autouse=True)
def _reset_module_state():
    """Rate-limit cache and network cache are module level; isolate tests"""
    reset_rate_limits()
    NetworkConfig._networks_cache = None
    yield
    reset_rate_limits()
    NetworkConfig._networks_cache = None


@pytest.fixture
def fake_ledger():
    return FakeLedger()


@pytest.fixture
def signer():
    return RecordingSigner(TEST_DONOR)


@pytest.fixture
def orchestrator(fake_ledger):
    return TransactionOrchestrator(
        fake_ledger, TEST_PASSPHRASE, explorer_url="https://stellar.expert/explorer/testnet"
    )


@pytest.fixture
def client(fake_ledger, signer):
    return create_test_client(ledger=fake_ledger, signer=signer)
