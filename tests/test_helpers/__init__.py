"""
Shared helpers for the Crowdfund SDK tests.
"""
from .client_creator import (
    create_test_client, TEST_RPC_URL, TEST_PASSPHRASE, TEST_CONTRACT, TEST_OWNER, TEST_DONOR,
)
from .fake_ledger import FakeLedger, RecordingSigner, donate_event

__all__ = [
    "create_test_client",
    "FakeLedger",
    "RecordingSigner",
    "donate_event",
    "TEST_RPC_URL",
    "TEST_PASSPHRASE",
    "TEST_CONTRACT",
    "TEST_OWNER",
    "TEST_DONOR",
]
