"""
Remote ledger capability set.

The orchestrator and event tailer talk to the network only through the
``LedgerClient`` protocol below. ``crowdfund_sdk.soroban`` provides the
Soroban RPC implementation; tests substitute an in-memory fake.
"""
from typing import Any, List, Optional, Protocol

from .models import (
    ConfirmationResult, OperationIntent, RawEvent, SimulationResult, SubmissionResult,
)


class LedgerError(Exception):
    """Base exception for ledger client failures."""
    pass


class LedgerConnectionError(LedgerError):
    """Raised when the RPC endpoint cannot be reached or times out."""
    pass


class AccountNotFoundError(LedgerError):
    """Raised when an account does not exist on the ledger."""
    pass


class LedgerDecodeError(LedgerError):
    """Raised when a response cannot be interpreted (e.g. newer wire formats)."""
    pass


class LedgerClient(Protocol):
    """Protocol for remote ledger clients"""

    def get_account(self, account_id: str) -> Any:
        """Load account state (sequence number etc.) for building transactions"""
        ...

    def build_transaction(self, account: Any, intent: OperationIntent, fee: int, timeout: int) -> Any:
        """Build an unsigned envelope invoking ``intent`` on the configured contract"""
        ...

    def simulate_transaction(self, envelope: Any) -> SimulationResult:
        ...

    def assemble_transaction(self, envelope: Any, simulation: SimulationResult) -> Any:
        """Merge the simulation footprint and resource fees into the envelope"""
        ...

    def envelope_to_xdr(self, envelope: Any) -> str:
        ...

    def send_transaction(self, signed_xdr: str) -> SubmissionResult:
        ...

    def get_transaction(self, tx_hash: str) -> ConfirmationResult:
        ...

    def get_latest_ledger(self) -> int:
        ...

    def get_events(self, start_ledger: Optional[int], contract_id: str, limit: int) -> List[RawEvent]:
        ...

    def decode(self, value: Any) -> Any:
        """Decode a wire value (event topic or payload) to native Python"""
        ...
