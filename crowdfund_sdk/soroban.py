"""
Soroban RPC implementation of the ledger client.

Wraps ``stellar_sdk.SorobanServer`` and translates its responses into the
SDK's own result types so the orchestrator never touches XDR directly.
"""
import logging
from typing import Any, Callable, List, Optional, TypeVar

from stellar_sdk import Address, SorobanServer, TransactionBuilder, TransactionEnvelope, scval
from stellar_sdk.client.requests_client import RequestsClient
from stellar_sdk.exceptions import (
    AccountNotFoundException,
    ConnectionError as StellarConnectionError,
    NotFoundError,
)
from stellar_sdk.soroban_rpc import (
    EventFilter, EventFilterType, GetTransactionStatus, SendTransactionStatus,
)

from .ledger import AccountNotFoundError, LedgerConnectionError, LedgerDecodeError
from .models import (
    ConfirmationResult, ConfirmationStatus, OperationIntent, RawEvent,
    SimulationResult, SubmissionResult, SubmissionStatus,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

_ENCODERS = {
    "address": scval.to_address,
    "i128": scval.to_int128,
    "u64": scval.to_uint64,
    "symbol": scval.to_symbol,
    "string": scval.to_string,
    "bool": scval.to_bool,
}

_CONFIRMATION_STATUS = {
    GetTransactionStatus.SUCCESS: ConfirmationStatus.SUCCESS,
    GetTransactionStatus.FAILED: ConfirmationStatus.FAILED,
    GetTransactionStatus.NOT_FOUND: ConfirmationStatus.NOT_FOUND,
}


def _to_plain(value: Any) -> Any:
    """Replace stellar_sdk Address objects with their strkey strings, recursively"""
    if isinstance(value, Address):
        return value.address
    if isinstance(value, dict):
        return {_to_plain(k): _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


class SorobanLedgerClient:
    """
    Ledger client backed by a Soroban RPC endpoint.

    Args:
        rpc_url: Soroban RPC URL (e.g., "https://soroban-testnet.stellar.org")
        network_passphrase: Network passphrase used to build and parse envelopes
        contract_id: Crowdfund contract address (C...)
        timeout: HTTP timeout in seconds
        server: Optional pre-built SorobanServer (mainly for tests)
    """

    def __init__(
        self,
        rpc_url: str,
        network_passphrase: str,
        contract_id: str,
        timeout: int = 30,
        server: Optional[SorobanServer] = None,
    ):
        self.rpc_url = rpc_url
        self.network_passphrase = network_passphrase
        self.contract_id = contract_id
        if server is None:
            client = RequestsClient(request_timeout=timeout, post_timeout=timeout)
            server = SorobanServer(rpc_url, client=client)
        self.server = server

    def _call(self, what: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return fn(*args, **kwargs)
        except StellarConnectionError as e:
            logger.debug(f"{what} failed to reach {self.rpc_url}: {e}")
            raise LedgerConnectionError(f"{what}: {e}") from e

    def get_account(self, account_id: str) -> Any:
        try:
            return self._call("getAccount", self.server.load_account, account_id)
        except (AccountNotFoundException, NotFoundError) as e:
            raise AccountNotFoundError(f"Account not found: {account_id}") from e

    def build_transaction(self, account: Any, intent: OperationIntent, fee: int, timeout: int) -> TransactionEnvelope:
        parameters = [_ENCODERS[arg.wire_type](arg.value) for arg in intent.args]
        return (
            TransactionBuilder(account, network_passphrase=self.network_passphrase, base_fee=fee)
            .append_invoke_contract_function_op(
                contract_id=self.contract_id,
                function_name=intent.function_name,
                parameters=parameters,
            )
            .set_timeout(timeout)
            .build()
        )

    def simulate_transaction(self, envelope: TransactionEnvelope) -> SimulationResult:
        response = self._call("simulateTransaction", self.server.simulate_transaction, envelope)
        if response.error:
            return SimulationResult(error=response.error, footprint=response)
        return_value = None
        if response.results:
            return_value = self.decode(response.results[0].xdr)
        return SimulationResult(return_value=return_value, footprint=response)

    def assemble_transaction(self, envelope: TransactionEnvelope, simulation: SimulationResult) -> TransactionEnvelope:
        return self._call(
            "prepareTransaction", self.server.prepare_transaction, envelope, simulation.footprint
        )

    def envelope_to_xdr(self, envelope: TransactionEnvelope) -> str:
        return envelope.to_xdr()

    def send_transaction(self, signed_xdr: str) -> SubmissionResult:
        envelope = TransactionEnvelope.from_xdr(signed_xdr, self.network_passphrase)
        response = self._call("sendTransaction", self.server.send_transaction, envelope)
        if response.status == SendTransactionStatus.ERROR:
            return SubmissionResult(
                SubmissionStatus.REJECTED,
                tx_hash=response.hash,
                error_detail=response.error_result_xdr or "Unknown error",
            )
        if response.status == SendTransactionStatus.TRY_AGAIN_LATER:
            return SubmissionResult(SubmissionStatus.TRY_AGAIN_LATER, tx_hash=response.hash)
        # PENDING and DUPLICATE both mean the network holds the transaction
        return SubmissionResult(SubmissionStatus.ACCEPTED, tx_hash=response.hash)

    def get_transaction(self, tx_hash: str) -> ConfirmationResult:
        try:
            response = self._call("getTransaction", self.server.get_transaction, tx_hash)
        except ValueError as e:
            raise LedgerDecodeError(f"Unreadable getTransaction response: {e}") from e
        status = _CONFIRMATION_STATUS.get(response.status)
        if status is None:
            raise LedgerDecodeError(f"Unknown transaction status: {response.status}")
        return ConfirmationResult(status, detail=response.result_xdr)

    def get_latest_ledger(self) -> int:
        return int(self._call("getLatestLedger", self.server.get_latest_ledger).sequence)

    def get_events(self, start_ledger: Optional[int], contract_id: str, limit: int) -> List[RawEvent]:
        filters = [
            EventFilter(
                event_type=EventFilterType.CONTRACT,
                contract_ids=[contract_id],
                topics=[["*"]],
            )
        ]
        response = self._call(
            "getEvents", self.server.get_events,
            start_ledger=start_ledger, filters=filters, limit=limit,
        )
        return [
            RawEvent(
                id=event.id,
                ledger=int(event.ledger),
                topics=tuple(event.topic or ()),
                value=event.value,
                tx_hash=getattr(event, "transaction_hash", None),
            )
            for event in response.events or []
        ]

    def decode(self, value: Any) -> Any:
        if value is None:
            return None
        return _to_plain(scval.to_native(value))
