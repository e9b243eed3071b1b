"""
Transaction orchestrator - drives a contract call from intent to confirmation.

Pipeline: load account -> build -> simulate -> assemble -> sign -> submit ->
poll for confirmation. Each stage fails fast with a classified
``CrowdfundError``; only the confirmation stage retries.
"""
import logging
import time
from typing import Any, Optional

from .diagnostics import (
    classify_confirmation_failure, classify_signer_error,
    classify_simulation_error, confirmation_timeout,
)
from .exceptions import (
    ContractError, CrowdfundError, InsufficientBalanceError, NetworkError, classify_exception,
)
from .ledger import LedgerClient, LedgerConnectionError
from .models import (
    ConfirmationResult, ConfirmationStatus, OperationIntent, SimulationResult,
    SubmissionStatus, SubmitOutcome,
)
from .signer import Signer

DEFAULT_FEE = 100000
DEFAULT_TX_TIMEOUT = 60
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_MAX_POLLS = 30


class TransactionOrchestrator:
    """
    Builds, simulates, signs, submits and confirms contract invocations.

    The orchestrator holds no per-call state, so concurrent ``submit`` calls
    proceed independently. It does not serialize calls for the same signer
    and provides no idempotency key: blindly retrying after a confirmation
    timeout can submit the operation twice. Check the first transaction's
    status before retrying.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        network_passphrase: str,
        fee: int = DEFAULT_FEE,
        tx_timeout: int = DEFAULT_TX_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_polls: int = DEFAULT_MAX_POLLS,
        explorer_url: Optional[str] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the orchestrator

        Args:
            ledger: Remote ledger client
            network_passphrase: Passphrase handed to the signer
            fee: Maximum fee per transaction, in stroops
            tx_timeout: Validity window of built transactions in seconds
            poll_interval: Seconds between confirmation polls
            max_polls: Confirmation re-polls after the first status query
            explorer_url: Base explorer URL mentioned in timeout warnings
            logger: Optional logger instance
        """
        self.ledger = ledger
        self.network_passphrase = network_passphrase
        self.fee = fee
        self.tx_timeout = tx_timeout
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.explorer_url = explorer_url
        self.logger = logger or logging.getLogger(__name__)

    def load_account(self, account_id: str, require_funded: bool = False) -> Any:
        """
        Fetch account state for building a transaction.

        Raises:
            InsufficientBalanceError: If ``require_funded`` and the lookup fails
            NetworkError: If the lookup fails otherwise
        """
        try:
            return self.ledger.get_account(account_id)
        except Exception as e:
            self.logger.error(f"Account lookup for {account_id} failed: {e}")
            if require_funded:
                raise InsufficientBalanceError(
                    "Account not found or not funded. Fund it (e.g. with Friendbot) first.",
                    details=str(e),
                ) from e
            raise NetworkError("Cannot reach Stellar network", details=str(e)) from e

    def simulate(self, account: Any, intent: OperationIntent, timeout: Optional[int] = None):
        """
        Build an envelope for ``intent`` and dry-run it.

        Returns:
            Tuple of (envelope, SimulationResult); the result may carry an error
        """
        try:
            envelope = self.ledger.build_transaction(
                account, intent, fee=self.fee, timeout=timeout or self.tx_timeout
            )
            simulation = self.ledger.simulate_transaction(envelope)
        except Exception as e:
            self.logger.error(f"Simulation of {intent.function_name} failed: {e}")
            raise classify_exception(e) from e
        return envelope, simulation

    def submit(
        self,
        intent: OperationIntent,
        signer_identity: str,
        signer: Signer,
        require_funded_account: bool = False
    ) -> SubmitOutcome:
        """
        Drive ``intent`` through the full transaction lifecycle.

        Args:
            intent: Contract call to perform
            signer_identity: Public key of the source account
            signer: Signer producing the signed envelope
            require_funded_account: Report a failed account lookup as
                INSUFFICIENT_BALANCE instead of NETWORK_ERROR

        Returns:
            SubmitOutcome. When confirmation could not be observed the
            transaction hash is still returned with a NETWORK_ERROR warning.

        Raises:
            CrowdfundError: Classified failure of any stage before confirmation,
                or a confirmed on-chain failure
        """
        self.logger.debug(f"Submitting {intent.function_name} from {signer_identity}")
        account = self.load_account(signer_identity, require_funded=require_funded_account)

        envelope, simulation = self.simulate(account, intent)
        if not simulation.ok:
            error = classify_simulation_error(simulation.error)
            self.logger.error(f"Simulation of {intent.function_name} rejected: {simulation.error}")
            raise error

        self.logger.debug(f"Simulation of {intent.function_name} succeeded, assembling")
        envelope_xdr = self._assemble(envelope, simulation)
        signed_xdr = self._sign(signer, envelope_xdr, signer_identity)
        tx_hash = self._send(signed_xdr)

        warning = self._await_confirmation(tx_hash)
        return SubmitOutcome(tx_hash=tx_hash, warning=warning)

    def _assemble(self, envelope: Any, simulation: SimulationResult) -> str:
        # Signing the unassembled envelope yields an invalid transaction
        try:
            assembled = self.ledger.assemble_transaction(envelope, simulation)
            return self.ledger.envelope_to_xdr(assembled)
        except Exception as e:
            self.logger.error(f"Transaction assembly failed: {e}")
            raise classify_exception(e, "Failed to assemble transaction") from e

    def _sign(self, signer: Signer, envelope_xdr: str, signer_identity: str) -> str:
        try:
            return signer.sign(envelope_xdr, signer_identity, self.network_passphrase)
        except Exception as e:
            self.logger.error(f"Transaction signing failed: {e}")
            raise classify_signer_error(str(e)) from e

    def _send(self, signed_xdr: str) -> str:
        try:
            result = self.ledger.send_transaction(signed_xdr)
        except Exception as e:
            self.logger.error(f"Failed to send transaction: {e}")
            raise classify_exception(e, "Failed to send transaction") from e

        if result.status == SubmissionStatus.REJECTED:
            self.logger.error(f"Transaction rejected: {result.error_detail}")
            raise ContractError("Transaction submission failed", details=result.error_detail or "Unknown error")
        if result.status == SubmissionStatus.TRY_AGAIN_LATER:
            self.logger.warning("Network busy, transaction not accepted")
            raise NetworkError("Network is busy. Please try again in a moment.")

        self.logger.info(f"Transaction sent: {result.tx_hash}")
        return result.tx_hash

    def confirm(self, tx_hash: str) -> ConfirmationResult:
        """
        Poll for the on-chain result of ``tx_hash``.

        Queries once immediately, then every ``poll_interval`` seconds up to
        ``max_polls`` more times while the transaction is not found.

        Returns:
            ConfirmationResult; TIMED_OUT if it was never found
        """
        result = self.ledger.get_transaction(tx_hash)
        polls = 0
        while result.status == ConfirmationStatus.NOT_FOUND and polls < self.max_polls:
            time.sleep(self.poll_interval)
            result = self.ledger.get_transaction(tx_hash)
            polls += 1
        if result.status == ConfirmationStatus.NOT_FOUND:
            return ConfirmationResult(ConfirmationStatus.TIMED_OUT, detail=result.detail)
        return result

    def _await_confirmation(self, tx_hash: str) -> Optional[CrowdfundError]:
        try:
            result = self.confirm(tx_hash)
        except LedgerConnectionError as e:
            # Submission was already accepted; losing the status stream is not fatal
            self.logger.warning(f"Lost contact while confirming {tx_hash}: {e}")
            return confirmation_timeout(tx_hash, self.explorer_url)
        except Exception as e:
            # Status payloads in newer wire formats may not parse; the accepted
            # submission stands
            self.logger.warning(f"getTransaction parse warning for {tx_hash}: {e}")
            return None

        if result.status == ConfirmationStatus.FAILED:
            error = classify_confirmation_failure(result.detail)
            self.logger.error(f"Transaction {tx_hash} failed on-chain: {result.detail}")
            raise error
        if result.status == ConfirmationStatus.TIMED_OUT:
            self.logger.warning(f"Confirmation of {tx_hash} timed out")
            return confirmation_timeout(tx_hash, self.explorer_url)

        self.logger.debug(f"Transaction {tx_hash} confirmed")
        return None
