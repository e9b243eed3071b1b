"""
CrowdfundClient - Main client for a Soroban crowdfunding contract.
"""
import logging
from typing import List, Optional

from .config import NetworkSettings, validate_url
from .events import EventCallback, EventTailer
from .exceptions import ContractError, CrowdfundError, NetworkError, WalletNotFoundError
from .friendbot import fund_account
from .ledger import LedgerClient
from .models import CampaignSnapshot, DonationEvent, OperationIntent, SubmitOutcome
from .orchestrator import TransactionOrchestrator
from .signer import Signer

READ_TIMEOUT = 30


class CrowdfundClient:
    """
    Client for interacting with a crowdfunding contract.

    This client handles:
    1. Reading campaign state and per-donor totals
    2. Donating and claiming through the transaction orchestrator
    3. Following donation events

    Every failure is raised as a ``CrowdfundError`` with a taxonomy kind.
    """

    def __init__(
        self,
        rpc_url: str,
        network_passphrase: str,
        contract_id: str,
        owner_id: str,
        signer: Optional[Signer] = None,
        ledger: Optional[LedgerClient] = None,
        friendbot_url: Optional[str] = None,
        explorer_url: Optional[str] = None,
        timeout: int = 30,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the CrowdfundClient

        Args:
            rpc_url: Soroban RPC endpoint URL
            network_passphrase: Network passphrase (e.g. "Test SDF Network ; September 2015")
            contract_id: Crowdfund contract address
            owner_id: Reference account used as source for read-only simulations
            signer: Default signer for write operations
            ledger: Ledger client (defaults to a SorobanLedgerClient for rpc_url)
            friendbot_url: Friendbot endpoint for funding test accounts
            explorer_url: Block explorer base URL
            timeout: HTTP timeout in seconds
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ValueError: If rpc_url doesn't use https (unless it's local)
        """
        validate_url("rpc_url", rpc_url)

        self.rpc_url = rpc_url
        self.network_passphrase = network_passphrase
        self.contract_id = contract_id
        self.owner_id = owner_id
        self.signer = signer
        self.friendbot_url = friendbot_url
        self.explorer_url = explorer_url
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self.settings: Optional[NetworkSettings] = None

        if ledger is None:
            from .soroban import SorobanLedgerClient
            ledger = SorobanLedgerClient(rpc_url, network_passphrase, contract_id, timeout=timeout)
        self.ledger = ledger

        self.orchestrator = TransactionOrchestrator(
            ledger, network_passphrase, explorer_url=explorer_url, logger=self.logger
        )
        self.tailer = EventTailer(ledger, contract_id, logger=self.logger)

    @classmethod
    def from_network(
        cls,
        network: Optional[str] = None,
        signer: Optional[Signer] = None,
        ledger: Optional[LedgerClient] = None,
        logger: Optional[logging.Logger] = None,
        **overrides
    ) -> "CrowdfundClient":
        """
        Create a client from a bundled network definition.

        Args:
            network: Network name (defaults to CROWDFUND_NETWORK or "testnet")
            signer: Default signer for write operations
            ledger: Optional ledger client
            logger: Optional logger instance
            **overrides: NetworkSettings fields to override

        Returns:
            Configured CrowdfundClient
        """
        settings = NetworkSettings.from_env(network, **overrides)
        client = cls(
            rpc_url=settings.rpc_url,
            network_passphrase=settings.passphrase,
            contract_id=settings.contract_id,
            owner_id=settings.owner,
            signer=signer,
            ledger=ledger,
            friendbot_url=settings.friendbot_url,
            explorer_url=settings.explorer_url,
            timeout=settings.timeout,
            logger=logger,
        )
        client.settings = settings
        return client

    def fetch_campaign(self) -> CampaignSnapshot:
        """
        Read the campaign state.

        Returns:
            A fresh CampaignSnapshot

        Raises:
            NetworkError: If the network cannot be reached
            ContractError: If the contract call fails or returns nothing
        """
        account = self.orchestrator.load_account(self.owner_id)
        _, simulation = self.orchestrator.simulate(
            account, OperationIntent.call("get_campaign"), timeout=READ_TIMEOUT
        )
        if not simulation.ok:
            self.logger.error(f"get_campaign simulation failed: {simulation.error}")
            raise ContractError("Failed to read campaign from contract", details=simulation.error)
        if simulation.return_value is None:
            raise ContractError("No result from simulation")
        if not isinstance(simulation.return_value, dict):
            raise ContractError("Unexpected campaign format", details=repr(simulation.return_value))
        return CampaignSnapshot.from_native(simulation.return_value)

    def fetch_donation_total(self, donor: str, viewer: Optional[str] = None) -> int:
        """
        Read how much ``donor`` has given so far.

        Best-effort: any failure is logged and reported as 0.

        Args:
            donor: Donor account
            viewer: Source account for the simulation (defaults to the owner)
        """
        try:
            account = self.orchestrator.load_account(viewer or self.owner_id)
            _, simulation = self.orchestrator.simulate(
                account, OperationIntent.call("get_donation", (donor, "address")), timeout=READ_TIMEOUT
            )
            if not simulation.ok or simulation.return_value is None:
                return 0
            return int(simulation.return_value)
        except (CrowdfundError, TypeError, ValueError) as e:
            self.logger.debug(f"Donation lookup for {donor} failed: {e}")
            return 0

    def _resolve_signer(self, signer: Optional[Signer]) -> Signer:
        signer = signer or self.signer
        if signer is None:
            raise WalletNotFoundError("No wallet connected. Connect a wallet to sign transactions.")
        return signer

    def submit_donation(self, public_key: str, amount: int, signer: Optional[Signer] = None) -> SubmitOutcome:
        """
        Donate ``amount`` base units from ``public_key``.

        Args:
            public_key: Donor account
            amount: Amount in the token's smallest unit; must be positive
            signer: Signer to use instead of the client default

        Returns:
            SubmitOutcome with the transaction hash

        Raises:
            CrowdfundError: Classified failure
        """
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ContractError("Donation amount must be a whole number of base units.")
        if amount <= 0:
            raise ContractError("Donation amount must be greater than zero.")
        signer = self._resolve_signer(signer)

        intent = OperationIntent.call("donate", (public_key, "address"), (amount, "i128"))
        return self.orchestrator.submit(intent, public_key, signer, require_funded_account=True)

    def claim(self, public_key: str, signer: Optional[Signer] = None) -> SubmitOutcome:
        """
        Claim the raised funds as the campaign owner.

        Raises:
            CrowdfundError: Classified failure (GOAL_NOT_REACHED, CONTRACT_ERROR, ...)
        """
        signer = self._resolve_signer(signer)
        return self.orchestrator.submit(OperationIntent.call("claim"), public_key, signer)

    def start_listening(self, callback: Optional[EventCallback] = None) -> None:
        """Start delivering donation events to ``callback``"""
        self.tailer.start(callback)

    def stop_listening(self) -> None:
        self.tailer.stop()

    @property
    def listening(self) -> bool:
        return self.tailer.listening

    @property
    def events(self) -> List[DonationEvent]:
        """Most recent donations, newest first"""
        return self.tailer.events

    def fund_with_friendbot(self, public_key: str) -> dict:
        """
        Fund a test account through Friendbot.

        Raises:
            NetworkError: If no Friendbot is configured or funding fails
        """
        if not self.friendbot_url:
            raise NetworkError("No Friendbot available on this network")
        return fund_account(public_key, self.friendbot_url, timeout=self.timeout)

    def tx_url(self, tx_hash: str) -> str:
        """
        Get the block explorer URL for a transaction

        Args:
            tx_hash: Transaction hash

        Returns:
            Explorer URL for the transaction
        """
        base = (self.explorer_url or "https://stellar.expert/explorer/testnet").rstrip("/")
        return f"{base}/tx/{tx_hash}"
