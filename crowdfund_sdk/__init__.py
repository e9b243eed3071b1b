"""
Crowdfund SDK - transaction orchestration and event tailing for a Soroban
crowdfunding contract.
"""
from .client import CrowdfundClient
from .config import NetworkConfig, NetworkSettings
from .events import EventTailer
from .exceptions import (
    CampaignEndedError, ContractError, CrowdfundError, ErrorKind, GoalNotReachedError,
    InsufficientBalanceError, NetworkError, TransactionRejectedError, WalletNotFoundError,
)
from .ledger import LedgerClient
from .models import CampaignSnapshot, DonationEvent, OperationIntent, SubmitOutcome
from .orchestrator import TransactionOrchestrator
from .signer import LocalSigner, Signer
from .version import __version__

__all__ = [
    "CrowdfundClient",
    "TransactionOrchestrator",
    "EventTailer",
    "LedgerClient",
    "Signer",
    "LocalSigner",
    "NetworkConfig",
    "NetworkSettings",
    "OperationIntent",
    "CampaignSnapshot",
    "DonationEvent",
    "SubmitOutcome",
    "ErrorKind",
    "CrowdfundError",
    "WalletNotFoundError",
    "TransactionRejectedError",
    "InsufficientBalanceError",
    "CampaignEndedError",
    "GoalNotReachedError",
    "NetworkError",
    "ContractError",
    "__version__",
]
