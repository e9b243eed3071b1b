"""
Exceptions for the Crowdfund SDK.

Every public operation fails with a ``CrowdfundError`` whose ``kind`` is one
of the seven ``ErrorKind`` members. Callers can branch on ``kind`` or catch
the per-kind subclasses directly.
"""
from enum import Enum
from typing import Dict, Optional, Type

import requests


class ErrorKind(str, Enum):
    """Closed set of failure categories surfaced to callers."""
    WALLET_NOT_FOUND = "WALLET_NOT_FOUND"
    TRANSACTION_REJECTED = "TRANSACTION_REJECTED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    CAMPAIGN_ENDED = "CAMPAIGN_ENDED"
    GOAL_NOT_REACHED = "GOAL_NOT_REACHED"
    NETWORK_ERROR = "NETWORK_ERROR"
    CONTRACT_ERROR = "CONTRACT_ERROR"


class CrowdfundError(Exception):
    """
    Base exception for all Crowdfund SDK errors.

    Attributes:
        kind: The taxonomy kind of this failure
        message: Human-readable, actionable message
        details: Optional raw diagnostic from the lower layer
    """
    kind: ErrorKind = ErrorKind.CONTRACT_ERROR

    def __init__(self, message: str, details: Optional[str] = None, kind: Optional[ErrorKind] = None):
        if kind is not None:
            self.kind = ErrorKind(kind)
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r}, details={self.details!r})"

    @classmethod
    def for_kind(cls, kind: ErrorKind, message: str, details: Optional[str] = None) -> "CrowdfundError":
        """
        Create the exception subclass registered for ``kind``.

        Args:
            kind: Taxonomy kind
            message: Human-readable message
            details: Optional raw diagnostic

        Returns:
            An instance of the matching subclass
        """
        error_cls = _ERRORS_BY_KIND.get(ErrorKind(kind), CrowdfundError)
        return error_cls(message, details=details)


class WalletNotFoundError(CrowdfundError):
    """Raised when no signer is available for a write operation."""
    kind = ErrorKind.WALLET_NOT_FOUND


class TransactionRejectedError(CrowdfundError):
    """Raised when the signer refuses or fails to sign."""
    kind = ErrorKind.TRANSACTION_REJECTED


class InsufficientBalanceError(CrowdfundError):
    """Raised when the account is unfunded or short on balance."""
    kind = ErrorKind.INSUFFICIENT_BALANCE


class CampaignEndedError(CrowdfundError):
    """Raised when the campaign deadline has passed."""
    kind = ErrorKind.CAMPAIGN_ENDED


class GoalNotReachedError(CrowdfundError):
    """Raised when claiming before the funding goal is met."""
    kind = ErrorKind.GOAL_NOT_REACHED


class NetworkError(CrowdfundError):
    """Raised when the network is unreachable or busy, or confirmation timed out."""
    kind = ErrorKind.NETWORK_ERROR


class ContractError(CrowdfundError):
    """Raised for contract failures and anything not otherwise classified."""
    kind = ErrorKind.CONTRACT_ERROR


_ERRORS_BY_KIND: Dict[ErrorKind, Type[CrowdfundError]] = {
    error_cls.kind: error_cls
    for error_cls in (
        WalletNotFoundError,
        TransactionRejectedError,
        InsufficientBalanceError,
        CampaignEndedError,
        GoalNotReachedError,
        NetworkError,
        ContractError,
    )
}


def classify_exception(exc: BaseException, message: Optional[str] = None) -> CrowdfundError:
    """
    Map an arbitrary lower-level exception into the taxonomy.

    Connectivity and timeout faults become NETWORK_ERROR, everything else
    becomes CONTRACT_ERROR. A ``CrowdfundError`` is returned unchanged.

    Args:
        exc: The exception to classify
        message: Optional message to use instead of the exception text

    Returns:
        A CrowdfundError instance (not raised)
    """
    if isinstance(exc, CrowdfundError):
        return exc

    # Imported here to keep ledger -> exceptions a one-way dependency
    from .ledger import LedgerConnectionError

    detail = str(exc) or type(exc).__name__
    if isinstance(exc, (LedgerConnectionError, requests.RequestException, ConnectionError, TimeoutError)):
        return NetworkError(message or "Cannot reach Stellar network", details=detail)
    return ContractError(message or detail, details=detail)
