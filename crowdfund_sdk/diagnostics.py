"""
Diagnostic classification - maps free-text ledger failures to ErrorKind.

The contract reports failures as panic strings with no structured error
code, so the mapping is substring based and best-effort. Each function is
pure: diagnostic in, unraised CrowdfundError out. Unknown diagnostics fall
through to CONTRACT_ERROR carrying the raw text rather than being dropped.
"""
from typing import Optional, Sequence, Tuple

from .exceptions import (
    CampaignEndedError, ContractError, CrowdfundError, GoalNotReachedError,
    InsufficientBalanceError, NetworkError, TransactionRejectedError,
)

# Ordered: first match wins
SIMULATION_PATTERNS: Tuple[Tuple[Tuple[str, ...], type, str], ...] = (
    (("campaign has ended", "deadline"), CampaignEndedError,
     "Campaign has ended. No more donations are accepted."),
    (("goal not reached",), GoalNotReachedError,
     "Funding goal was not reached. Cannot claim."),
    (("already claimed",), ContractError,
     "Funds have already been claimed."),
)

USER_REJECTION_PHRASES: Tuple[str, ...] = ("declined", "rejected", "cancel", "denied")

BALANCE_PHRASES: Tuple[str, ...] = ("balance", "insufficient")


def _contains_any(text: str, needles: Sequence[str]) -> bool:
    return any(needle in text for needle in needles)


def classify_simulation_error(diagnostic: Optional[str]) -> CrowdfundError:
    """
    Classify a failed simulation diagnostic.

    Args:
        diagnostic: Raw error string from the simulation response

    Returns:
        CAMPAIGN_ENDED, GOAL_NOT_REACHED or CONTRACT_ERROR as an exception
    """
    text = diagnostic or "Simulation failed"
    for needles, error_cls, message in SIMULATION_PATTERNS:
        if _contains_any(text, needles):
            return error_cls(message, details=text)
    return ContractError(text, details=text)


def is_user_rejection(message: Optional[str]) -> bool:
    """Return True if a signer failure message reads as an explicit user refusal."""
    return _contains_any((message or "").lower(), USER_REJECTION_PHRASES)


def classify_signer_error(message: Optional[str]) -> TransactionRejectedError:
    """
    Classify a signer failure.

    Every signer failure is TRANSACTION_REJECTED. An explicit refusal gets the
    friendly message; any other failure keeps its own text. The original
    message is always preserved in ``details``.
    """
    if is_user_rejection(message):
        return TransactionRejectedError("You rejected the transaction in your wallet.", details=message)
    return TransactionRejectedError(message or "Wallet signing failed", details=message)


def classify_confirmation_failure(detail: Optional[str]) -> CrowdfundError:
    """
    Classify a transaction that was included on-chain but failed.

    Args:
        detail: Result detail reported by the ledger

    Returns:
        INSUFFICIENT_BALANCE or CONTRACT_ERROR as an exception
    """
    text = detail or ""
    if _contains_any(text.lower(), BALANCE_PHRASES):
        return InsufficientBalanceError(
            "Insufficient balance to complete this transaction.", details=text or None
        )
    return ContractError(
        "Transaction failed on-chain. Check your balance and try again.", details=text or None
    )


def confirmation_timeout(tx_hash: str, explorer_url: Optional[str] = None) -> NetworkError:
    """Build the soft warning returned when confirmation polling runs out."""
    where = explorer_url or "a block explorer"
    return NetworkError(
        f"Transaction submitted but confirmation timed out. Check {where} for status.",
        details=tx_hash,
    )
