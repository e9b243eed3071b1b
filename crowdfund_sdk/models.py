"""
Data models for the Crowdfund SDK.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import CrowdfundError

WIRE_TYPES = ("address", "i128", "u64", "symbol", "string", "bool")


@dataclass(frozen=True)
class IntentArg:
    """A single contract call argument tagged with its wire type."""
    value: Any
    wire_type: str

    def __post_init__(self):
        if self.wire_type not in WIRE_TYPES:
            raise ValueError(f"Unsupported wire type: {self.wire_type}")


@dataclass(frozen=True)
class OperationIntent:
    """A named contract call plus its typed arguments."""
    function_name: str
    args: Tuple[IntentArg, ...] = ()

    @classmethod
    def call(cls, function_name: str, *args: Tuple[Any, str]) -> "OperationIntent":
        """
        Convenience constructor taking ``(value, wire_type)`` pairs.

        Example:
            OperationIntent.call("donate", (donor, "address"), (100, "i128"))
        """
        return cls(function_name, tuple(IntentArg(value, wire_type) for value, wire_type in args))


@dataclass(frozen=True)
class SimulationResult:
    """
    Outcome of a dry-run.

    ``footprint`` is whatever the ledger client needs to assemble the final
    transaction; the orchestrator never looks inside it.
    """
    error: Optional[str] = None
    return_value: Any = None
    footprint: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SubmissionStatus(str, Enum):
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    TRY_AGAIN_LATER = "TRY_AGAIN_LATER"


@dataclass(frozen=True)
class SubmissionResult:
    status: SubmissionStatus
    tx_hash: str = ""
    error_detail: Optional[str] = None


class ConfirmationStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    NOT_FOUND = "NOT_FOUND"
    TIMED_OUT = "TIMED_OUT"


@dataclass(frozen=True)
class ConfirmationResult:
    status: ConfirmationStatus
    detail: Optional[str] = None


@dataclass(frozen=True)
class RawEvent:
    """A contract event as returned by the ledger, topics and value still encoded."""
    id: str
    ledger: int
    topics: Tuple[Any, ...] = ()
    value: Any = None
    tx_hash: Optional[str] = None


@dataclass(frozen=True)
class SubmitOutcome:
    """
    Result of a submitted transaction.

    ``warning`` is set when the transaction was accepted but its confirmation
    could not be observed; ``tx_hash`` is still the operation's outcome.
    """
    tx_hash: str
    warning: Optional[CrowdfundError] = field(default=None, compare=False)

    @property
    def confirmed(self) -> bool:
        return self.warning is None


class CampaignSnapshot(BaseModel):
    """Campaign state as read from the contract"""
    model_config = ConfigDict(frozen=True)

    owner: str = ""
    token: str = ""
    goal: int = 0
    deadline: int = 0
    total_raised: int = 0
    claimed: bool = False

    @classmethod
    def from_native(cls, raw: Optional[Dict[str, Any]]) -> "CampaignSnapshot":
        """
        Build a snapshot from a decoded ``get_campaign`` return value.

        Missing numeric fields default to 0 and missing identities to "".
        """
        raw = raw or {}
        return cls(
            owner=str(raw.get("owner") or ""),
            token=str(raw.get("token") or ""),
            goal=int(raw.get("goal") or 0),
            deadline=int(raw.get("deadline") or 0),
            total_raised=int(raw.get("total_raised") or 0),
            claimed=bool(raw.get("claimed")),
        )

    @property
    def progress_percent(self) -> int:
        if self.goal <= 0:
            return 0
        return min(100, round(self.total_raised * 100 / self.goal))

    @property
    def goal_reached(self) -> bool:
        return self.total_raised >= self.goal

    def is_expired(self, now: Optional[float] = None) -> bool:
        """True once ``now`` (epoch seconds, default wall clock) is past the deadline."""
        now = time.time() if now is None else now
        return now > self.deadline


class DonationEvent(BaseModel):
    """A donation observed on the contract event stream"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    donor: str
    amount: int
    timestamp: int = Field(..., description="Wall-clock milliseconds when the event was processed")
    tx_hash: str = Field(..., alias="txHash")
