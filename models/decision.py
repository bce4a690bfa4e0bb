"""
Decision types returned by the Banker's Allocator.

Represents the result of a safety check and of a resource request.
"""

from dataclasses import dataclass, field
from typing import List
from enum import Enum


class RequestStatus(Enum):
    """Possible outcomes of a resource request."""
    GRANTED = "GRANTED"
    EXCEEDS_NEED = "EXCEEDS_NEED"
    MUST_WAIT = "MUST_WAIT"
    DENIED_UNSAFE = "DENIED_UNSAFE"


@dataclass
class SafetyResult:
    """
    Result of running the safety algorithm.

    Attributes:
        safe: True if every process can finish from the checked state
        sequence: Completion order found. When unsafe this is only the
            prefix of processes that could still finish.
    """
    safe: bool
    sequence: List[int] = field(default_factory=list)

    def __str__(self) -> str:
        seq_str = " -> ".join(f"P{pid}" for pid in self.sequence) or "none"
        label = "SAFE" if self.safe else "UNSAFE"
        return f"{label} (sequence: {seq_str})"


@dataclass
class RequestOutcome:
    """
    Result of a single request.

    Attributes:
        pid: Requesting process
        request: Requested units per resource type
        status: Decision taken
        sequence: Safe sequence on GRANTED, partial prefix on DENIED_UNSAFE,
            empty otherwise
        reason: Human-readable explanation for logs
    """
    pid: int
    request: List[int]
    status: RequestStatus
    sequence: List[int] = field(default_factory=list)
    reason: str = ""

    @property
    def granted(self) -> bool:
        """True only when the request was committed."""
        return self.status is RequestStatus.GRANTED

    @property
    def should_retry(self) -> bool:
        """True for outcomes that may succeed later without a new request."""
        return self.status in (RequestStatus.MUST_WAIT, RequestStatus.DENIED_UNSAFE)
