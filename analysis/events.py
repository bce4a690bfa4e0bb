"""
Event Model for the Banker's Allocator simulator.

Defines event types for tracking allocator decisions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class EventType(Enum):
    """Types of events in the simulation."""
    SAFETY_CHECK = "safety_check"
    ALLOCATION = "allocation"
    WAIT = "wait"
    DENIAL = "denial"
    REJECTION = "rejection"
    RELINQUISH = "relinquish"
    RELEASE = "release"


@dataclass
class SimulationEvent:
    """
    Represents a single event in the simulation.

    Attributes:
        step: Index of the scenario event being applied
        event_type: Type of event
        process_id: PID involved in event (-1 for system-wide events)
        vector: Requested or returned units (if applicable)
        sequence: Safe sequence or partial prefix (if applicable)
        reason: Reason for the decision (if applicable)
        retry: True when the event comes from retrying a pending request
        safe: Result of a safety check (SAFETY_CHECK events only)
    """
    step: int
    event_type: EventType
    process_id: int
    vector: Optional[List[int]] = None
    sequence: Optional[List[int]] = None
    reason: str = ""
    retry: bool = False
    safe: Optional[bool] = None

    def __str__(self) -> str:
        """Format event for logging."""
        if self.event_type == EventType.SAFETY_CHECK:
            label = "SAFE" if self.safe else "UNSAFE"
            return f"Step {self.step}: safety check - {label} (sequence: {self.sequence})"

        base = f"Step {self.step}: P{self.process_id}"
        if self.event_type == EventType.ALLOCATION:
            return f"{base} requests {self.vector} - GRANTED ({self.reason})"
        elif self.event_type in (EventType.WAIT, EventType.DENIAL, EventType.REJECTION):
            return f"{base} requests {self.vector} - {self.event_type.name} ({self.reason})"
        elif self.event_type == EventType.RELINQUISH:
            return f"{base} relinquishes {self.vector}"
        elif self.event_type == EventType.RELEASE:
            return f"{base} - TERMINATED (released {self.vector})"
        else:
            return f"{base} - {self.event_type.value}: {self.reason}"


@dataclass
class EventLog:
    """Collection of simulation events."""
    events: list = None

    def __post_init__(self):
        if self.events is None:
            self.events = []

    def add(self, event: SimulationEvent) -> None:
        """Add an event to the log."""
        self.events.append(event)

    def get_events_by_type(self, event_type: EventType) -> list:
        """Get all events of a specific type."""
        return [e for e in self.events if e.event_type == event_type]

    def display(self) -> str:
        """Format all events for display."""
        return "\n".join(str(event) for event in self.events)
