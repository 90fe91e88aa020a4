"""
Trace Event Model for the Banker's Algorithm Resource Allocator.

Defines the structured events emitted by the safety check and the request
processor, and the result types returned to callers. Rendering these into
text is left to utils.presentation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class EventKind(Enum):
    """Kinds of state transitions recorded in a trace."""
    SAFETY_START = "SAFETY_START"
    PROCESS_FINISHED = "PROCESS_FINISHED"
    SAFE = "SAFE"
    UNSAFE = "UNSAFE"
    REQUEST_RECEIVED = "REQUEST_RECEIVED"
    REQUEST_REJECTED = "REQUEST_REJECTED"
    TENTATIVE_ALLOCATION = "TENTATIVE_ALLOCATION"
    REQUEST_GRANTED = "REQUEST_GRANTED"
    ROLLED_BACK = "ROLLED_BACK"


class Rejection(Enum):
    """Reasons a request is not granted. None of them change the state."""
    INVALID_PROCESS_ID = "INVALID_PROCESS_ID"
    DIMENSION_MISMATCH = "DIMENSION_MISMATCH"
    NEGATIVE_REQUEST = "NEGATIVE_REQUEST"
    EXCEEDS_NEED = "EXCEEDS_NEED"
    EXCEEDS_AVAILABLE = "EXCEEDS_AVAILABLE"
    UNSAFE_AFTER_ALLOCATION = "UNSAFE_AFTER_ALLOCATION"


@dataclass(frozen=True)
class TraceEvent:
    """
    A single step recorded by the safety check or the request processor.

    Attributes:
        kind: Type of transition
        process_id: Process index involved (if applicable)
        work_before: Work vector before a process was marked finished
        work_after: Work vector after its allocation was released
        available: Available vector after a tentative allocation
        need: Need vector of the process at the time of the event
        allocation: Allocation vector of the process at the time of the event
        request: Requested vector (request events only)
        limit: Vector the request was checked against (need or available)
        order: Completion order found so far (SAFE/UNSAFE)
        remaining: Process indices that could not finish (UNSAFE)
        reason: Rejection reason (REQUEST_REJECTED/ROLLED_BACK)
    """
    kind: EventKind
    process_id: Optional[int] = None
    work_before: Optional[List[int]] = None
    work_after: Optional[List[int]] = None
    available: Optional[List[int]] = None
    need: Optional[List[int]] = None
    allocation: Optional[List[int]] = None
    request: Optional[List[int]] = None
    limit: Optional[List[int]] = None
    order: Optional[List[int]] = None
    remaining: Optional[List[int]] = None
    reason: Optional[Rejection] = None


@dataclass
class RequestOutcome:
    """
    Result of a resource request.

    Attributes:
        granted: True if the allocation was committed
        reason: Rejection reason when not granted
        trace: Events recorded while handling the request, safety check included
    """
    granted: bool
    reason: Optional[Rejection] = None
    trace: List[TraceEvent] = field(default_factory=list)

    def events_of(self, kind: EventKind) -> List[TraceEvent]:
        """Get all trace events of a specific kind."""
        return [e for e in self.trace if e.kind == kind]
