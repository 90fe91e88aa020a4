"""
Presentation helpers for the Banker's Algorithm Resource Allocator.

Turns system state and structured trace events into terminal text.
"""

from typing import Iterable, List

from models.system_state import SystemState
from analysis.events import EventKind, Rejection, RequestOutcome, TraceEvent


SAFETY_BEGIN = "--- [safety check begin] ---"
SAFETY_END = "--- [safety check end] ---"

_REJECTION_TEXT = {
    Rejection.INVALID_PROCESS_ID: "invalid process id",
    Rejection.DIMENSION_MISMATCH: "invalid request: wrong number of resource types",
    Rejection.NEGATIVE_REQUEST: "invalid request: negative amount",
    Rejection.EXCEEDS_NEED: "request exceeds Need",
    Rejection.EXCEEDS_AVAILABLE: "request exceeds Available - process must wait",
    Rejection.UNSAFE_AFTER_ALLOCATION: "allocation would leave the system unsafe",
}


def _pids(indices: Iterable[int], sep: str) -> str:
    return sep.join(f"P{i}" for i in indices)


def render_state(system_state: SystemState) -> str:
    """
    Generate readable string representation of system state.

    Returns:
        Formatted string showing totals and all matrices
    """
    m = system_state.num_resources
    output = []
    output.append("\n" + "="*60)
    output.append("SYSTEM STATE")
    output.append("="*60)
    output.append(f"Resource types m={m}, processes n={system_state.num_processes}")
    output.append(f"Total     = {system_state.total.tolist()}")
    output.append(f"Available = {system_state.available.tolist()}")

    header = "      " + " ".join(f"R{j:<3}" for j in range(m))
    for title, matrix in (
        ("Max", system_state.maximum),
        ("Allocation", system_state.allocation),
        ("Need (Max - Allocation)", system_state.need),
    ):
        output.append(f"\n{title}:")
        output.append(header)
        for i, row in enumerate(matrix):
            output.append(f"  P{i:<3}" + " ".join(f"{value:<4}" for value in row))

    output.append("="*60)
    return "\n".join(output)


def render_event(event: TraceEvent) -> str:
    """Format one trace event as a single line."""
    kind = event.kind
    pid = event.process_id

    if kind == EventKind.SAFETY_START:
        return f"Initial Work = {event.work_before}"
    if kind == EventKind.PROCESS_FINISHED:
        return (
            f"P{pid} can finish: Need={event.need} <= Work={event.work_before}, "
            f"releases Allocation={event.allocation} -> Work={event.work_after}"
        )
    if kind == EventKind.SAFE:
        return f"System is SAFE. Safe sequence: {_pids(event.order, ' -> ')}"
    if kind == EventKind.UNSAFE:
        return f"System is UNSAFE. Unfinished processes: {_pids(event.remaining, ', ')}"
    if kind == EventKind.REQUEST_RECEIVED:
        return f"Request received: P{pid} requests {event.request}"
    if kind == EventKind.REQUEST_REJECTED:
        text = f"DENIED: {_REJECTION_TEXT[event.reason]}"
        if event.reason == Rejection.INVALID_PROCESS_ID:
            return f"{text} P{pid}"
        if event.limit is not None:
            limit_name = "Need" if event.reason == Rejection.EXCEEDS_NEED else "Available"
            return f"{text}. {limit_name}={event.limit}, Req={event.request}"
        return f"{text} {event.request}"
    if kind == EventKind.TENTATIVE_ALLOCATION:
        return (
            f"Checks passed, tentatively allocating: Available={event.available}, "
            f"Allocation[P{pid}]={event.allocation}, Need[P{pid}]={event.need}"
        )
    if kind == EventKind.REQUEST_GRANTED:
        return f"GRANTED: system remains safe after allocating {event.request} to P{pid}"
    if kind == EventKind.ROLLED_BACK:
        return (
            f"DENIED and rolled back: {_REJECTION_TEXT[event.reason]}. "
            f"Allocation[P{pid}]={event.allocation} restored"
        )
    return f"{kind.value}"


def render_trace(events: List[TraceEvent]) -> str:
    """
    Format a full trace, one event per line.

    Safety-check events nested inside a request trace are wrapped in
    begin/end markers.
    """
    nested = any(e.kind == EventKind.REQUEST_RECEIVED for e in events)
    lines = []
    for event in events:
        if nested and event.kind == EventKind.SAFETY_START:
            lines.append(SAFETY_BEGIN)
        lines.append(render_event(event))
        if nested and event.kind in (EventKind.SAFE, EventKind.UNSAFE):
            lines.append(SAFETY_END)
    return "\n".join(lines)


def render_outcome(outcome: RequestOutcome) -> str:
    """Format a request trace followed by the final decision."""
    if outcome.granted:
        status = "Result: GRANTED"
    else:
        status = f"Result: DENIED ({outcome.reason.value})"
    return render_trace(outcome.trace) + "\n" + status
