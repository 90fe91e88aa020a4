"""
Deadlock Avoidance Algorithm (Banker's Algorithm) for the Resource Allocator.

Implements the safety check and the transactional request processor that
keeps the system out of unsafe states.
"""

import numpy as np
from typing import List, Sequence, Tuple

from models.system_state import SystemState
from analysis.events import EventKind, Rejection, RequestOutcome, TraceEvent
from algorithms.vectors import add, leq, sub


def check_safety(system_state: SystemState) -> Tuple[bool, List[int], List[TraceEvent]]:
    """
    Check if the system is in a safe state using Banker's Algorithm.

    Algorithm:
    1. Initialize Work = Available, Finish = [False] * num_processes
    2. Scan processes in index order; for each unfinished i with Need[i] <= Work,
       set Finish[i] = True, Work += Allocation[i] and append i to the sequence.
       Work is updated immediately, so a later index in the same pass can
       finish thanks to an earlier release.
    3. Repeat passes until a pass finishes nobody (at most num_processes passes)
    4. SAFE if every process finished, otherwise UNSAFE

    Time Complexity: O(P²×R)

    Args:
        system_state: Current system state (never modified)

    Returns:
        Tuple of (is_safe, completion order, trace events).
        When unsafe, the order lists only the processes that could finish.

    References:
        Silberschatz, A., Galvin, P. B., & Gagne, G. (2018).
        Operating System Concepts (10th ed.). Chapter 7.5: Deadlock Avoidance.
    """
    with system_state.lock:
        num_processes = system_state.num_processes

        # Work = copy of Available (prevents modification of original)
        work = system_state.available.copy()
        finish = np.zeros(num_processes, dtype=bool)
        safe_sequence = []
        trace = [TraceEvent(EventKind.SAFETY_START, work_before=work.tolist())]

        for _ in range(num_processes):
            made_progress = False

            for i in range(num_processes):
                if finish[i]:
                    continue

                need = system_state.need[i]
                if not leq(need, work):
                    continue

                # Process can finish: release its allocation into work
                work_before = work
                work = add(work, system_state.allocation[i])
                finish[i] = True
                safe_sequence.append(i)
                made_progress = True

                trace.append(TraceEvent(
                    EventKind.PROCESS_FINISHED,
                    process_id=i,
                    work_before=work_before.tolist(),
                    work_after=work.tolist(),
                    need=need.tolist(),
                    allocation=system_state.allocation[i].tolist()
                ))

            if not made_progress:
                break

        is_safe = bool(finish.all())
        if is_safe:
            trace.append(TraceEvent(EventKind.SAFE, order=list(safe_sequence)))
        else:
            remaining = [i for i in range(num_processes) if not finish[i]]
            trace.append(TraceEvent(
                EventKind.UNSAFE,
                order=list(safe_sequence),
                remaining=remaining
            ))

        return is_safe, safe_sequence, trace


def request(system_state: SystemState, pid: int, req: Sequence[int]) -> RequestOutcome:
    """
    Handle resource request using Banker's Algorithm.

    Steps:
    1. Validate: pid in range, len(req) == R, req >= 0
    2. Validate: req <= Need[pid] (otherwise the process exceeded its maximum)
    3. Check: req <= Available (otherwise the process has to wait)
    4. Tentatively allocate resources
    5. Run safety algorithm on new state
    6. If safe: commit allocation
       If unsafe: roll back to the exact pre-request vectors

    The whole sequence holds the state lock, so concurrent callers never
    observe a tentative allocation.

    Args:
        system_state: Current system state
        pid: Index of the requesting process
        req: Requested instances per resource type

    Returns:
        RequestOutcome with the decision, rejection reason and trace
    """
    requested = list(req)
    trace = [TraceEvent(EventKind.REQUEST_RECEIVED, process_id=pid, request=requested)]

    def reject(reason: Rejection, limit=None) -> RequestOutcome:
        trace.append(TraceEvent(
            EventKind.REQUEST_REJECTED,
            process_id=pid,
            request=requested,
            limit=limit,
            reason=reason
        ))
        return RequestOutcome(granted=False, reason=reason, trace=trace)

    with system_state.lock:
        # Step 1: Structural validation
        if not 0 <= pid < system_state.num_processes:
            return reject(Rejection.INVALID_PROCESS_ID)
        if len(requested) != system_state.num_resources:
            return reject(Rejection.DIMENSION_MISMATCH)
        if any(amount < 0 for amount in requested):
            return reject(Rejection.NEGATIVE_REQUEST)

        # Step 2: Request must not exceed Need = Max - Allocation
        # Compared as Python ints, before numpy conversion
        if not all(amount <= need for amount, need in zip(requested, system_state.need[pid].tolist())):
            return reject(Rejection.EXCEEDS_NEED, system_state.need[pid].tolist())

        req_vector = np.array(requested, dtype=int)

        # Step 3: Resources must be free right now
        if not leq(req_vector, system_state.available):
            return reject(Rejection.EXCEEDS_AVAILABLE, system_state.available.tolist())

        # Step 4: Tentatively allocate, saving the original vectors for rollback
        saved = system_state.snapshot(pid)
        try:
            system_state.available = sub(system_state.available, req_vector)
            system_state.allocation[pid] = add(system_state.allocation[pid], req_vector)
            system_state.need[pid] = sub(system_state.need[pid], req_vector)
            trace.append(TraceEvent(
                EventKind.TENTATIVE_ALLOCATION,
                process_id=pid,
                request=requested,
                available=system_state.available.tolist(),
                allocation=system_state.allocation[pid].tolist(),
                need=system_state.need[pid].tolist()
            ))

            # Step 5: Run safety algorithm
            is_safe, safe_sequence, safety_trace = check_safety(system_state)
            trace.extend(safety_trace)

            if is_safe:
                system_state.assert_invariants(f"after granting {requested} to P{pid}")
        except Exception:
            system_state.restore(saved)
            raise

        # Step 6: Commit or roll back
        if is_safe:
            trace.append(TraceEvent(
                EventKind.REQUEST_GRANTED,
                process_id=pid,
                request=requested,
                order=list(safe_sequence)
            ))
            return RequestOutcome(granted=True, trace=trace)

        system_state.restore(saved)
        trace.append(TraceEvent(
            EventKind.ROLLED_BACK,
            process_id=pid,
            request=requested,
            allocation=system_state.allocation[pid].tolist(),
            need=system_state.need[pid].tolist(),
            reason=Rejection.UNSAFE_AFTER_ALLOCATION
        ))
        return RequestOutcome(
            granted=False,
            reason=Rejection.UNSAFE_AFTER_ALLOCATION,
            trace=trace
        )
