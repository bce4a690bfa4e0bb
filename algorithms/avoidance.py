"""
Deadlock Avoidance Algorithm (Banker's Algorithm) for the Allocator.

Implements the safety check and the request/rollback protocol that keeps the
system out of unsafe states.
"""

import numpy as np
from typing import Dict, List, Sequence

from models.allocator_state import AllocatorState
from models.decision import RequestOutcome, RequestStatus, SafetyResult


def find_safe_sequence(state: AllocatorState) -> SafetyResult:
    """
    Check if the system is in a safe state using Banker's Algorithm.

    Algorithm:
    1. Initialize Work = Available, Finish = [False] * num_processes
    2. Scan processes in PID order; for each i with Finish[i] == False and
       Need[i] <= Work: Work += Allocation[i], Finish[i] = True, append i
    3. Repeat full passes until all processes finish (SAFE) or a pass
       finishes nobody (UNSAFE)

    Terminates within num_processes passes. Does not modify the state.

    Time Complexity: O(P²×R)

    Args:
        state: Allocator state to check

    Returns:
        SafetyResult with the completion order (partial prefix if unsafe)

    References:
        Silberschatz, A., Galvin, P. B., & Gagne, G. (2018).
        Operating System Concepts (10th ed.). Chapter 7.5: Deadlock Avoidance.
    """
    with state.lock:
        # Work = copy of Available (prevents modification of original)
        work = state.available_vector.copy()
        finish = np.zeros(state.num_processes, dtype=bool)
        safe_sequence = []

        made_progress = True
        while made_progress and not finish.all():
            made_progress = False

            # One full pass; a process finished mid-pass frees resources
            # for the higher PIDs later in the same pass
            for i in range(state.num_processes):
                if finish[i]:
                    continue

                if np.all(state.need_matrix[i] <= work):
                    work += state.allocation_matrix[i]
                    finish[i] = True
                    safe_sequence.append(i)
                    made_progress = True

        return SafetyResult(safe=bool(finish.all()), sequence=safe_sequence)


def handle_request(
    state: AllocatorState,
    pid: int,
    request: Sequence[int]
) -> RequestOutcome:
    """
    Handle a resource request using Banker's Algorithm.

    Steps:
    1. Validate: request <= need for every resource type (else EXCEEDS_NEED)
    2. Check: request <= available for every resource type (else MUST_WAIT)
    3. Tentatively allocate resources
    4. Run safety algorithm on new state
    5. If safe: commit (GRANTED)
       If unsafe: rollback exactly (DENIED_UNSAFE)

    Both checks look at the whole vector before deciding, so a request that
    exceeds its need on one type and the availability on another is always
    reported as EXCEEDS_NEED.

    Args:
        state: Allocator state
        pid: Requesting process
        request: Units requested per resource type

    Returns:
        RequestOutcome describing the decision

    Raises:
        InvalidRequestError: If pid or the request vector is malformed
    """
    with state.lock:
        pid = state.validate_pid(pid)
        req = state.as_request_vector(request)
        req_list = [int(x) for x in req]

        # Step 1: Validate request doesn't exceed need
        need = state.need_matrix[pid]
        if np.any(req > need):
            return RequestOutcome(
                pid, req_list, RequestStatus.EXCEEDS_NEED,
                reason=f"Request exceeds declared need (requested: {req_list}, need: {list(map(int, need))})"
            )

        # Step 2: Check if resources are available
        available = state.available_vector
        if np.any(req > available):
            return RequestOutcome(
                pid, req_list, RequestStatus.MUST_WAIT,
                reason=f"Insufficient resources (requested: {req_list}, available: {list(map(int, available))}) - must wait"
            )

        # Step 3: Tentatively allocate resources
        state.allocation_matrix[pid] += req
        state.available_vector -= req
        state.need_matrix[pid] -= req

        # Step 4: Run safety algorithm
        result = find_safe_sequence(state)

        # Step 5: Decide whether to commit or rollback
        if result.safe:
            state.assert_invariants(f"after granting {req_list} to P{pid}")

            seq_str = " -> ".join(f"P{p}" for p in result.sequence)
            return RequestOutcome(
                pid, req_list, RequestStatus.GRANTED, result.sequence,
                reason=f"GRANTED (Safe state maintained, sequence: {seq_str})"
            )

        state.allocation_matrix[pid] -= req
        state.available_vector += req
        state.need_matrix[pid] += req

        return RequestOutcome(
            pid, req_list, RequestStatus.DENIED_UNSAFE, result.sequence,
            reason="DENIED (Unsafe state detected) - allocation rolled back"
        )


def retry_pending_requests(
    state: AllocatorState,
    pending: Dict[int, List[int]]
) -> List[RequestOutcome]:
    """
    Retry requests that previously had to wait or were denied as unsafe.

    The pending map is owned by the caller; the allocator keeps no queue.
    Requests are retried in PID order for deterministic execution. Entries
    that were granted, now exceed the process's need, or belong to a
    terminated process are removed from the map.

    Args:
        state: Allocator state
        pending: Mapping of PID to requested vector (modified in place)

    Returns:
        Outcome of every retry attempted
    """
    results = []

    with state.lock:
        for pid in sorted(pending):
            if pid in state.terminated:
                del pending[pid]
                continue

            outcome = handle_request(state, pid, pending[pid])
            results.append(outcome)

            if not outcome.should_retry:
                del pending[pid]

    return results
