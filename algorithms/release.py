"""
Resource release operations for the Banker's Allocator.

Two distinct operations return resources to the Available pool:
- release_process: the process terminates, giving up its holdings AND its
  remaining claim
- relinquish_resources: a live process hands back part of its holdings and
  keeps its claim up to Max
"""

import numpy as np
from typing import List, Sequence

from models.allocator_state import AllocatorState
from models.errors import InvalidRequestError


def release_process(state: AllocatorState, pid: int) -> List[int]:
    """
    Terminate a process and release all its resources.

    Process termination:
    - Return every held instance to Available
    - Clear allocation and need vectors (no further claim)
    - Mark the PID as terminated

    Idempotent: releasing an already terminated process returns zeros.

    Args:
        state: Allocator state
        pid: Process ID to terminate

    Returns:
        Units returned per resource type

    Raises:
        InvalidRequestError: If pid is not a process of this state
    """
    with state.lock:
        pid = state.validate_pid(pid)

        # Record resource counts before clearing
        resources_held = state.allocation_matrix[pid].copy()

        state.available_vector += resources_held
        state.allocation_matrix[pid] = 0
        state.need_matrix[pid] = 0
        state.terminated.add(pid)

        # SANITY CHECK: Verify resource conservation after termination
        state.assert_invariants(f"after terminating P{pid}")

        return [int(x) for x in resources_held]


def relinquish_resources(
    state: AllocatorState,
    pid: int,
    amounts: Sequence[int]
) -> List[int]:
    """
    Give back part of a live process's holdings.

    The process keeps running, so its Need grows by the same amounts and
    Allocation + Need == Max still holds. Returning resources can never turn
    a safe state unsafe, so no safety check is run.

    Args:
        state: Allocator state
        pid: Process returning resources
        amounts: Units returned per resource type

    Returns:
        Available vector after the release

    Raises:
        InvalidRequestError: If pid is invalid or terminated, or amounts
            exceed the current allocation
    """
    with state.lock:
        pid = state.validate_pid(pid)
        amounts = state.as_request_vector(amounts, "amounts")

        if pid in state.terminated:
            raise InvalidRequestError(f"P{pid} has terminated and holds no resources")

        held = state.allocation_matrix[pid]
        if np.any(amounts > held):
            r = int(np.argmax(amounts > held))
            raise InvalidRequestError(
                f"P{pid}: cannot release R{r}[{amounts[r]}] - only holding {held[r]}"
            )

        state.allocation_matrix[pid] -= amounts
        state.available_vector += amounts
        state.need_matrix[pid] += amounts

        state.assert_invariants(f"after P{pid} relinquished {list(map(int, amounts))}")

        return [int(x) for x in state.available_vector]
