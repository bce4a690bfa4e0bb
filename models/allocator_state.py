"""
Allocator State model for the Banker's Allocator.

Owns the Available vector and the Max, Allocation and Need matrices that the
safety algorithm and the request/release protocol operate on.
"""

import threading
import numpy as np
from typing import Dict, List, Sequence, Set
from dataclasses import dataclass, field

from models.errors import MalformedConfigurationError, InvalidRequestError


@dataclass(eq=False)
class AllocatorState:
    """
    Resource-accounting state for one independent simulation.

    Attributes:
        available_vector: [R] Free resource instances by type
        max_demand_matrix: [P][R] Maximum resource need declared by each process
        allocation_matrix: [P][R] Current resources held by each process
        need_matrix: [P][R] Remaining claim, Max - Allocation (zeroed on release)
        total_vector: [R] Instances of each type in the system, fixed at creation
        terminated: PIDs that have released everything and forfeited their claim
        lock: Serializes every operation on this state

    Invariants (checked by assert_invariants):
        Allocation + Need == Max for every live process
        Allocation, Need, Available are non-negative
        Available + column-sum(Allocation) == Total
    """
    available_vector: np.ndarray
    max_demand_matrix: np.ndarray
    allocation_matrix: np.ndarray
    need_matrix: np.ndarray
    total_vector: np.ndarray
    terminated: Set[int] = field(default_factory=set)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @classmethod
    def from_config(
        cls,
        available: Sequence[int],
        max_demand: Sequence[Sequence[int]],
        allocation: Sequence[Sequence[int]]
    ) -> "AllocatorState":
        """
        Build a state from a caller-supplied configuration.

        Need is derived as Max - Allocation and Total as
        Available + column-sum(Allocation).

        Args:
            available: Free units per resource type [R]
            max_demand: Declared maximum per process [P][R]
            allocation: Units already held per process [P][R]

        Returns:
            New AllocatorState

        Raises:
            MalformedConfigurationError: If shapes mismatch, entries are not
                non-negative integers, or Allocation exceeds Max anywhere
        """
        available_vector = _as_count_array(available, 1, "available")
        num_resources = available_vector.shape[0]

        max_matrix = _as_count_array(max_demand, 2, "max", num_resources)
        alloc_matrix = _as_count_array(allocation, 2, "allocation", num_resources)

        if max_matrix.shape != alloc_matrix.shape:
            raise MalformedConfigurationError(
                f"max has {max_matrix.shape[0]} processes but allocation has "
                f"{alloc_matrix.shape[0]}"
            )

        need_matrix = max_matrix - alloc_matrix
        if np.any(need_matrix < 0):
            p, r = np.argwhere(need_matrix < 0)[0]
            raise MalformedConfigurationError(
                f"P{p}: allocation[{r}] ({alloc_matrix[p][r]}) exceeds "
                f"max[{r}] ({max_matrix[p][r]})"
            )

        total_vector = available_vector + alloc_matrix.sum(axis=0, dtype=int)

        return cls(
            available_vector=available_vector,
            max_demand_matrix=max_matrix,
            allocation_matrix=alloc_matrix,
            need_matrix=need_matrix,
            total_vector=total_vector,
        )

    @property
    def num_processes(self) -> int:
        """Number of processes in the system."""
        return self.max_demand_matrix.shape[0]

    @property
    def num_resources(self) -> int:
        """Number of resource types in the system."""
        return self.available_vector.shape[0]

    def validate_pid(self, pid: int) -> int:
        """
        Check that pid names a process of this state.

        Raises:
            InvalidRequestError: If pid is not an integer in [0, num_processes)
        """
        if isinstance(pid, bool) or not isinstance(pid, (int, np.integer)):
            raise InvalidRequestError(f"Invalid process id {pid!r}")
        if pid < 0 or pid >= self.num_processes:
            raise InvalidRequestError(
                f"Process id {pid} out of range (0..{self.num_processes - 1})"
            )
        return int(pid)

    def as_request_vector(self, values: Sequence[int], name: str = "request") -> np.ndarray:
        """
        Convert a per-resource vector supplied by a caller.

        Raises:
            InvalidRequestError: If the vector has the wrong length or holds
                negative or non-integer values
        """
        try:
            return _as_count_array(values, 1, name, self.num_resources)
        except MalformedConfigurationError as e:
            raise InvalidRequestError(str(e)) from e

    def snapshot(self) -> Dict:
        """
        Create snapshot of the mutable part of the state.

        Returns:
            Dictionary of independent copies
        """
        with self.lock:
            return {
                'available_vector': self.available_vector.copy(),
                'allocation_matrix': self.allocation_matrix.copy(),
                'need_matrix': self.need_matrix.copy(),
                'terminated': set(self.terminated),
            }

    def restore(self, snapshot: Dict) -> None:
        """
        Restore the state from a snapshot taken on this same state.

        Args:
            snapshot: State dictionary from previous snapshot()
        """
        with self.lock:
            self.available_vector = snapshot['available_vector'].copy()
            self.allocation_matrix = snapshot['allocation_matrix'].copy()
            self.need_matrix = snapshot['need_matrix'].copy()
            self.terminated = set(snapshot['terminated'])

    def assert_invariants(self, context: str = "") -> None:
        """Verify accounting invariants.

        Args:
            context: Description of when this check is being run (for error messages)

        Raises:
            AssertionError: If any invariant is violated
        """
        for p in range(self.num_processes):
            if p in self.terminated:
                assert not np.any(self.allocation_matrix[p]) and not np.any(self.need_matrix[p]), (
                    f"Terminated P{p} still holds or claims resources {context}\n"
                    f"  Allocation: {list(self.allocation_matrix[p])}, Need: {list(self.need_matrix[p])}"
                )
                continue
            assert np.array_equal(
                self.allocation_matrix[p] + self.need_matrix[p], self.max_demand_matrix[p]
            ), (
                f"Allocation + Need != Max for P{p} {context}\n"
                f"  Allocation: {list(self.allocation_matrix[p])}, "
                f"Need: {list(self.need_matrix[p])}, Max: {list(self.max_demand_matrix[p])}"
            )

        assert not np.any(self.allocation_matrix < 0), f"Negative allocation {context}"
        assert not np.any(self.need_matrix < 0), f"Negative need {context}"

        for r in range(self.num_resources):
            allocated = self.allocation_matrix[:, r].sum()
            available = self.available_vector[r]
            total = self.total_vector[r]

            assert available >= 0, (
                f"Negative available resources for R{r} {context}\n"
                f"  Available: {available}"
            )
            assert allocated + available == total, (
                f"Resource conservation violated for R{r} {context}\n"
                f"  Allocated: {allocated}, Available: {available}, Total: {total}"
            )

    def display(self) -> str:
        """
        Generate readable string representation of the state.

        Returns:
            Formatted string showing all matrices and vectors
        """
        header = "     " + " ".join(f"R{r:<2}" for r in range(self.num_resources))

        def matrix_rows(matrix: np.ndarray) -> List[str]:
            rows = []
            for p in range(self.num_processes):
                suffix = "  (terminated)" if p in self.terminated else ""
                values = " ".join(f"{matrix[p][r]:3}" for r in range(self.num_resources))
                rows.append(f"  P{p}: {values}{suffix}")
            return rows

        output = []
        output.append("\n" + "="*60)
        output.append("ALLOCATOR STATE")
        output.append("="*60)

        avail = ", ".join(f"R{r}:{self.available_vector[r]:2}" for r in range(self.num_resources))
        output.append(f"\nAvailable Resources:\n  [{avail}]")
        total = ", ".join(f"R{r}:{self.total_vector[r]:2}" for r in range(self.num_resources))
        output.append(f"Total Resources:\n  [{total}]")

        output.append("\nAllocation Matrix:")
        output.append(header)
        output.extend(matrix_rows(self.allocation_matrix))

        output.append("\nMax Demand Matrix:")
        output.append(header)
        output.extend(matrix_rows(self.max_demand_matrix))

        output.append("\nNeed Matrix (Max - Allocation):")
        output.append(header)
        output.extend(matrix_rows(self.need_matrix))

        output.append("\n" + "="*60)
        return "\n".join(output)


def _as_count_array(values, ndim: int, name: str, width: int = None) -> np.ndarray:
    """
    Convert nested sequences into a non-negative integer array.

    An empty 2-D input is accepted as a matrix with zero rows.
    """
    try:
        array = np.asarray(values)
    except (ValueError, TypeError) as e:
        raise MalformedConfigurationError(f"{name}: rows have inconsistent lengths ({e})")

    if array.size == 0:
        if ndim == 2 and array.ndim == 1 and width is not None:
            return np.zeros((0, width), dtype=int)
        array = array.astype(int)

    if array.ndim != ndim:
        raise MalformedConfigurationError(
            f"{name}: expected a {ndim}-D array, got shape {array.shape}"
        )
    if array.dtype.kind not in ("i", "u"):
        raise MalformedConfigurationError(f"{name}: entries must be integers")
    if width is not None and array.shape[-1] != width:
        raise MalformedConfigurationError(
            f"{name}: expected {width} resource types, got {array.shape[-1]}"
        )
    if np.any(array < 0):
        raise MalformedConfigurationError(f"{name}: entries must be non-negative")

    return array.astype(int)
