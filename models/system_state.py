"""
System State model for the Banker's Algorithm Resource Allocator.

Holds the total/available vectors and the maximum/allocation/need matrices
used by the safety check and the request processor.
"""

import threading
import numpy as np
from typing import Dict, List, Sequence
from dataclasses import dataclass, field


@dataclass(eq=False)
class SystemState:
    """
    Resource bookkeeping for a fixed set of processes and resource types.

    Attributes:
        total: [R] Total instances of each resource type
        available: [R] Free (unallocated) instances of each resource type
        maximum: [P][R] Maximum resource need declared by each process
        allocation: [P][R] Resources currently held by each process
        need: [P][R] Maximum - Allocation (what each process may still request)
        lock: Serializes requests against this state

    Invariants:
        need[i] == maximum[i] - allocation[i]
        available[j] + sum(allocation[:, j]) == total[j]
        0 <= allocation[i][j] <= maximum[i][j] <= total[j]
        available[j] >= 0
    """
    total: np.ndarray
    available: np.ndarray
    maximum: np.ndarray
    allocation: np.ndarray
    need: np.ndarray
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def __post_init__(self):
        """Copy inputs into integer arrays and validate the invariants."""
        self.total = np.array(self.total, dtype=int)
        self.available = np.array(self.available, dtype=int)
        self.maximum = np.array(self.maximum, dtype=int)
        self.allocation = np.array(self.allocation, dtype=int)
        self.need = np.array(self.need, dtype=int)

        problems = self.violations()
        if problems:
            raise ValueError("Invalid system state:\n  " + "\n  ".join(problems))

    @classmethod
    def from_matrices(
        cls,
        total: Sequence[int],
        maximum: Sequence[Sequence[int]],
        allocation: Sequence[Sequence[int]]
    ) -> "SystemState":
        """
        Build a state, deriving Need and Available.

        Args:
            total: Total instances per resource type
            maximum: Maximum demand matrix [P][R]
            allocation: Current allocation matrix [P][R]

        Returns:
            New SystemState

        Raises:
            ValueError: If shapes disagree or any invariant is violated
        """
        total_vec = np.array(total, dtype=int)
        max_matrix = np.array(maximum, dtype=int)
        alloc_matrix = np.array(allocation, dtype=int)
        if max_matrix.shape != alloc_matrix.shape:
            raise ValueError(
                f"Max matrix shape {max_matrix.shape} does not match "
                f"allocation matrix shape {alloc_matrix.shape}"
            )
        if max_matrix.ndim != 2:
            raise ValueError("Max and allocation must be [P][R] matrices with at least one process")
        if total_vec.ndim != 1 or max_matrix.shape[1] != total_vec.shape[0]:
            raise ValueError(
                f"Total has shape {total_vec.shape} but matrices have "
                f"{max_matrix.shape[1]} resource columns"
            )

        return cls(
            total=total_vec,
            available=total_vec - alloc_matrix.sum(axis=0),
            maximum=max_matrix,
            allocation=alloc_matrix,
            need=max_matrix - alloc_matrix
        )

    @property
    def num_processes(self) -> int:
        """Number of processes in the system."""
        return self.maximum.shape[0]

    @property
    def num_resources(self) -> int:
        """Number of resource types in the system."""
        return self.total.shape[0]

    def violations(self) -> List[str]:
        """
        List every broken invariant.

        Returns:
            Human-readable descriptions, empty if the state is consistent
        """
        if self.total.ndim != 1:
            return [f"Total must be a vector, got shape {self.total.shape}"]

        m = self.total.shape[0]
        problems = []
        if self.available.shape != (m,):
            problems.append(f"Available shape {self.available.shape} != ({m},)")
        for name in ("maximum", "allocation", "need"):
            matrix = getattr(self, name)
            if matrix.ndim != 2 or matrix.shape[1] != m:
                problems.append(f"{name.capitalize()} shape {matrix.shape} is not [P][{m}]")
        if problems:
            return problems
        if not (self.maximum.shape == self.allocation.shape == self.need.shape):
            return ["Maximum, allocation and need matrices have different process counts"]

        for i in range(self.num_processes):
            if not np.array_equal(self.need[i], self.maximum[i] - self.allocation[i]):
                problems.append(
                    f"P{i}: need {self.need[i].tolist()} != max {self.maximum[i].tolist()} "
                    f"- allocation {self.allocation[i].tolist()}"
                )

        allocated = self.allocation.sum(axis=0)
        for j in range(m):
            if self.available[j] + allocated[j] != self.total[j]:
                problems.append(
                    f"R{j}: available {self.available[j]} + allocated {allocated[j]} "
                    f"!= total {self.total[j]}"
                )
            if self.available[j] < 0:
                problems.append(f"R{j}: negative available ({self.available[j]})")

        if np.any(self.allocation < 0):
            problems.append("Allocation contains negative entries")
        if np.any(self.allocation > self.maximum):
            problems.append("Allocation exceeds maximum for some process")
        if np.any(self.maximum > self.total):
            problems.append("Maximum exceeds total for some process")

        return problems

    def assert_invariants(self, context: str = "") -> None:
        """Verify all invariants hold.

        Args:
            context: Description of when this check is being run (for error messages)

        Raises:
            AssertionError: If any invariant is violated
        """
        problems = self.violations()
        assert not problems, (
            f"System state invariants violated {context}\n  " + "\n  ".join(problems)
        )

    def snapshot(self, pid: int) -> Dict:
        """
        Save the vectors a request for pid can change.

        Args:
            pid: Process index about to be tentatively allocated

        Returns:
            Dictionary holding copies of available, allocation[pid] and need[pid]
        """
        return {
            'pid': pid,
            'available': self.available.copy(),
            'allocation': self.allocation[pid].copy(),
            'need': self.need[pid].copy()
        }

    def restore(self, snapshot: Dict) -> None:
        """
        Restore vectors saved by snapshot().

        Args:
            snapshot: State dictionary from previous snapshot()
        """
        pid = snapshot['pid']
        self.available = snapshot['available'].copy()
        self.allocation[pid] = snapshot['allocation']
        self.need[pid] = snapshot['need']

    def copy(self) -> "SystemState":
        """Return an independent copy with its own lock."""
        return SystemState(
            total=self.total.copy(),
            available=self.available.copy(),
            maximum=self.maximum.copy(),
            allocation=self.allocation.copy(),
            need=self.need.copy()
        )

    def equals(self, other: "SystemState") -> bool:
        """Check that every vector and matrix matches other exactly."""
        return all(
            np.array_equal(getattr(self, name), getattr(other, name))
            for name in ("total", "available", "maximum", "allocation", "need")
        )
