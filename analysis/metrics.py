"""
Metrics Tracking for the Banker's Allocator simulator.

Tracks decision counts and resource utilization throughout a run.
"""

from dataclasses import dataclass, field
from typing import List, Dict
import statistics

from models.decision import RequestOutcome, RequestStatus


@dataclass
class SimulationMetrics:
    """
    Accumulated metrics for a single simulation run.

    Tracks:
    1. Decision counts: how many requests were granted, had to wait, were
       denied as unsafe, or were rejected for exceeding declared need
    2. Resource Utilization %: (allocated/total) × 100 after every event
       (includes initial allocations)
    3. Safety: whether every safety check run during the simulation was safe
    """
    total_steps: int = 0
    total_processes: int = 0
    terminated_processes: int = 0
    retries: int = 0
    unsafe_checks: int = 0

    status_counts: Dict[RequestStatus, int] = field(
        default_factory=lambda: {status: 0 for status in RequestStatus}
    )

    # Per-step samples
    utilization_samples: List[float] = field(default_factory=list)

    # Per-resource utilization tracking
    resource_utilization_samples: Dict[int, List[float]] = field(default_factory=dict)

    # Per-process tracking
    process_granted_counts: Dict[int, int] = field(default_factory=dict)
    process_denied_counts: Dict[int, int] = field(default_factory=dict)
    process_final_allocations: Dict[int, List[int]] = field(default_factory=dict)

    def record_step(
        self,
        step: int,
        per_resource_allocated: List[int],
        per_resource_total: List[int]
    ) -> None:
        """
        Record utilization after a simulation step.

        Args:
            step: Current step number
            per_resource_allocated: Allocated instances per resource type
            per_resource_total: Total instances per resource type
        """
        self.total_steps = step + 1

        allocated_instances = sum(per_resource_allocated)
        total_instances = sum(per_resource_total)
        if total_instances > 0:
            self.utilization_samples.append((allocated_instances / total_instances) * 100)

        for resource_id, total in enumerate(per_resource_total):
            samples = self.resource_utilization_samples.setdefault(resource_id, [])
            if total > 0:
                samples.append((per_resource_allocated[resource_id] / total) * 100)

    def record_outcome(self, outcome: RequestOutcome, retry: bool = False) -> None:
        """
        Record the decision taken for one request.

        Args:
            outcome: Decision returned by the allocator
            retry: True when the request was a retry of a pending one
        """
        self.status_counts[outcome.status] += 1
        if retry:
            self.retries += 1

        counts = self.process_granted_counts if outcome.granted else self.process_denied_counts
        counts[outcome.pid] = counts.get(outcome.pid, 0) + 1

    def record_safety_check(self, safe: bool) -> None:
        """Record the result of an explicit safety check."""
        if not safe:
            self.unsafe_checks += 1

    def record_termination(self) -> None:
        """Record a process termination."""
        self.terminated_processes += 1

    def record_final_allocations(self, allocation_matrix) -> None:
        """
        Record final allocation of every process.

        Args:
            allocation_matrix: [P][R] allocation at the end of the run
        """
        # Convert numpy types to native Python int to avoid display issues
        for pid, row in enumerate(allocation_matrix):
            self.process_final_allocations[pid] = [int(x) for x in row]

    @property
    def granted(self) -> int:
        return self.status_counts[RequestStatus.GRANTED]

    @property
    def waits(self) -> int:
        return self.status_counts[RequestStatus.MUST_WAIT]

    @property
    def unsafe_denials(self) -> int:
        return self.status_counts[RequestStatus.DENIED_UNSAFE]

    @property
    def rejections(self) -> int:
        return self.status_counts[RequestStatus.EXCEEDS_NEED]

    def get_avg_utilization(self) -> float:
        """Calculate average resource utilization (overall, includes initial allocations)."""
        if not self.utilization_samples:
            return 0.0
        return statistics.mean(self.utilization_samples)

    def get_resource_utilization(self, resource_id: int) -> float:
        """
        Calculate average utilization for a specific resource.

        Args:
            resource_id: Resource type identifier

        Returns:
            Average utilization percentage for this resource
        """
        samples = self.resource_utilization_samples.get(resource_id)
        if not samples:
            return 0.0
        return statistics.mean(samples)

    def get_grant_rate(self) -> float:
        """Fraction of request attempts that were granted."""
        attempts = sum(self.status_counts.values())
        if attempts == 0:
            return 0.0
        return self.granted / attempts


def format_metrics_report(
    metrics: SimulationMetrics,
    verbose: bool = False,
    scenario: str = None
) -> str:
    """
    Format metrics for display at end of simulation.

    Args:
        metrics: SimulationMetrics instance with collected data
        verbose: If True, include metric formulas
        scenario: Scenario file path

    Returns:
        Formatted metrics report string
    """
    lines = []
    lines.append("\n" + "="*60)
    lines.append("SIMULATION METRICS")
    lines.append("="*60)

    if scenario:
        lines.append(f"Scenario: {scenario}")
        lines.append("")

    lines.append(f"Total Steps: {metrics.total_steps}")
    lines.append(f"Total Processes: {metrics.total_processes}")
    lines.append(f"Terminated Processes: {metrics.terminated_processes}")
    lines.append("")

    lines.append("REQUEST DECISIONS:")
    lines.append("-" * 60)
    lines.append(f"  Granted: {metrics.granted}")
    lines.append(f"  Must wait: {metrics.waits}")
    lines.append(f"  Denied (unsafe): {metrics.unsafe_denials}")
    lines.append(f"  Rejected (exceeds need): {metrics.rejections}")
    lines.append(f"  Retries: {metrics.retries}")
    lines.append(f"  Grant rate: {metrics.get_grant_rate() * 100:.2f}%")
    lines.append(f"  Unsafe safety checks: {metrics.unsafe_checks}")
    lines.append("")
    lines.append(f"Average Resource Utilization: {metrics.get_avg_utilization():.2f}%")

    if metrics.resource_utilization_samples:
        lines.append("")
        lines.append("PER-RESOURCE UTILIZATION:")
        lines.append("-" * 60)
        for resource_id in sorted(metrics.resource_utilization_samples.keys()):
            util = metrics.get_resource_utilization(resource_id)
            lines.append(f"  R{resource_id}: {util:.2f}% average")

    if metrics.process_final_allocations:
        lines.append("")
        lines.append("PER-PROCESS SUMMARY:")
        lines.append("-" * 60)
        for pid in sorted(metrics.process_final_allocations.keys()):
            granted = metrics.process_granted_counts.get(pid, 0)
            denied = metrics.process_denied_counts.get(pid, 0)
            alloc = metrics.process_final_allocations[pid]
            lines.append(f"  P{pid}: grant={granted:2} deny={denied:2} | alloc={alloc}")

    if verbose:
        lines.append("")
        lines.append("METRIC FORMULAS:")
        lines.append("-" * 60)
        lines.append("Resource Utilization: Average of (SUM allocated / SUM total) x 100 per step")
        lines.append("Grant rate: granted / all request attempts (retries included)")

    lines.append("="*60)
    return "\n".join(lines)
