"""
Request Metrics for the Banker's Algorithm Resource Allocator.

Tracks request decisions and resource utilization over a session or replay.
"""

from dataclasses import dataclass, field
from typing import Dict, List
import statistics

from analysis.events import Rejection, RequestOutcome
from models.system_state import SystemState


@dataclass
class RequestMetrics:
    """
    Accumulated metrics for a sequence of requests.

    Tracks:
    1. Granted and denied request counts (overall and per process)
    2. Denials by rejection reason
    3. Resource Utilization %: (allocated/total) × 100 sampled after each request
    """
    granted_count: int = 0
    denied_count: int = 0
    safety_checks: int = 0

    denials_by_reason: Dict[Rejection, int] = field(default_factory=dict)
    process_granted_counts: Dict[int, int] = field(default_factory=dict)
    process_denied_counts: Dict[int, int] = field(default_factory=dict)
    utilization_samples: List[float] = field(default_factory=list)

    def record_request(self, pid: int, outcome: RequestOutcome) -> None:
        """
        Record the decision for one request.

        Args:
            pid: Requesting process index
            outcome: Result returned by the request processor
        """
        if outcome.granted:
            self.granted_count += 1
            self.process_granted_counts[pid] = self.process_granted_counts.get(pid, 0) + 1
        else:
            self.denied_count += 1
            self.process_denied_counts[pid] = self.process_denied_counts.get(pid, 0) + 1
            self.denials_by_reason[outcome.reason] = self.denials_by_reason.get(outcome.reason, 0) + 1

    def record_safety_check(self) -> None:
        """Record a standalone safety check."""
        self.safety_checks += 1

    def record_utilization(self, system_state: SystemState) -> None:
        """
        Sample overall resource utilization.

        Args:
            system_state: Current system state
        """
        total = int(system_state.total.sum())
        if total > 0:
            allocated = int(system_state.allocation.sum())
            self.utilization_samples.append((allocated / total) * 100)

    @property
    def total_requests(self) -> int:
        """Number of requests recorded."""
        return self.granted_count + self.denied_count

    def get_grant_rate(self) -> float:
        """Granted requests as a percentage of all requests."""
        if self.total_requests == 0:
            return 0.0
        return (self.granted_count / self.total_requests) * 100

    def get_avg_utilization(self) -> float:
        """Calculate average resource utilization over the sampled requests."""
        if not self.utilization_samples:
            return 0.0
        return statistics.mean(self.utilization_samples)


def format_metrics_report(metrics: RequestMetrics) -> str:
    """
    Format metrics for display at the end of a session.

    Args:
        metrics: RequestMetrics instance with collected data

    Returns:
        Formatted metrics report string
    """
    lines = []
    lines.append("\n" + "="*60)
    lines.append("REQUEST STATISTICS")
    lines.append("="*60)
    lines.append(f"Total Requests: {metrics.total_requests}")
    lines.append(f"  Granted: {metrics.granted_count}")
    lines.append(f"  Denied: {metrics.denied_count}")
    lines.append(f"  Grant Rate: {metrics.get_grant_rate():.2f}%")
    lines.append(f"Safety Checks: {metrics.safety_checks}")
    lines.append(f"Average Resource Utilization: {metrics.get_avg_utilization():.2f}%")

    if metrics.denials_by_reason:
        lines.append("")
        lines.append("DENIALS BY REASON:")
        lines.append("-" * 60)
        for reason in Rejection:
            count = metrics.denials_by_reason.get(reason, 0)
            if count:
                lines.append(f"  {reason.value:24} {count}")

    pids = sorted(set(metrics.process_granted_counts) | set(metrics.process_denied_counts))
    if pids:
        lines.append("")
        lines.append("PER-PROCESS SUMMARY:")
        lines.append("-" * 60)
        for pid in pids:
            granted = metrics.process_granted_counts.get(pid, 0)
            denied = metrics.process_denied_counts.get(pid, 0)
            lines.append(f"  P{pid}: grant={granted:2} deny={denied:2}")

    lines.append("="*60)
    return "\n".join(lines)
