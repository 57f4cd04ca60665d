"""
Prometheus metrics for the DAO node.

Each node owns its own ``CollectorRegistry`` so several deployments (and
test fixtures) can live in one process without duplicate-registration
errors.
"""

from __future__ import annotations

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest


class GovernanceMetrics:
    """Counters and gauges describing governance activity."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        self.proposals_created = Counter(
            "dao_proposals_created_total",
            "Number of proposals created",
            registry=self.registry,
        )
        self.votes_cast = Counter(
            "dao_votes_cast_total",
            "Number of votes cast",
            registry=self.registry,
        )
        self.vote_weight = Counter(
            "dao_vote_weight_total",
            "Cumulative voting power cast, in base units",
            registry=self.registry,
        )
        self.proposals_finalized = Counter(
            "dao_proposals_finalized_total",
            "Number of proposals finalized",
            registry=self.registry,
        )
        self.requests_rejected = Counter(
            "dao_requests_rejected_total",
            "Governance requests rejected, by operation and error code",
            ["operation", "code"],
            registry=self.registry,
        )
        self.treasury_balance = Gauge(
            "dao_treasury_balance",
            "Treasury balance in base units",
            registry=self.registry,
        )

    def record_rejection(self, operation: str, code: str) -> None:
        self.requests_rejected.labels(operation=operation, code=code).inc()

    def export(self) -> bytes:
        """Render the registry in the Prometheus text exposition format."""
        return generate_latest(self.registry)
