# hopfind/brain/state.py
from dataclasses import dataclass, field
from datetime import datetime, timezone

from hopfind.schemas import Outcome, OutcomeKind, ProbeEvent


@dataclass
class SearchState:
    """Live interval: high is the lowest ttl known to match baseline, low is one past the highest known not to."""
    low: int
    high: int
    baseline: Outcome
    history: list = field(default_factory=list)   # ProbeEvent per probe, in order

    def record(self, ttl: int, outcome: Outcome, elapsed: float) -> ProbeEvent:
        """Append one probe to the history and return its event."""
        ev: ProbeEvent = {
            "ttl": ttl,
            "status": outcome.kind.value,
            "cause": outcome.cause,
            "elapsed_ms": round(elapsed * 1000, 3),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        self.history.append(ev)
        return ev


@dataclass
class SearchResult:
    target: str
    boundary_ttl: int
    outcome: Outcome
    probes: list = field(default_factory=list)
    stop_reason: str = "boundary_found"

    @property
    def connected(self) -> bool:
        return self.outcome.is_success

    @property
    def wants_trace(self) -> bool:
        # a refusal already names its sender; anything else is worth a look
        return self.outcome.kind not in (OutcomeKind.SUCCESS, OutcomeKind.REFUSED)

    def summary(self) -> dict:
        return {
            "target": self.target,
            "boundary_ttl": self.boundary_ttl,
            "outcome": self.outcome.kind.value,
            "cause": self.outcome.cause,
            "detail": self.outcome.detail,
            "connected": self.connected,
            "probes_used": len(self.probes),
            "stop_reason": self.stop_reason,
            "probes": list(self.probes),
        }
