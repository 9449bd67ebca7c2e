# hopfind/brain/controller.py

import logging
from typing import Optional

from hopfind.brain.rules import BASELINE, NEW_SUCCESS, classify_step, next_ttl
from hopfind.brain.state import SearchResult, SearchState
from hopfind.config import MAX_TTL, MIN_TTL
from hopfind.errors import UnreachableAtMaxTtl
from hopfind.schemas import OutcomeKind, ProbeTarget

logger = logging.getLogger(__name__)


class BoundarySearch:
    def __init__(self, prober, settings):
        self.prober = prober
        self.s = settings

    def run(self, target: ProbeTarget, max_ttl: Optional[int] = None,
            min_ttl: Optional[int] = None) -> SearchResult:
        """
        Locate the lowest ttl in [min_ttl, max_ttl] whose outcome matches the baseline
        (the max_ttl outcome, or success once a lower ttl connects).
        Raises UnreachableAtMaxTtl if max_ttl itself is unreachable; ProbeError propagates.
        """
        max_ttl = self.s.max_ttl if max_ttl is None else max_ttl
        min_ttl = self.s.min_ttl if min_ttl is None else min_ttl
        if not MIN_TTL <= min_ttl <= max_ttl <= MAX_TTL:
            raise ValueError(f"need {MIN_TTL} <= min_ttl <= max_ttl <= {MAX_TTL}, "
                             f"got min_ttl={min_ttl} max_ttl={max_ttl}")

        # -------------------------------
        # 1) Baseline from the far end
        # -------------------------------
        outcome, elapsed = self.prober.probe_once(target, max_ttl)
        state = SearchState(low=min_ttl, high=max_ttl, baseline=outcome)
        state.record(max_ttl, outcome, elapsed)
        logger.info("ttl=%d: %s (%.1f ms) baseline", max_ttl, outcome, elapsed * 1000)

        if outcome.kind is OutcomeKind.UNREACHABLE:
            # Unreachable looks the same whichever hop sends it, so lower
            # TTLs cannot be told apart from this one.
            raise UnreachableAtMaxTtl(
                f"{target.ip} is unreachable even at ttl={max_ttl}; cannot search below it",
                ttl=max_ttl, outcome=outcome)

        # -------------------------------
        # 2) Shrink [low, high] until it collapses
        # -------------------------------
        while state.low != state.high:
            ttl = next_ttl(state.low, state.high)
            outcome, elapsed = self.prober.probe_once(target, ttl)
            state.record(ttl, outcome, elapsed)

            verdict = classify_step(outcome, state.baseline)
            if verdict == BASELINE:
                state.high = ttl
            elif verdict == NEW_SUCCESS:
                # the max-ttl failure was not ttl dependent after all
                logger.info("ttl=%d connected although baseline was %s; baseline is now success",
                            ttl, state.baseline)
                state.baseline = outcome
                state.high = ttl
            else:
                state.low = ttl + 1

            logger.info("ttl=%d: %s (%.1f ms) -> low=%d high=%d",
                        ttl, outcome, elapsed * 1000, state.low, state.high)

        return SearchResult(
            target=target.ip,
            boundary_ttl=state.high,
            outcome=state.baseline,
            probes=state.history,
        )
