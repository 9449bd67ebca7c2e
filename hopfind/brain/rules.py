# hopfind/brain/rules.py
import math

from hopfind.schemas import Outcome

# step verdicts
BASELINE = "baseline"
NEW_SUCCESS = "new_success"
DIFFERENT = "different"


def next_ttl(low: int, high: int) -> int:
    """
    Geometric midpoint ceil(sqrt(low * (high - 1))), kept inside [low, high - 1].
    Leans toward low TTLs: the far end of a path is where boundaries usually sit,
    so cheap short probes clear the bulk of the range first.
    """
    n = low * (high - 1)
    m = math.isqrt(n)
    if m * m < n:
        m += 1
    return max(low, min(m, high - 1))


def classify_step(outcome: Outcome, baseline: Outcome) -> str:
    if outcome == baseline:
        return BASELINE
    if outcome.is_success and not baseline.is_success:
        return NEW_SUCCESS
    return DIFFERENT
