# hopfind/prober/fake.py
from collections import deque

from hopfind.prober.base import Prober
from hopfind.schemas import Outcome


class FakeProber(Prober):
    """
    script: dict[ttl] -> Outcome, or a list of Outcomes returned one per call.
    default: outcome for TTLs with nothing scripted (timeout if not given).
    Every probed TTL is appended to .calls, in order.
    """
    def __init__(self, script=None, default=None, elapsed=0.0):
        self.script = {}
        if script:
            for ttl, v in script.items():
                self.script[ttl] = deque(v) if isinstance(v, (list, tuple)) else v
        self.default = default if default is not None else Outcome.timeout()
        self.elapsed = elapsed
        self.calls = []

    @classmethod
    def threshold(cls, boundary: int, below: Outcome, at_or_above: Outcome, max_ttl: int = 255):
        """TTLs under boundary answer `below`, the rest answer `at_or_above`."""
        script = {ttl: (below if ttl < boundary else at_or_above) for ttl in range(1, max_ttl + 1)}
        return cls(script=script)

    def probe_once(self, target, ttl):
        self.calls.append(ttl)
        entry = self.script.get(ttl)
        if isinstance(entry, deque):
            outcome = entry.popleft() if entry else self.default
        elif entry is not None:
            outcome = entry
        else:
            outcome = self.default
        return outcome, self.elapsed
