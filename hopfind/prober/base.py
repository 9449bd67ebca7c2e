# hopfind/prober/base.py
from abc import ABC, abstractmethod
from typing import Tuple

from hopfind.schemas import Outcome, ProbeTarget


class Prober(ABC):
    @abstractmethod
    def probe_once(self, target: ProbeTarget, ttl: int) -> Tuple[Outcome, float]:
        """Make exactly one connection attempt at ttl; return (outcome, elapsed seconds)."""
        raise NotImplementedError
