# hopfind/errors.py
from typing import Optional


class HopfindError(Exception):
    pass


class ProbeError(HopfindError):
    """Environment failure while preparing or running a probe. Never a data point."""

    def __init__(self, message: str, errno: Optional[int] = None):
        super().__init__(message)
        self.errno = errno


class SourceUnreachableError(ProbeError):
    """The bound source address cannot reach the destination at all (family or route mismatch)."""


class SearchAborted(HopfindError):
    def __init__(self, message: str, ttl: int, outcome):
        super().__init__(message)
        self.ttl = ttl
        self.outcome = outcome


class UnreachableAtMaxTtl(SearchAborted):
    pass


class ResolveError(HopfindError):
    pass
