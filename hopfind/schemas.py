import errno
import os
import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, TypedDict


class OutcomeKind(Enum):
    SUCCESS = "success"
    TIMEOUT = "timeout"
    REFUSED = "refused"
    UNREACHABLE = "unreachable"
    OTHER = "other"


_ERRNO_KINDS = {
    errno.ECONNREFUSED: OutcomeKind.REFUSED,
    errno.EHOSTUNREACH: OutcomeKind.UNREACHABLE,
    errno.ENETUNREACH: OutcomeKind.UNREACHABLE,
    errno.ETIMEDOUT: OutcomeKind.TIMEOUT,
}


@dataclass(frozen=True)
class Outcome:
    """
    Classified result of one connection attempt.

    Equality looks at the kind, plus the errno name for OTHER. The human
    readable detail is carried along for display only.
    """
    kind: OutcomeKind
    cause: Optional[str] = None
    detail: Optional[str] = field(default=None, compare=False)

    @classmethod
    def success(cls) -> "Outcome":
        return cls(OutcomeKind.SUCCESS)

    @classmethod
    def timeout(cls) -> "Outcome":
        return cls(OutcomeKind.TIMEOUT)

    @classmethod
    def refused(cls) -> "Outcome":
        return cls(OutcomeKind.REFUSED)

    @classmethod
    def unreachable(cls) -> "Outcome":
        return cls(OutcomeKind.UNREACHABLE)

    @classmethod
    def other(cls, cause: str, detail: Optional[str] = None) -> "Outcome":
        return cls(OutcomeKind.OTHER, cause, detail)

    @classmethod
    def from_errno(cls, code: int) -> "Outcome":
        if code == 0:
            return cls.success()
        kind = _ERRNO_KINDS.get(code)
        if kind is not None:
            return cls(kind, detail=os.strerror(code))
        return cls.other(errno.errorcode.get(code, f"errno {code}"), os.strerror(code))

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    def __str__(self) -> str:
        if self.kind is OutcomeKind.OTHER:
            if self.detail:
                return f"other ({self.cause}: {self.detail})"
            return f"other ({self.cause})"
        return self.kind.value


@dataclass(frozen=True)
class ProbeTarget:
    family: int
    sockaddr: tuple
    source: Optional[tuple] = None
    timeout: float = 3.0
    socktype: int = socket.SOCK_STREAM
    proto: int = socket.IPPROTO_TCP
    host: Optional[str] = None

    @property
    def ip(self) -> str:
        return self.sockaddr[0]

    @property
    def port(self) -> int:
        return self.sockaddr[1]

    @property
    def source_ip(self) -> Optional[str]:
        return self.source[0] if self.source else None


class ProbeEvent(TypedDict, total=False):
    ttl: int
    status: str                 # OutcomeKind value
    cause: Optional[str]
    elapsed_ms: float
    timestamp: str
