# hopfind/prober/connect.py
import errno
import logging
import select
import socket
import time

from hopfind.errors import ProbeError, SourceUnreachableError
from hopfind.prober.base import Prober
from hopfind.schemas import Outcome, ProbeTarget

logger = logging.getLogger(__name__)

_IN_PROGRESS = (errno.EINPROGRESS, errno.EALREADY)
# bind/connect refusals that mean "this source can never reach that destination"
_MISMATCH = (errno.EAFNOSUPPORT, errno.EINVAL)


class ConnectProber(Prober):
    """
    Unprivileged probe: a plain non-blocking TCP connect() with the hop limit
    lowered to the requested TTL. One socket per call, always closed before
    returning.
    """

    def probe_once(self, target: ProbeTarget, ttl: int):
        try:
            sock = socket.socket(target.family, target.socktype, target.proto)
        except OSError as e:
            raise ProbeError(f"cannot create socket: {e.strerror or e}", e.errno) from e

        with sock:
            if target.source is not None:
                self._bind(sock, target)
            sock.setblocking(False)
            self._set_hop_limit(sock, target.family, ttl)

            start = time.perf_counter()
            outcome = self._connect(sock, target)
            elapsed = time.perf_counter() - start

        logger.debug("probe %s port %s ttl=%d: %s in %.1f ms",
                     target.ip, target.port, ttl, outcome, elapsed * 1000)
        return outcome, elapsed

    def _bind(self, sock: socket.socket, target: ProbeTarget) -> None:
        try:
            sock.bind(target.source)
        except socket.gaierror as e:
            # address of the wrong family for this socket
            raise SourceUnreachableError(
                f"host {target.ip} is unreachable from source {target.source_ip}", e.errno) from e
        except OSError as e:
            if e.errno in _MISMATCH:
                raise SourceUnreachableError(
                    f"host {target.ip} is unreachable from source {target.source_ip}", e.errno) from e
            if e.errno == errno.EADDRNOTAVAIL:
                raise ProbeError(
                    f"cannot bind to {target.source_ip}: address is not configured on this host", e.errno) from e
            raise ProbeError(f"cannot bind to {target.source_ip}: {e.strerror or e}", e.errno) from e

    def _set_hop_limit(self, sock: socket.socket, family: int, ttl: int) -> None:
        if family == socket.AF_INET6:
            level, option, name = socket.IPPROTO_IPV6, socket.IPV6_UNICAST_HOPS, "IPV6_UNICAST_HOPS"
        else:
            level, option, name = socket.IPPROTO_IP, socket.IP_TTL, "IP_TTL"
        try:
            sock.setsockopt(level, option, ttl)
        except OverflowError as e:
            raise ProbeError(f"cannot set {name}={ttl}: {e}") from e
        except OSError as e:
            raise ProbeError(f"cannot set {name}={ttl}: {e.strerror or e}", e.errno) from e

    def _connect(self, sock: socket.socket, target: ProbeTarget) -> Outcome:
        code = sock.connect_ex(target.sockaddr)
        if code in _IN_PROGRESS:
            return self._wait_connected(sock, target.timeout)
        if code in _MISMATCH and target.source is not None:
            raise SourceUnreachableError(
                f"host {target.ip} is unreachable from source {target.source_ip}", code)
        return Outcome.from_errno(code)

    def _wait_connected(self, sock: socket.socket, timeout: float) -> Outcome:
        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return Outcome.timeout()
            try:
                _, writable, _ = select.select([], [sock], [], remaining)
            except InterruptedError:
                # select resumes on EINTR by itself (PEP 475); budget is recomputed here otherwise
                continue
            except OSError as e:
                raise ProbeError(f"waiting for connect failed: {e.strerror or e}", e.errno) from e
            if not writable:
                return Outcome.timeout()
            return Outcome.from_errno(sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR))
