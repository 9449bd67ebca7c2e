"""
Turn host/port/source strings into a ProbeTarget.

When a source address is given it is resolved first and the destination is
looked up in the same family only, so the probe never has to bind and
connect across families.
"""
import logging
import socket
from typing import Optional, Union

from hopfind.errors import ResolveError
from hopfind.schemas import ProbeTarget

logger = logging.getLogger(__name__)

FAMILIES = {
    "any": socket.AF_UNSPEC,
    "inet": socket.AF_INET,
    "inet6": socket.AF_INET6,
}


def _lookup(host: str, port: Union[int, str], family: int, flags: int = 0):
    try:
        infos = socket.getaddrinfo(host, port, family, socket.SOCK_STREAM,
                                   socket.IPPROTO_TCP, flags)
    except socket.gaierror as e:
        raise ResolveError(f"cannot resolve {host}: {e.strerror}") from e
    if not infos:
        raise ResolveError(f"no usable address for {host}")
    return infos[0]


def resolve_target(host: str, port: Union[int, str] = 80, source: Optional[str] = None,
                   family: str = "any", timeout: float = 3.0) -> ProbeTarget:
    try:
        fam = FAMILIES[family]
    except KeyError:
        raise ResolveError(f"unknown address family {family!r}") from None

    src_sockaddr = None
    if source:
        src_family, _, _, _, src_sockaddr = _lookup(source, 0, fam, socket.AI_PASSIVE)
        fam = src_family

    dst_family, socktype, proto, _, sockaddr = _lookup(host, port, fam)
    logger.debug("resolved %s port %s -> %s (source %s)",
                 host, port, sockaddr, src_sockaddr[0] if src_sockaddr else "any")
    return ProbeTarget(
        family=dst_family,
        sockaddr=sockaddr,
        source=src_sockaddr,
        timeout=timeout,
        socktype=socktype,
        proto=proto,
        host=host,
    )
