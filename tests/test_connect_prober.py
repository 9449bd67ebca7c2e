# tests/test_connect_prober.py
# Loopback only: the hop limit never runs out on 127.0.0.1, so these cover
# socket handling and classification rather than real TTL behaviour.
import errno
import select
import socket

import pytest

import hopfind.prober.connect as connect_mod
from hopfind.errors import ProbeError, SourceUnreachableError
from hopfind.prober.connect import ConnectProber
from hopfind.schemas import Outcome, ProbeTarget


@pytest.fixture
def listener():
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.bind(("127.0.0.1", 0))
    srv.listen(8)
    yield srv
    srv.close()


@pytest.fixture
def closed_port():
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


@pytest.fixture
def tracked_sockets(monkeypatch):
    created = []
    real_socket = socket.socket

    class Tracking(real_socket):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            created.append(self)

    monkeypatch.setattr(connect_mod.socket, "socket", Tracking)
    return created


def loopback(port, timeout=2.0, source=None):
    return ProbeTarget(family=socket.AF_INET, sockaddr=("127.0.0.1", port),
                       source=source, timeout=timeout)


@pytest.mark.parametrize("ttl", [1, 64, 255])
def test_connects_to_listener(listener, ttl):
    outcome, elapsed = ConnectProber().probe_once(loopback(listener.getsockname()[1]), ttl)
    assert outcome == Outcome.success()
    assert elapsed >= 0


def test_closed_port_is_refused(closed_port):
    outcome, _ = ConnectProber().probe_once(loopback(closed_port), 64)
    assert outcome == Outcome.refused()


def test_bound_source_on_same_family(listener):
    target = loopback(listener.getsockname()[1], source=("127.0.0.1", 0))
    outcome, _ = ConnectProber().probe_once(target, 64)
    assert outcome.is_success


def force_wait(monkeypatch, prober):
    def connect_then_wait(sock, target):
        sock.connect_ex(target.sockaddr)
        return prober._wait_connected(sock, target.timeout)
    monkeypatch.setattr(prober, "_connect", connect_then_wait)


def test_no_writability_before_deadline_is_timeout(listener, monkeypatch):
    monkeypatch.setattr(connect_mod.select, "select", lambda r, w, x, t: ([], [], []))
    prober = ConnectProber()
    force_wait(monkeypatch, prober)
    outcome, _ = prober.probe_once(loopback(listener.getsockname()[1], timeout=0.2), 64)
    assert outcome == Outcome.timeout()


def test_interrupted_wait_is_resumed(listener, monkeypatch):
    real_select = select.select
    calls = []

    def flaky(r, w, x, timeout):
        calls.append(timeout)
        if len(calls) == 1:
            raise InterruptedError()
        return real_select(r, w, x, timeout)

    monkeypatch.setattr(connect_mod.select, "select", flaky)
    prober = ConnectProber()
    force_wait(monkeypatch, prober)
    outcome, _ = prober.probe_once(loopback(listener.getsockname()[1], timeout=5.0), 64)

    assert len(calls) == 2
    assert calls[1] <= calls[0]
    assert outcome == Outcome.success()


def test_wait_failure_is_fatal(listener, monkeypatch):
    def broken(r, w, x, timeout):
        raise OSError(errno.EBADF, "Bad file descriptor")

    monkeypatch.setattr(connect_mod.select, "select", broken)
    prober = ConnectProber()
    force_wait(monkeypatch, prober)
    with pytest.raises(ProbeError):
        prober.probe_once(loopback(listener.getsockname()[1]), 64)


@pytest.mark.parametrize("ttl", [0, 256])
def test_out_of_range_ttl_is_fatal(listener, ttl):
    with pytest.raises(ProbeError) as exc:
        ConnectProber().probe_once(loopback(listener.getsockname()[1]), ttl)
    assert "IP_TTL" in str(exc.value)


def test_socket_creation_failure_is_fatal(monkeypatch):
    def no_sockets(*args, **kwargs):
        raise OSError(errno.EMFILE, "Too many open files")

    monkeypatch.setattr(connect_mod.socket, "socket", no_sockets)
    with pytest.raises(ProbeError) as exc:
        ConnectProber().probe_once(loopback(80), 64)
    assert exc.value.errno == errno.EMFILE


def test_source_of_other_family_is_unreachable(listener):
    target = loopback(listener.getsockname()[1], source=("::1", 0))
    with pytest.raises(SourceUnreachableError):
        ConnectProber().probe_once(target, 64)


def test_socket_closed_after_success(listener, tracked_sockets):
    ConnectProber().probe_once(loopback(listener.getsockname()[1]), 64)
    assert len(tracked_sockets) == 1
    assert tracked_sockets[0].fileno() == -1


def test_socket_closed_after_fatal_error(listener, tracked_sockets):
    with pytest.raises(ProbeError):
        ConnectProber().probe_once(loopback(listener.getsockname()[1]), 256)
    assert len(tracked_sockets) == 1
    assert tracked_sockets[0].fileno() == -1


def test_source_without_route_to_destination_is_unreachable():
    # loopback source, off-host destination: connect() itself is rejected
    target = ProbeTarget(family=socket.AF_INET, sockaddr=("192.0.2.1", 80),
                         source=("127.0.0.1", 0), timeout=1.0)
    with pytest.raises(SourceUnreachableError):
        ConnectProber().probe_once(target, 64)


def test_source_not_on_this_host_is_a_bind_error(listener):
    target = loopback(listener.getsockname()[1], source=("192.0.2.9", 0))
    with pytest.raises(ProbeError) as exc:
        ConnectProber().probe_once(target, 64)
    assert not isinstance(exc.value, SourceUnreachableError)
    assert exc.value.errno == errno.EADDRNOTAVAIL
    assert "not configured on this host" in str(exc.value)
