# tools/find_boundary.py
# Usage examples:
#   python3 -m tools.find_boundary example.com 443
#   python3 -m tools.find_boundary 192.0.2.10 25 --max-ttl 64 --wait 2 -v
#   python3 -m tools.find_boundary example.com 80 -s 10.0.0.5 --no-trace --json
#   python3 -m tools.find_boundary fake

import argparse
import json
import logging
import socket
import sys

from hopfind.brain.controller import BoundarySearch
from hopfind.config import DEFAULT_TRACEROUTE_BIN, Settings
from hopfind.errors import ProbeError, ResolveError, SearchAborted
from hopfind.schemas import Outcome, ProbeTarget

EXIT_CONNECTED = 0
EXIT_FAILED = 1
EXIT_ABORTED = 2
EXIT_ERROR = 3

STDERR_FD = 2


def fake_setup(s):
    """Timeouts below hop 11, connected from hop 11 on. No network involved."""
    from hopfind.prober.fake import FakeProber
    p = FakeProber.threshold(11, below=Outcome.timeout(), at_or_above=Outcome.success(),
                             max_ttl=s.max_ttl)
    target = ProbeTarget(family=socket.AF_INET, sockaddr=("192.0.2.1", s.port),
                         timeout=s.wait, host="fake")
    return p, target


def real_setup(s, host):
    from hopfind.prober.connect import ConnectProber
    from hopfind.resolve import resolve_target
    target = resolve_target(host, s.port, source=s.source, family=s.family, timeout=s.wait)
    return ConnectProber(), target


def report(result, as_json):
    if as_json:
        print(json.dumps(result.summary(), indent=2))
    elif result.connected:
        print(f"connected successfully at TTL={result.boundary_ttl}")
    else:
        print(f"failed with {result.outcome} at TTL={result.boundary_ttl}")


def build_argparser():
    ap = argparse.ArgumentParser(
        description="Find the hop where a TCP connection attempt starts to succeed or fail")
    ap.add_argument("target", help="Destination host/IP (or 'fake' for a scripted demo)")
    ap.add_argument("port", nargs="?", default=80, help="Destination port or service name (default: 80)")
    ap.add_argument("-m", "--max-ttl", type=int, default=30, help="Highest TTL to probe (baseline)")
    ap.add_argument("-f", "--min-ttl", type=int, default=1, help="Lowest TTL to consider")
    ap.add_argument("-w", "--wait", type=float, default=3.0, help="Seconds to wait for each connect")
    ap.add_argument("-s", "--source", help="Source address to bind")
    fam = ap.add_mutually_exclusive_group()
    fam.add_argument("-4", dest="family", action="store_const", const="inet", help="IPv4 only")
    fam.add_argument("-6", dest="family", action="store_const", const="inet6", help="IPv6 only")
    ap.set_defaults(family="any")
    ap.add_argument("--no-trace", dest="run_traceroute", action="store_false",
                    help="Do not run traceroute at the boundary hop")
    ap.add_argument("--traceroute-bin", default=DEFAULT_TRACEROUTE_BIN, help="traceroute binary to hand off to")
    ap.add_argument("--json", action="store_true", help="Print the result as JSON")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="-v: every probe, -vv: socket detail")
    return ap


def setup_logging(verbosity):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s - %(levelname)s - %(message)s")


def main(argv=None):
    ap = build_argparser()
    args = ap.parse_args(argv)
    setup_logging(args.verbose)

    port = str(args.port)
    if not port.isdigit():
        try:
            port = socket.getservbyname(port, "tcp")
        except OSError:
            ap.error(f"unknown tcp service {port!r}")
    s = Settings(
        max_ttl=args.max_ttl,
        min_ttl=args.min_ttl,
        wait=args.wait,
        port=int(port),
        family=args.family,
        source=args.source,
        run_traceroute=args.run_traceroute,
        traceroute_bin=args.traceroute_bin,
    )
    try:
        s.validate()
    except ValueError as e:
        ap.error(str(e))

    try:
        if args.target == "fake":
            prober, target = fake_setup(s)
        else:
            prober, target = real_setup(s, args.target)
        result = BoundarySearch(prober, s).run(target)
    except SearchAborted as e:
        print(f"search aborted: {e}", file=sys.stderr)
        return EXIT_ABORTED
    except (ProbeError, ResolveError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR

    report(result, args.json)

    if result.wants_trace and s.run_traceroute and args.target != "fake":
        from hopfind.diag import run_traceroute
        try:
            # keep stdout a single JSON document
            run_traceroute(s.traceroute_bin, result, target,
                           stdout=STDERR_FD if args.json else None)
        except OSError as e:
            logging.getLogger(__name__).warning("cannot run traceroute at %s: %s",
                                                s.traceroute_bin, e.strerror or e)

    return EXIT_CONNECTED if result.connected else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
