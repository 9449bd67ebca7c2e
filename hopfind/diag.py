# hopfind/diag.py
# Hand the boundary hop to a regular traceroute so the device there gets a name.
import logging
import subprocess
from typing import List

from hopfind.brain.state import SearchResult
from hopfind.schemas import ProbeTarget

logger = logging.getLogger(__name__)

SYSTEM_PATH = "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin"


def traceroute_argv(binary: str, result: SearchResult, target: ProbeTarget) -> List[str]:
    hop = str(result.boundary_ttl)
    argv = [binary, "-n", "-f", hop, "-m", hop, "-w", f"{target.timeout:g}"]
    if target.source_ip:
        argv += ["-s", target.source_ip]
    argv.append(target.ip)
    return argv


def traceroute_env() -> dict:
    # fresh mapping; the caller's environment is left alone
    return {"PATH": SYSTEM_PATH, "LC_ALL": "C"}


def run_traceroute(binary: str, result: SearchResult, target: ProbeTarget, stdout=None) -> int:
    """stdout: where the tracer writes (file, fd or None for ours). Returns its exit status."""
    argv = traceroute_argv(binary, result, target)
    logger.info("running %s", " ".join(argv))
    proc = subprocess.run(argv, env=traceroute_env(), stdout=stdout, check=False)
    if proc.returncode != 0:
        logger.warning("%s exited with status %d", binary, proc.returncode)
    return proc.returncode
