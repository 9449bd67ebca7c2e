import shutil
from dataclasses import dataclass
from typing import Optional

MIN_TTL = 1
MAX_TTL = 255

DEFAULT_TRACEROUTE_BIN = shutil.which("traceroute") or "/usr/bin/traceroute"


@dataclass
class Settings:
    max_ttl: int = 30
    min_ttl: int = 1
    wait: float = 3.0           # seconds per probe
    port: int = 80
    family: str = "any"         # "any" | "inet" | "inet6"
    source: Optional[str] = None

    # post-search diagnostic
    run_traceroute: bool = True
    traceroute_bin: str = DEFAULT_TRACEROUTE_BIN

    def validate(self) -> "Settings":
        for name in ("min_ttl", "max_ttl"):
            value = getattr(self, name)
            if not MIN_TTL <= value <= MAX_TTL:
                raise ValueError(f"{name} must be in [{MIN_TTL}, {MAX_TTL}], got {value}")
        if self.min_ttl > self.max_ttl:
            raise ValueError(f"min_ttl ({self.min_ttl}) is above max_ttl ({self.max_ttl})")
        if self.wait <= 0:
            raise ValueError(f"wait must be positive, got {self.wait}")
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be in [1, 65535], got {self.port}")
        if self.family not in ("any", "inet", "inet6"):
            raise ValueError(f"unknown address family {self.family!r}")
        return self
