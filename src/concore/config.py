"""Configuration primitives for the concore mailbox runtime."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """Polling discipline for an empty channel.

    ``interval`` of ``None`` means "use the store's delay". With neither
    ``max_attempts`` nor ``deadline`` set the poll never gives up.
    """

    interval: float | None = None
    max_attempts: int | None = None
    deadline: float | None = None

    def __post_init__(self) -> None:
        if self.interval is not None and self.interval < 0:
            raise ValueError(f"retry interval must be non-negative, got {self.interval}")
        if self.max_attempts is not None and self.max_attempts <= 0:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}")
        if self.deadline is not None and self.deadline <= 0:
            raise ValueError(f"deadline must be positive, got {self.deadline}")

    @property
    def bounded(self) -> bool:
        return self.max_attempts is not None or self.deadline is not None


@dataclass(frozen=True)
class ConcoreConfig:
    """Holds tunable settings for mailbox sessions and node execution.

    **Channel Store:**
    - delay: seconds slept before every read and between empty-channel retries
    - inpath, outpath: base directories for reads and writes

    **Retry Policy:**
    - retry_interval: override for the retry sleep (defaults to ``delay``)
    - max_attempts, deadline: optional ceiling on the empty-channel poll;
      when both are ``None`` reads block until data arrives

    **Node Defaults:**
    - default_kp, default_ki, default_kd: gains used when a graph node omits them
    - dt: time step passed to each PID step
    """

    delay: float = 0.01
    inpath: str = "./in"
    outpath: str = "./out"

    retry_interval: float | None = None
    max_attempts: int | None = None
    deadline: float | None = None

    default_kp: float = 1.0
    default_ki: float = 0.0
    default_kd: float = 0.0
    dt: float = 1.0

    def __post_init__(self) -> None:
        if not math.isfinite(self.delay) or self.delay < 0:
            raise ValueError(
                f"delay must be a finite, non-negative number of seconds, got {self.delay}.\n"
                f"Use 0.0 to disable read pacing."
            )
        if self.dt == 0:
            raise ValueError("dt must be non-zero; the derivative term divides by it.")
        for name in ("default_kp", "default_ki", "default_kd", "dt"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
        # Validates the retry fields eagerly.
        self.retry_policy()

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            interval=self.retry_interval,
            max_attempts=self.max_attempts,
            deadline=self.deadline,
        )
