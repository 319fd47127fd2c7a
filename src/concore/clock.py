"""Simulated clock and channel store shared by the mailbox operations of a session."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .config import ConcoreConfig
from .payload import decode, split_message


@dataclass
class ChannelStore:
    """Mutable state of one mailbox session.

    Every read and write of a session goes through the same store; separate
    sessions (or tests) use separate stores and never interfere.

    Attributes:
        simtime: Simulated time. Reads merge with ``max``; writes advance it.
        delay: Seconds slept before each read and between empty-channel retries.
        retrycount: Cumulative number of empty-channel retries.
        accumulated: Raw text of every read since the last converged round.
        previous_accumulated: Snapshot taken by the last non-converged check.
        inpath: Base directory of channels that are read.
        outpath: Base directory of channels that are written.
    """

    simtime: float = 0.0
    delay: float = 0.01
    retrycount: int = 0
    accumulated: str = ""
    previous_accumulated: str = ""
    inpath: str = "./in"
    outpath: str = "./out"

    @classmethod
    def from_config(cls, config: ConcoreConfig | None = None) -> "ChannelStore":
        config = config or ConcoreConfig()
        return cls(delay=config.delay, inpath=config.inpath, outpath=config.outpath)

    def reset(self) -> None:
        """Return clock, retry counter and convergence text to their initial values.

        ``delay`` and the base paths are configuration and are left alone.
        """
        self.simtime = 0.0
        self.retrycount = 0
        self.accumulated = ""
        self.previous_accumulated = ""

    def initval(self, raw: str) -> np.ndarray:
        """Seed the clock from a literal such as ``"[0.0, 1.0, 2.0]"``.

        The first element replaces ``simtime`` outright (no merge); the rest
        is returned as the initial value vector.
        """
        simtime, values = split_message(decode(raw))
        self.simtime = simtime
        return values

    def merge_time(self, timestamp: float) -> float:
        self.simtime = max(self.simtime, float(timestamp))
        return self.simtime

    def advance(self, delta: float) -> float:
        self.simtime += delta
        return self.simtime

    def record_read(self, content: str) -> None:
        self.accumulated += content

    def unchanged(self) -> bool:
        """Report whether no reads happened since the previous check.

        Equal snapshots mean the round has converged: the accumulated text is
        cleared and ``True`` returned. Otherwise the current text becomes the
        snapshot for the next call and ``False`` is returned.

        Note:
            A converged check keeps the old snapshot, so calling again with no
            read in between compares it with the now empty text and returns
            ``False`` once whenever that snapshot is not empty.
        """
        if self.previous_accumulated == self.accumulated:
            self.accumulated = ""
            return True
        self.previous_accumulated = self.accumulated
        return False
