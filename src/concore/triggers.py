"""Change-notification sources driving :func:`concore.engine.reactive_loop`."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Iterable, Protocol


class TriggerSource(Protocol):
    """Anything that blocks until new input is available.

    ``wait`` returns the new content as text, or ``None`` once the source is
    closed and no further notifications will come.
    """

    def wait(self) -> str | None:
        ...


class SequenceTrigger:
    """Replays a fixed list of payloads, then reports closure."""

    def __init__(self, payloads: Iterable[str]) -> None:
        self._payloads = iter(payloads)

    def wait(self) -> str | None:
        return next(self._payloads, None)


class FileChangeTrigger:
    """Polls a file and fires whenever its modification signature changes.

    The signature is ``(st_mtime_ns, st_size)``. The state of the file when
    the trigger is created counts as already seen, so only later writes fire.
    A change that leaves the file empty is not reported.

    Args:
        path: File to watch. It may not exist yet.
        interval: Seconds between polls.
        timeout: Seconds one ``wait`` may block before the trigger treats the
            source as closed. ``None`` waits forever.
        sleep, clock: Injected for tests.
    """

    def __init__(
        self,
        path: str | Path,
        interval: float = 0.05,
        timeout: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval < 0:
            raise ValueError(f"interval must be non-negative, got {interval}")
        self.path = Path(path)
        self.interval = interval
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock
        self._closed = False
        self._last_signature = self._signature()

    def _signature(self) -> tuple[int, int] | None:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return None
        return stat.st_mtime_ns, stat.st_size

    def close(self) -> None:
        self._closed = True

    def wait(self) -> str | None:
        started = self._clock()
        while not self._closed:
            signature = self._signature()
            if signature is not None and signature != self._last_signature:
                self._last_signature = signature
                try:
                    content = self.path.read_text(encoding="utf-8")
                except FileNotFoundError:
                    # Removed between stat and read.
                    continue
                # A truncated file is a writer mid-way through; wait for its content.
                if content.strip():
                    return content
            if self.timeout is not None and self._clock() - started >= self.timeout:
                return None
            self._sleep(self.interval)
        return None
