"""Filesystem mailbox channels.

A channel is the file ``<base>/<port>/<name>``; reads resolve against the
store's ``inpath`` and writes against its ``outpath``. Each file holds one
message ``[t, v1, ..., vn]`` and a write replaces it wholesale.

Reads block: a file that cannot be opened is treated as the caller's fallback
literal, and an empty one is polled at a fixed interval until content shows
up. Content that is not UTF-8 text is a malformed payload, never a fallback.
Every successful read is appended to the store's accumulated text, which is
what :meth:`Mailbox.unchanged` compares between rounds.
"""

from __future__ import annotations

import contextlib
import os
import stat
import tempfile
import time
from pathlib import Path
from typing import Callable, Sequence

import numpy as np

from .clock import ChannelStore
from .config import ConcoreConfig, RetryPolicy
from .errors import ChannelAccessError, ChannelTimeout, MalformedPayload
from .payload import decode, encode, split_message


def _get_verbosity() -> int:
    """Get verbosity level from environment: 0=quiet, 1=normal, 2=verbose."""
    return int(os.environ.get("CONCORE_VERBOSITY", "1"))


def channel_path(base: str | os.PathLike, port: int, name: str) -> Path:
    """Resolve a ``(port, name)`` channel address below ``base``."""
    return Path(base) / str(int(port)) / name


def _read_text(path: Path, fallback: str) -> str:
    try:
        data = path.read_bytes()
    except OSError:
        return fallback
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedPayload(f"Channel file {path} is not valid UTF-8: {exc}", repr(data)) from exc


def _file_mode(path: Path) -> int:
    """Mode for a replacement of ``path``: the current one, else the umask default."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _atomic_write(path: Path, text: str) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.chmod(tmp_name, _file_mode(path))
        os.replace(tmp_name, path)
    except OSError:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


class Mailbox:
    """Read/write access to mailbox channels for one session.

    Args:
        store: Session state. A fresh default store is created when omitted.
        retry: Empty-channel polling policy. The default never gives up.
        sleep: Callable used for all pacing sleeps (``time.sleep`` by default).
        clock: Monotonic clock used to enforce ``retry.deadline``.
    """

    def __init__(
        self,
        store: ChannelStore | None = None,
        retry: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store if store is not None else ChannelStore()
        self.retry = retry or RetryPolicy()
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_config(
        cls,
        config: ConcoreConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> "Mailbox":
        """Build a session whose store and retry policy both come from ``config``."""
        config = config or ConcoreConfig()
        return cls(ChannelStore.from_config(config), retry=config.retry_policy(), sleep=sleep, clock=clock)

    @property
    def simtime(self) -> float:
        return self.store.simtime

    def initval(self, raw: str) -> np.ndarray:
        return self.store.initval(raw)

    def unchanged(self) -> bool:
        return self.store.unchanged()

    def read(self, port: int, name: str, initstr: str) -> np.ndarray:
        """Read the value vector of channel ``(port, name)``.

        The call always sleeps ``delay`` first. When the file cannot be read,
        ``initstr`` stands in for its content; when the content is empty the
        channel is polled until it is not.

        Returns:
            The message values without the timestamp. The timestamp is merged
            into the store's clock, which never moves backwards.

        Raises:
            MalformedPayload: The channel holds text that does not decode,
                or bytes that are not UTF-8.
            ChannelTimeout: The retry policy is bounded and was exhausted.
        """
        store = self.store
        path = channel_path(store.inpath, port, name)
        self._sleep(store.delay)
        content = _read_text(path, initstr)
        if not content:
            content = self._poll(path)

        store.record_read(content)
        timestamp, values = split_message(decode(content))
        store.merge_time(timestamp)
        return values

    def _poll(self, path: Path) -> str:
        store = self.store
        policy = self.retry
        interval = store.delay if policy.interval is None else policy.interval
        if _get_verbosity() >= 2:
            print(f"[Mailbox] Waiting for data on {path}")

        started = self._clock()
        attempts = 0
        content = ""
        while not content:
            if policy.max_attempts is not None and attempts >= policy.max_attempts:
                raise ChannelTimeout(path, attempts)
            if policy.deadline is not None and self._clock() - started >= policy.deadline:
                raise ChannelTimeout(path, attempts)
            self._sleep(interval)
            content = _read_text(path, "")
            store.retrycount += 1
            attempts += 1
        return content

    def write(self, port: int, name: str, values: Sequence[float] | np.ndarray | float, delta: float = 0) -> Path:
        """Write ``[simtime + delta, *values]`` to channel ``(port, name)``.

        The file is replaced atomically and the clock then advances by
        ``delta``, so the written header equals the new ``simtime``.

        Raises:
            ChannelAccessError: The directory or file could not be written.
        """
        store = self.store
        path = channel_path(store.outpath, port, name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ChannelAccessError(f"Cannot create channel directory {path.parent}: {exc}") from exc

        flat = np.asarray(values, dtype=float).ravel()
        text = encode([store.simtime + delta, *flat])
        try:
            _atomic_write(path, text)
        except OSError as exc:
            raise ChannelAccessError(f"Cannot write channel file {path}: {exc}") from exc

        store.advance(delta)
        return path
