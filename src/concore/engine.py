"""Execution loops that drive PID nodes.

Three drivers share :func:`step`:
    - ``run_batch`` walks a literal error sequence with no I/O,
    - ``reactive_loop`` steps once per notification of a trigger source,
    - ``run_control_loop`` closes the loop over mailbox channels, reading the
      measured signal and writing the control output each simulated tick.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Optional

import numpy as np

from .mailbox import Mailbox
from .node import PIDNode
from .payload import decode_scalar
from .triggers import TriggerSource


def _get_verbosity() -> int:
    """Get verbosity level from environment: 0=quiet, 1=normal, 2=verbose."""
    return int(os.environ.get("CONCORE_VERBOSITY", "1"))


@dataclass(frozen=True)
class StepRecord:
    step: int
    error: float
    p_term: float
    i_term: float
    d_term: float
    output: float
    integral: float
    simtime: Optional[float] = None


def step(node: PIDNode, error: float, dt: float = 1.0) -> float:
    """Run one control step of ``node`` and return its output."""
    return node.step(error, dt)


def trace_step(node: PIDNode, index: int, error: float, dt: float = 1.0, simtime: float | None = None) -> StepRecord:
    """Run one step and keep the individual terms alongside the output."""
    p_term, i_term, d_term = node.terms(error, dt)
    return StepRecord(
        step=index,
        error=float(error),
        p_term=p_term,
        i_term=i_term,
        d_term=d_term,
        output=p_term + i_term + d_term,
        integral=node.integral,
        simtime=simtime,
    )


def run_batch(node: PIDNode, errors: Iterable[float], dt: float = 1.0) -> np.ndarray:
    """Apply :func:`step` to each error in order and collect the outputs."""
    return np.array([step(node, error, dt) for error in errors], dtype=float)


def trace_batch(node: PIDNode, errors: Iterable[float], dt: float = 1.0) -> list[StepRecord]:
    return [trace_step(node, index, error, dt) for index, error in enumerate(errors, start=1)]


def _print_step(index: int, error: float, output: float) -> None:
    if _get_verbosity() >= 1:
        print(f"Step {index}: error={error:.6g} -> output={output:.6g}")


def reactive_loop(
    node: PIDNode,
    trigger: TriggerSource,
    max_steps: int = 100,
    dt: float = 1.0,
    report: Callable[[int, float, float], None] | None = None,
) -> list[float]:
    """Step ``node`` once for every notification from ``trigger``.

    Each notification carries the new content of the watched input, which
    must hold a single number (NumPy annotations are tolerated).

    Args:
        node: Controller to drive.
        trigger: Source of change notifications.
        max_steps: Stop after this many notifications.
        dt: Time step for every control step.
        report: Called as ``report(step, error, output)`` after each step;
            defaults to a progress line on stdout.

    Returns:
        The outputs in step order. Fewer than ``max_steps`` are returned when
        the trigger closes first.

    Raises:
        MalformedPayload: A notification did not hold a number.
    """
    if max_steps < 0:
        raise ValueError(f"max_steps must be non-negative, got {max_steps}")
    report = report or _print_step
    if _get_verbosity() >= 2:
        print(f"Node {node.id}: kp={node.kp}, ki={node.ki}, kd={node.kd}")

    outputs: list[float] = []
    while len(outputs) < max_steps:
        content = trigger.wait()
        if content is None:
            break
        error = decode_scalar(content)
        output = step(node, error, dt)
        outputs.append(output)
        report(len(outputs), error, output)

    if _get_verbosity() >= 2:
        print(f"Completed {len(outputs)} steps")
    return outputs


def run_control_loop(
    node: PIDNode,
    mailbox: Mailbox,
    *,
    setpoint: float,
    maxtime: float,
    in_port: int = 1,
    in_name: str = "ym",
    out_port: int = 1,
    out_name: str = "u",
    init_literal: str = "[0.0, 0.0]",
    delta: float = 1,
    dt: float = 1.0,
    wait_for_change: bool = True,
) -> list[StepRecord]:
    """Close a control loop over mailbox channels until ``maxtime``.

    Each tick reads the measured vector from ``(in_port, in_name)``, steps the
    node on ``setpoint - ym[0]`` and writes ``[u]`` to ``(out_port, out_name)``
    advancing the clock by ``delta``. With ``wait_for_change`` the read is
    repeated until :meth:`Mailbox.unchanged` reports fresh input, so the node
    does not act twice on the same message.

    The clock is seeded from ``init_literal``. The loop only ends once
    ``simtime`` reaches ``maxtime``, so either ``delta`` or a peer writing
    later timestamps must advance it.
    """
    mailbox.initval(init_literal)
    records: list[StepRecord] = []
    index = 0
    while mailbox.simtime < maxtime:
        index += 1
        ym = None
        while wait_for_change and mailbox.unchanged():
            ym = mailbox.read(in_port, in_name, init_literal)
        if ym is None:
            ym = mailbox.read(in_port, in_name, init_literal)
        if ym.size == 0:
            raise ValueError(f"Channel {in_port}/{in_name} carried no measured value")

        record = trace_step(node, index, setpoint - float(ym[0]), dt)
        mailbox.write(out_port, out_name, [record.output], delta=delta)
        records.append(replace(record, simtime=mailbox.simtime))
        if _get_verbosity() >= 2:
            print(f"Step {index}: simtime={mailbox.simtime:g}, ym={ym[0]:.4g}, u={record.output:.4g}")
    return records
