"""Reporting utilities for node trajectories."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import matplotlib.pyplot as plt
import numpy as np
from tabulate import tabulate

from .engine import StepRecord


def summarize_trajectory(records: Iterable[StepRecord], title: str | None = None) -> str:
    records_list = list(records)
    show_time = any(record.simtime is not None for record in records_list)
    rows: list[tuple] = []
    for record in records_list:
        row = [
            record.step,
            f"{record.error:.4f}",
            f"{record.p_term:.4f}",
            f"{record.i_term:.4f}",
            f"{record.d_term:.4f}",
            f"{record.output:.4f}",
            f"{record.integral:.4f}",
        ]
        if show_time:
            row.insert(1, "" if record.simtime is None else f"{record.simtime:g}")
        rows.append(tuple(row))

    headers = ["Step", "Error", "P", "I", "D", "Output", "Integral"]
    if show_time:
        headers.insert(1, "simtime")
    table = tabulate(rows, headers=headers, tablefmt="github", disable_numparse=True)

    if records_list:
        outputs = np.array([record.output for record in records_list])
        footer = f"Final output: {outputs[-1]:.4f} (min {outputs.min():.4f}, max {outputs.max():.4f})"
    else:
        footer = "No steps recorded"
    parts = [title, table, footer] if title else [table, footer]
    return "\n".join(parts)


def plot_trajectory(records: Iterable[StepRecord], out_path: str | Path, title: str = "PID trajectory") -> Path:
    """Plot error, output and integral per step and save the figure."""
    records_list = list(records)
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    steps = [record.step for record in records_list]
    plt.figure(figsize=(7.5, 5.0))
    plt.plot(steps, [record.error for record in records_list], "o-", label="Error", linewidth=2.0)
    plt.plot(steps, [record.output for record in records_list], "s-", label="Output", linewidth=2.0)
    plt.plot(steps, [record.integral for record in records_list], "^--", label="Integral", linewidth=2.0)
    plt.xlabel("Step")
    plt.ylabel("Value")
    plt.title(title)
    plt.grid(True, alpha=0.3)
    plt.legend()
    plt.tight_layout()
    plt.savefig(out_path)
    plt.close()
    return out_path
