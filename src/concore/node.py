"""PID control nodes."""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass

from .errors import DivisionByZero


@dataclass(slots=True)
class PIDNode:
    """A proportional-integral-derivative controller with private state.

    Attributes:
        id: Node identifier (the GraphML node id when loaded from a graph).
        kp, ki, kd: Proportional, integral and derivative gains.
        integral: Running sum of ``error * dt`` over all steps since the last reset.
        prev_error: Error seen by the previous step, used by the derivative term.

    Gains must be finite; validation is performed in ``__post_init__``.
    """

    id: str
    kp: float = 1.0
    ki: float = 0.0
    kd: float = 0.0
    integral: float = 0.0
    prev_error: float = 0.0

    def __post_init__(self) -> None:
        for name in ("kp", "ki", "kd"):
            value = getattr(self, name)
            if not isinstance(value, numbers.Real) or not math.isfinite(value):
                raise ValueError(
                    f"Node '{self.id}': {name} must be a finite number, got {value!r}.\n"
                    f"Check the gains declared for this node."
                )
            setattr(self, name, float(value))

    def reset(self) -> "PIDNode":
        """Zero the integral accumulator and the remembered error."""
        self.integral = 0.0
        self.prev_error = 0.0
        return self

    def terms(self, error: float, dt: float = 1.0) -> tuple[float, float, float]:
        """Advance the state by one step and return the (P, I, D) terms.

        Raises:
            DivisionByZero: ``dt`` is zero. The state is left untouched.
        """
        if dt == 0:
            raise DivisionByZero(f"Node '{self.id}': dt must be non-zero for the derivative term")
        error = float(error)
        p_term = self.kp * error

        self.integral += error * dt
        i_term = self.ki * self.integral

        d_term = self.kd * (error - self.prev_error) / dt
        self.prev_error = error
        return p_term, i_term, d_term

    def step(self, error: float, dt: float = 1.0) -> float:
        """Perform one control step and return the controller output."""
        p_term, i_term, d_term = self.terms(error, dt)
        return p_term + i_term + d_term
