"""Unit tests for node.py module."""

import numpy as np
import pytest

from concore.errors import DivisionByZero
from concore.node import PIDNode


class TestPIDNodeInitialization:
    """Test PIDNode construction."""

    def test_defaults(self):
        node = PIDNode("n1")
        assert (node.kp, node.ki, node.kd) == (1.0, 0.0, 0.0)
        assert node.integral == 0.0
        assert node.prev_error == 0.0

    def test_integer_gains_widened(self):
        node = PIDNode("n1", kp=2, ki=np.int64(1), kd=0)
        assert isinstance(node.kp, float)
        assert isinstance(node.ki, float)

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), "1.0", None])
    def test_invalid_gain_rejected(self, bad):
        with pytest.raises(ValueError, match="kd must be a finite number"):
            PIDNode("n1", kd=bad)


class TestStep:
    """Test PIDNode.step()."""

    def test_proportional_only(self):
        node = PIDNode("p", kp=3.0)
        assert node.step(2.0) == pytest.approx(6.0)

    def test_integral_accumulates_with_dt(self):
        node = PIDNode("i", kp=0.0, ki=1.0)
        node.step(2.0, dt=0.5)
        assert node.integral == pytest.approx(1.0)
        assert node.step(2.0, dt=0.5) == pytest.approx(2.0)

    def test_derivative_uses_previous_error(self):
        node = PIDNode("d", kp=0.0, kd=2.0)
        assert node.step(1.0) == pytest.approx(2.0)
        assert node.step(4.0, dt=0.5) == pytest.approx(12.0)
        assert node.prev_error == 4.0

    def test_terms_sum_to_output(self):
        node = PIDNode("pid", kp=2.0, ki=0.5, kd=0.1)
        p_term, i_term, d_term = node.terms(5.0)
        assert (p_term, i_term, d_term) == pytest.approx((10.0, 2.5, 0.5))

    @pytest.mark.parametrize("error", [-3.0, 0.0, 1.0, 1e6])
    def test_zero_dt_raises(self, error):
        node = PIDNode("pid", kp=1.0, ki=1.0, kd=0.5)
        with pytest.raises(DivisionByZero):
            node.step(error, dt=0.0)

    def test_zero_dt_leaves_state_untouched(self):
        node = PIDNode("pid", kp=1.0, ki=1.0, kd=0.5)
        node.step(2.0)
        with pytest.raises(ZeroDivisionError):
            node.step(5.0, dt=0)
        assert node.integral == 2.0
        assert node.prev_error == 2.0


class TestReset:
    """Test PIDNode.reset()."""

    def test_reset_zeroes_state(self):
        node = PIDNode("pid", kp=2.0, ki=0.5, kd=0.1)
        node.step(5.0)
        node.step(3.0)
        assert node.reset() is node
        assert node.integral == 0.0
        assert node.prev_error == 0.0
        assert node.kp == 2.0

    def test_nodes_do_not_share_state(self):
        first = PIDNode("a", ki=1.0)
        second = PIDNode("b", ki=1.0)
        first.step(4.0)
        assert second.integral == 0.0
