"""Unit tests for clock.py and config.py modules."""

import numpy as np
import pytest

from concore.clock import ChannelStore
from concore.config import ConcoreConfig, RetryPolicy
from concore.errors import MalformedPayload


class TestConcoreConfig:
    """Test ConcoreConfig validation."""

    def test_defaults(self):
        config = ConcoreConfig()
        assert config.delay == 0.01
        assert config.inpath == "./in"
        assert config.outpath == "./out"
        assert (config.default_kp, config.default_ki, config.default_kd) == (1.0, 0.0, 0.0)

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError, match="delay must be"):
            ConcoreConfig(delay=-0.1)

    def test_zero_dt_rejected(self):
        with pytest.raises(ValueError, match="dt must be non-zero"):
            ConcoreConfig(dt=0.0)

    def test_retry_policy_defaults_unbounded(self):
        policy = ConcoreConfig().retry_policy()
        assert policy == RetryPolicy()
        assert not policy.bounded

    def test_retry_policy_bounded(self):
        policy = ConcoreConfig(max_attempts=3).retry_policy()
        assert policy.bounded
        assert policy.max_attempts == 3

    def test_invalid_attempts_rejected(self):
        with pytest.raises(ValueError, match="max_attempts"):
            ConcoreConfig(max_attempts=0)


class TestChannelStore:
    """Test ChannelStore state handling."""

    def test_initial_state(self):
        store = ChannelStore()
        assert store.simtime == 0.0
        assert store.retrycount == 0
        assert store.accumulated == ""
        assert store.previous_accumulated == ""

    def test_from_config(self):
        store = ChannelStore.from_config(ConcoreConfig(delay=0.5, inpath="a", outpath="b"))
        assert store.delay == 0.5
        assert store.inpath == "a"
        assert store.outpath == "b"

    def test_initval_sets_simtime_directly(self):
        store = ChannelStore(simtime=10.0)
        values = store.initval("[2.0, 1.5, 2.5, 3.5]")
        assert store.simtime == 2.0
        np.testing.assert_array_equal(values, [1.5, 2.5, 3.5])

    def test_initval_timestamp_only(self):
        store = ChannelStore()
        values = store.initval("[4.0]")
        assert store.simtime == 4.0
        assert values.size == 0

    def test_initval_malformed(self):
        store = ChannelStore()
        with pytest.raises(MalformedPayload):
            store.initval("[0.0, oops]")
        assert store.simtime == 0.0

    def test_merge_time_never_regresses(self):
        store = ChannelStore(simtime=5.0)
        assert store.merge_time(3.0) == 5.0
        assert store.merge_time(7.0) == 7.0

    def test_advance(self):
        store = ChannelStore(simtime=1.0)
        assert store.advance(2) == 3.0

    def test_reset_keeps_configuration(self):
        store = ChannelStore(simtime=9.0, delay=0.2, retrycount=4, accumulated="x", previous_accumulated="y", inpath="i")
        store.reset()
        assert store.simtime == 0.0
        assert store.retrycount == 0
        assert store.accumulated == ""
        assert store.previous_accumulated == ""
        assert store.delay == 0.2
        assert store.inpath == "i"

    def test_stores_are_independent(self):
        first = ChannelStore()
        second = ChannelStore()
        first.initval("[3.0]")
        first.record_read("[3.0]")
        assert second.simtime == 0.0
        assert second.accumulated == ""


class TestUnchanged:
    """Test the convergence barrier on the store."""

    def test_no_reads_converges_immediately(self):
        store = ChannelStore()
        assert store.unchanged() is True

    def test_burst_then_quiet(self):
        store = ChannelStore()
        store.record_read("[1.0, 2.0]")
        assert store.unchanged() is False
        assert store.previous_accumulated == "[1.0, 2.0]"
        assert store.unchanged() is True
        assert store.accumulated == ""

    def test_intervening_read_delays_convergence(self):
        store = ChannelStore()
        store.record_read("[1.0]")
        store.unchanged()
        store.record_read("[2.0]")
        assert store.unchanged() is False
        assert store.unchanged() is True

    def test_same_content_after_convergence_converges_again(self):
        """Re-reading a stale message after a converged round is not fresh input."""
        store = ChannelStore()
        store.record_read("[1.0]")
        assert store.unchanged() is False
        assert store.unchanged() is True
        store.record_read("[1.0]")
        assert store.unchanged() is True

    def test_new_content_after_convergence_is_fresh(self):
        store = ChannelStore()
        store.record_read("[1.0]")
        store.unchanged()
        store.unchanged()
        store.record_read("[2.0]")
        assert store.unchanged() is False

    def test_repeat_check_after_convergence(self):
        store = ChannelStore()
        store.record_read("[1.0]")
        store.unchanged()
        assert store.unchanged() is True
        assert store.unchanged() is False
        assert store.unchanged() is True
