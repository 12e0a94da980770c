"""Tests for `trafficeval.config`."""

from trafficeval.config import DEFAULTS, TrafficDefaults


def test_default_values():
    cfg = TrafficDefaults()
    assert cfg.default_global_multiplier == 1.0
    assert cfg.default_edge_multiplier == 1.0
    assert (cfg.max_qps, cfg.rate_limit_qps) == (1000.0, 500.0)
    assert cfg.rate_limit_qps <= cfg.max_qps


def test_flow_name_numbering():
    assert DEFAULTS.flow_name(1) == "Flow"
    assert DEFAULTS.flow_name(0) == "Flow"
    assert DEFAULTS.flow_name(3) == "Flow 3"
    assert TrafficDefaults(default_flow_name="Tab").flow_name(2) == "Tab 2"
