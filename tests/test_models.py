import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from models import PortfolioConfig, config_from_mapping, replace_config


def test_config_is_hashable_and_structurally_equal():
    a = PortfolioConfig(btc_price_rates=[10, 20])
    b = PortfolioConfig(btc_price_rates=(10, 20))
    assert a == b
    assert hash(a) == hash(b)
    assert isinstance(a.btc_price_rates, tuple)


def test_replace_config_produces_new_value():
    config = PortfolioConfig()
    updated = replace_config(config, time_horizon=5, income_rates=[1, 2])
    assert updated.time_horizon == 5
    assert updated.income_rates == (1, 2)
    assert config.time_horizon != 5


def test_config_from_mapping_ignores_unknown_keys():
    config = config_from_mapping({"btc_stack": 2.5, "economic_scenario": "tight"})
    assert config.btc_stack == 2.5
    assert config.savings_pct == PortfolioConfig().savings_pct


def test_has_loan():
    assert PortfolioConfig().has_loan
    assert not PortfolioConfig(collateral_pct=0).has_loan
    assert not PortfolioConfig(ltv_ratio=0).has_loan
