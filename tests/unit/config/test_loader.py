from pathlib import Path

import pytest

from portfolio_backtesting.config.loader import (
    build_backtest_setup,
    build_config,
    deep_merge,
    load_backtest_config,
    load_yaml_config,
    resolve_path,
)
from portfolio_backtesting.errors import ConfigurationError

REPO_CONFIG = Path(__file__).resolve().parents[3] / "config" / "index_fund.yml"


def _raw_config() -> dict:
    return {
        "vault": {"base_asset_id": "USDC", "initial_deposit": 1_000_000},
        "assets": [
            {"asset_id": "SPX", "wrapper_id": "sSPX", "target_weight_bps": 6000},
            {
                "asset_id": "TBILL",
                "wrapper_id": "wTBILL",
                "target_weight_bps": 4000,
                "is_yield_generating": True,
            },
        ],
        "simulation": {"data_policy": "lenient"},
    }


def test_deep_merge_merges_nested_mappings_without_mutating():
    base = {"simulation": {"data_policy": "strict", "price_tolerance_seconds": 10}}
    merged = deep_merge(base, {"simulation": {"data_policy": "lenient"}})

    assert merged == {
        "simulation": {"data_policy": "lenient", "price_tolerance_seconds": 10}
    }
    assert base["simulation"]["data_policy"] == "strict"


def test_build_config_precedence(write_yaml):
    path = write_yaml("cfg.yml", {"metrics": {"risk_free_rate_bps": 100}, "x": 1})

    config = build_config(
        {"metrics": {"risk_free_rate_bps": 0}, "x": 0, "y": 0},
        path,
        {"x": 2},
    )

    assert config == {"metrics": {"risk_free_rate_bps": 100}, "x": 2, "y": 0}


def test_load_yaml_config_errors(tmp_path, write_yaml):
    assert load_yaml_config(None) == {}
    with pytest.raises(FileNotFoundError):
        load_yaml_config(tmp_path / "missing.yml")
    with pytest.raises(ConfigurationError, match="mapping"):
        load_yaml_config(write_yaml("list.yml", [1, 2, 3]))


def test_resolve_path_expands_env(monkeypatch, tmp_path):
    monkeypatch.setenv("PB_CFG_DIR", str(tmp_path))

    assert resolve_path("$PB_CFG_DIR/a.yml") == tmp_path / "a.yml"
    assert resolve_path(None) is None


def test_build_backtest_setup_builds_typed_sections():
    setup = build_backtest_setup(_raw_config())

    assert [a.asset_id for a in setup.assets] == ["SPX", "TBILL"]
    assert setup.assets[1].is_yield_generating is True
    assert setup.vault.initial_deposit == 1_000_000
    assert setup.simulation.data_policy == "lenient"
    assert setup.metrics.risk_free_rate_bps == 0


def test_build_backtest_setup_rejects_unknown_keys():
    raw = _raw_config()
    raw["vault"]["leverage"] = 3

    with pytest.raises(ConfigurationError, match="unknown keys in 'vault': leverage"):
        build_backtest_setup(raw)


def test_build_backtest_setup_requires_vault_and_asset_list():
    raw = _raw_config()
    del raw["vault"]
    with pytest.raises(ConfigurationError, match="vault"):
        build_backtest_setup(raw)

    raw = _raw_config()
    raw["assets"] = {"asset_id": "SPX"}
    with pytest.raises(ConfigurationError, match="list"):
        build_backtest_setup(raw)


def test_build_backtest_setup_propagates_field_validation():
    raw = _raw_config()
    raw["simulation"] = {"data_policy": "fuzzy"}

    with pytest.raises(ConfigurationError, match="data_policy"):
        build_backtest_setup(raw)


def test_missing_required_field_is_a_configuration_error():
    raw = _raw_config()
    del raw["assets"][0]["wrapper_id"]

    with pytest.raises(ConfigurationError, match=r"assets\[0\]"):
        build_backtest_setup(raw)


def test_load_backtest_config_with_overrides(write_yaml):
    path = write_yaml("fund.yml", _raw_config())

    setup = load_backtest_config(path, {"metrics": {"risk_free_rate_bps": 250}})

    assert setup.metrics.risk_free_rate_bps == 250
    assert setup.simulation.data_policy == "lenient"


def test_shipped_index_fund_config_loads():
    setup = load_backtest_config(REPO_CONFIG)

    assert sum(a.target_weight_bps for a in setup.assets) == 10_000
    assert setup.simulation.default_yield_rate_bps == 450
    assert setup.metrics.risk_free_rate_bps == 200
