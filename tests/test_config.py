"""
Tests for configuration loading and validation.
"""

import pytest

from config import BroksumConfig, ConfigError, get_config, load_config, reload_config
from config.schema import AnalysisConfig, WeightsConfig
from domain.enums import BrokerGroup, ValuationMode
from domain.valuation import DEFAULT_SETTINGS


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run in an empty directory with no BROKSUM_ variables."""
    monkeypatch.chdir(tmp_path)
    for name in ("BROKSUM_VALUATION_MODE", "BROKSUM_INDEX_PE", "BROKSUM_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


class TestDefaults:
    """Tests for built-in defaults."""

    def test_defaults_match_engine_defaults(self):
        config = BroksumConfig()
        assert config.to_domain() == DEFAULT_SETTINGS

    def test_analysis_defaults(self):
        limits = AnalysisConfig().to_domain()
        assert limits.consistency_min_periods == 3
        assert limits.max_consistent == 10
        assert limits.max_switchers == 15


class TestLoadConfig:
    """Tests for TOML loading and env overrides."""

    def test_load_explicit_file(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text(
            'valuation_mode = "aggressive"\n'
            "index_pe = 14.5\n"
            "[thresholds]\n"
            "pe_cheap = 8.0\n"
            "[analysis]\n"
            "max_consistent = 5\n"
            "[brokers]\n"
            'AK = "Asing"\n'
            'pd = "Lokal"\n'
        )
        config = load_config(path)

        assert config.valuation_mode == ValuationMode.AGGRESSIVE
        assert config.index_pe == 14.5
        assert config.to_domain().thresholds.pe_cheap == 8.0
        assert config.analysis.to_domain().max_consistent == 5
        directory = config.broker_directory()
        assert directory.group_of("AK") == BrokerGroup.FOREIGN
        assert directory.group_of("PD") == BrokerGroup.DOMESTIC

    def test_search_path_in_cwd(self, tmp_path):
        (tmp_path / "broksum.toml").write_text('log_level = "debug"\n')
        assert get_config().log_level == "DEBUG"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        (tmp_path / "broksum.toml").write_text('valuation_mode = "aggressive"\n')
        monkeypatch.setenv("BROKSUM_VALUATION_MODE", "Conservative")
        monkeypatch.setenv("BROKSUM_INDEX_PE", "13.2")
        config = reload_config()
        assert config.valuation_mode == ValuationMode.CONSERVATIVE
        assert config.index_pe == 13.2

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.toml")

    def test_bad_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("valuation_mode = \n")
        with pytest.raises(ConfigError) as exc:
            load_config(path)
        assert exc.value.source == str(path)

    def test_bad_env_number(self, monkeypatch):
        monkeypatch.setenv("BROKSUM_INDEX_PE", "cheap")
        with pytest.raises(ConfigError) as exc:
            load_config()
        assert exc.value.field == "BROKSUM_INDEX_PE"

    def test_validation_error_names_field(self, tmp_path):
        path = tmp_path / "weights.toml"
        path.write_text("[weights]\nroe = 0.9\n")
        with pytest.raises(ConfigError) as exc:
            load_config(path)
        assert exc.value.field.startswith("weights")
        assert "sum to 1.0" in str(exc.value)


class TestValidation:
    """Tests for schema validators."""

    def test_weights_must_sum(self):
        with pytest.raises(ValueError):
            WeightsConfig(pe=0.7, pbv=0.7)

    def test_threshold_ordering(self):
        with pytest.raises(ValueError, match="pe_expensive must be greater"):
            BroksumConfig(thresholds={"pe_cheap": 25.0})

    def test_unknown_broker_group(self):
        with pytest.raises(ValueError, match="Unknown broker group"):
            BroksumConfig(brokers={"AK": "martian"})

    def test_trend_thresholds(self):
        with pytest.raises(ValueError):
            AnalysisConfig(strong_trend_periods=3, moderate_trend_periods=4)
        with pytest.raises(ValueError):
            AnalysisConfig(period_count=4)

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            BroksumConfig(log_level="loud")

    def test_color_format(self):
        with pytest.raises(ValueError):
            BroksumConfig(colors={"excellent": "green"})
