"""Tests for configuration loading, merging and validation."""

import os

import pytest

from coupling_insight.config import (
    AnalysisConfig,
    ThresholdConfig,
    find_config_file,
    load_config,
    matches_any,
)
from coupling_insight.dimensions import Distance, Strength
from coupling_insight.exceptions import ConfigurationError, InvalidConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("COUPLING_"):
            monkeypatch.delenv(key)


def _write_config(directory, text, name=".coupling.toml"):
    path = directory / name
    path.write_text(text)
    return path


class TestDefaults:
    def test_analysis_defaults(self):
        config = AnalysisConfig()
        assert config.workers is None
        assert config.history_enabled is True
        assert config.history_months == 6
        assert config.exclude_tests is False
        assert config.show_hidden_issues is False
        assert config.ignored_crates == ["std", "core", "alloc"]

    def test_threshold_defaults(self):
        t = ThresholdConfig()
        assert t.max_efferent_coupling == 15
        assert t.max_afferent_coupling == 20
        assert (t.max_functions, t.max_types, t.max_impls) == (30, 15, 20)
        assert (t.volatility_low_max, t.volatility_medium_max) == (2, 10)

    def test_default_weights(self):
        weights = AnalysisConfig().weights
        assert weights.weight_of(Strength.MODEL) == 0.5
        assert weights.weight_of(Distance.DIFFERENT_CONTAINER) == 1.0


class TestValidation:
    def test_zero_workers_rejected(self):
        with pytest.raises(InvalidConfigError):
            AnalysisConfig(workers=0)

    def test_zero_history_months_rejected(self):
        with pytest.raises(InvalidConfigError):
            AnalysisConfig(history_months=0)

    def test_unknown_verbosity_rejected(self):
        with pytest.raises(InvalidConfigError):
            AnalysisConfig(verbosity="chatty")

    def test_threshold_out_of_range(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            ThresholdConfig(strong_coupling=1.5)
        assert exc_info.value.key == "strong_coupling"

    def test_close_must_be_below_far(self):
        with pytest.raises(InvalidConfigError):
            ThresholdConfig(close_distance=0.5, far_distance=0.5)

    def test_volatility_buckets_must_increase(self):
        with pytest.raises(InvalidConfigError):
            ThresholdConfig(volatility_low_max=5, volatility_medium_max=5)

    def test_invalid_config_error_is_configuration_error(self):
        assert issubclass(InvalidConfigError, ConfigurationError)


class TestLoadConfig:
    def test_no_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path) == AnalysisConfig()

    def test_discovers_project_file(self, tmp_path):
        _write_config(
            tmp_path,
            """
[analysis]
exclude_tests = true
exclude = ["src/generated/*"]
prelude_modules = ["src/prelude.rs"]

[volatility]
high = ["src/pricing/*"]

[thresholds]
max_dependencies = 7
max_dependents = 9
""",
        )
        config = load_config(tmp_path)
        assert config.exclude_tests is True
        assert config.exclude_patterns == ["src/generated/*"]
        assert config.prelude_modules == ["src/prelude.rs"]
        assert config.thresholds.max_efferent_coupling == 7
        assert config.thresholds.max_afferent_coupling == 9
        assert config.volatility_override("src/pricing/tax/vat.rs") == "high"
        assert config.volatility_override("src/core.rs") is None

    def test_discovers_file_in_parent_directory(self, tmp_path):
        _write_config(tmp_path, "[analysis]\nhistory_months = 3\n", name="coupling.toml")
        nested = tmp_path / "crates" / "engine"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == (tmp_path / "coupling.toml").resolve()
        assert load_config(nested).history_months == 3

    def test_explicit_file_overrides_discovered(self, tmp_path):
        _write_config(tmp_path, "[analysis]\nhistory_months = 3\n")
        explicit = _write_config(tmp_path, "[analysis]\nhistory_months = 4\n", name="ci.toml")
        assert load_config(tmp_path, config_file=explicit).history_months == 4

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(tmp_path, config_file=tmp_path / "nope.toml")

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        _write_config(tmp_path, "[analysis]\nhistory_months = 3\n")
        monkeypatch.setenv("COUPLING_HISTORY_MONTHS", "12")
        monkeypatch.setenv("COUPLING_HISTORY_ENABLED", "false")
        config = load_config(tmp_path)
        assert config.history_months == 12
        assert config.history_enabled is False

    def test_keyword_overrides_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("COUPLING_HISTORY_MONTHS", "12")
        assert load_config(tmp_path, history_months=2).history_months == 2

    def test_none_overrides_are_ignored(self, tmp_path):
        _write_config(tmp_path, "[analysis]\nhistory_months = 9\n")
        config = load_config(tmp_path, history_months=None, workers=None)
        assert config.history_months == 9
        assert config.workers is None

    def test_verbose_and_quiet_flags(self, tmp_path):
        assert load_config(tmp_path, verbose=True).verbosity == "verbose"
        assert load_config(tmp_path, quiet=True).verbosity == "quiet"
        assert load_config(tmp_path, verbose=False, quiet=False).verbosity == "normal"

    def test_weight_overrides(self, tmp_path):
        _write_config(tmp_path, "[weights.distance]\nsame_module = 0.3\n")
        config = load_config(tmp_path)
        assert config.weights.weight_of(Distance.SAME_MODULE) == 0.3
        assert config.weights.weight_of(Distance.DIFFERENT_MODULE) == 0.5


class TestLoadConfigErrors:
    def test_malformed_toml(self, tmp_path):
        _write_config(tmp_path, "[analysis\nexclude_tests = true\n")
        with pytest.raises(ConfigurationError):
            load_config(tmp_path)

    def test_unknown_section(self, tmp_path):
        _write_config(tmp_path, "[reporting]\ncolor = true\n")
        with pytest.raises(ConfigurationError, match="reporting"):
            load_config(tmp_path)

    def test_unknown_key(self, tmp_path):
        _write_config(tmp_path, "[analysis]\nturbo = true\n")
        with pytest.raises(ConfigurationError):
            load_config(tmp_path)

    def test_invalid_threshold_value(self, tmp_path):
        _write_config(tmp_path, "[thresholds]\nstrong_coupling = 2.0\n")
        with pytest.raises(InvalidConfigError):
            load_config(tmp_path)

    def test_non_increasing_weights(self, tmp_path):
        _write_config(tmp_path, "[weights.strength]\nmodel = 0.2\n")
        with pytest.raises(InvalidConfigError):
            load_config(tmp_path)

    def test_unknown_weight_level(self, tmp_path):
        _write_config(tmp_path, "[weights.strength]\nsticky = 0.2\n")
        with pytest.raises(ConfigurationError):
            load_config(tmp_path)

    def test_bad_env_bool(self, tmp_path, monkeypatch):
        monkeypatch.setenv("COUPLING_EXCLUDE_TESTS", "maybe")
        with pytest.raises(ConfigurationError, match="COUPLING_EXCLUDE_TESTS"):
            load_config(tmp_path)


class TestMatchesAny:
    def test_star_crosses_directories(self):
        assert matches_any("src/core/deep/x.rs", ["src/core/*"])

    def test_no_patterns(self):
        assert not matches_any("src/lib.rs", [])

    def test_exact_path(self):
        assert matches_any("src/prelude.rs", ["src/prelude.rs"])
        assert not matches_any("src/prelude2.rs", ["src/prelude.rs"])
