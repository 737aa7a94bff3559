"""
Tests for analysis options and YAML loading.
"""

import pytest

from coincidence.config import (
    AltHypothesis,
    AnalysisConfig,
    Correction,
    MaxMode,
    SetMode,
    config_from_mapping,
    load_analysis_config,
    load_yaml,
)
from coincidence.errors import ConfigurationError


class TestAnalysisConfig:
    """Construction and validation."""

    def test_defaults(self):
        cfg = AnalysisConfig()
        assert cfg.sig_level == 0.05
        assert cfg.correction is Correction.BONFERRONI
        assert cfg.coin_set_mode is SetMode.INTERSECTION
        assert cfg.coin_max_mode is MaxMode.ACCOMPANY
        assert cfg.alt_hypothesis is AltHypothesis.TWO_SIDED
        assert not cfg.output_all
        assert not cfg.verbose

    def test_strings_are_coerced(self):
        cfg = AnalysisConfig(coin_set_mode="FULL", coin_max_mode="avoid", alt_hypothesis="less")
        assert cfg.coin_set_mode is SetMode.FULL
        assert cfg.coin_max_mode is MaxMode.AVOID
        assert cfg.alt_hypothesis is AltHypothesis.LESS

    @pytest.mark.parametrize(
        "kw",
        [
            {"coin_set_mode": "union"},
            {"coin_max_mode": "repel"},
            {"alt_hypothesis": "both"},
            {"correction": "fdr"},
            {"sig_level": 0.0},
            {"n_jobs": 0},
        ],
    )
    def test_invalid_values(self, kw):
        with pytest.raises(ConfigurationError):
            AnalysisConfig(**kw)

    def test_to_dict_uses_plain_values(self):
        d = AnalysisConfig(coin_max_mode="avoid").to_dict()
        assert d["coin_max_mode"] == "avoid"
        assert d["alt_hypothesis"] == "two-sided"


class TestLoading:
    """YAML configuration files."""

    def test_load_flat(self, tmp_path):
        p = tmp_path / "analysis.yaml"
        p.write_text("sig_level: 0.01\ncoin_set_mode: full\noutput_all: true\nn_jobs: 2\n")
        cfg = load_analysis_config(p)
        assert cfg.sig_level == 0.01
        assert cfg.coin_set_mode is SetMode.FULL
        assert cfg.output_all
        assert cfg.n_jobs == 2

    def test_load_nested(self, tmp_path):
        p = tmp_path / "analysis.yaml"
        p.write_text("analysis:\n  coin_max_mode: avoid\n  correction: sidak\n")
        cfg = load_analysis_config(p)
        assert cfg.coin_max_mode is MaxMode.AVOID
        assert cfg.correction is Correction.SIDAK

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError):
            config_from_mapping({"coin_mode": "full"})

    def test_empty_yaml(self, tmp_path):
        p = tmp_path / "empty.yaml"
        p.write_text("")
        assert load_yaml(p) == {}
        assert load_analysis_config(p) == AnalysisConfig()

    def test_non_mapping(self, tmp_path):
        p = tmp_path / "list.yaml"
        p.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            load_yaml(p)
