"""
Tests for the significance correction and binomial tails.
"""

import pytest
from scipy.stats import binom, binomtest

from coincidence import binomial, significance
from coincidence.config import AltHypothesis, Correction
from coincidence.errors import ConfigurationError


class TestCorrection:
    """Threshold adjustment for multiple comparisons."""

    def test_none(self):
        assert significance.correct(0.05, Correction.NONE, 100) == 0.05

    def test_bonferroni(self):
        assert significance.correct(0.05, "bonferroni", 10) == pytest.approx(0.005)

    def test_sidak(self):
        expected = 1 - (1 - 0.05) ** (1 / 10)
        assert significance.correct(0.05, "sidak", 10) == pytest.approx(expected)

    def test_sidak_not_stricter_than_bonferroni(self):
        assert significance.correct(0.05, "sidak", 50) >= significance.correct(0.05, "bonferroni", 50)

    def test_no_comparisons(self):
        assert significance.correct(0.05, "bonferroni", 0) == 0.05

    def test_unknown(self):
        with pytest.raises(ConfigurationError):
            significance.correct(0.05, "holm-ish", 10)


class TestBinomial:
    """Tail p-values against scipy.stats."""

    def test_less(self):
        assert binomial.one_sided_less(1, 3, 4 / 9) == pytest.approx(binom.cdf(1, 3, 4 / 9))

    def test_greater(self):
        assert binomial.one_sided_greater(2, 5, 0.3) == pytest.approx(1 - binom.cdf(1, 5, 0.3))

    def test_greater_at_zero_is_one(self):
        assert binomial.one_sided_greater(0, 5, 0.3) == pytest.approx(1.0)

    def test_two_sided(self):
        assert binomial.two_sided(1, 3, 4 / 9) == pytest.approx(binomtest(1, 3, 4 / 9).pvalue)

    @pytest.mark.parametrize(
        "alt, fn",
        [
            (AltHypothesis.LESS, binomial.one_sided_less),
            ("greater", binomial.one_sided_greater),
            ("two-sided", binomial.two_sided),
        ],
    )
    def test_dispatch(self, alt, fn):
        assert binomial.test(alt, 3, 10, 0.2) == fn(3, 10, 0.2)

    def test_unknown_tail(self):
        with pytest.raises(ConfigurationError):
            binomial.test("sideways", 1, 3, 0.5)
