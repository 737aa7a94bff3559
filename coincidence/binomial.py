from __future__ import annotations

from scipy.stats import binom, binomtest

from .config import AltHypothesis
from .errors import ConfigurationError


def one_sided_less(k: int, n: int, p: float) -> float:
    """P(X <= k) for X ~ Binomial(n, p)."""
    return float(binom.cdf(int(k), int(n), float(p)))


def one_sided_greater(k: int, n: int, p: float) -> float:
    """P(X >= k) for X ~ Binomial(n, p)."""
    return float(binom.sf(int(k) - 1, int(n), float(p)))


def two_sided(k: int, n: int, p: float) -> float:
    """Sum of P(X = i) over every outcome no more likely than k (scipy's exact test)."""
    return float(binomtest(int(k), int(n), float(p), alternative="two-sided").pvalue)


_TAILS = {
    AltHypothesis.LESS: one_sided_less,
    AltHypothesis.GREATER: one_sided_greater,
    AltHypothesis.TWO_SIDED: two_sided,
}


def test(alternative: AltHypothesis | str, k: int, n: int, p: float) -> float:
    """Binomial test p-value of ``k`` successes in ``n`` trials at success rate ``p``."""
    try:
        tail = _TAILS[AltHypothesis(alternative)]
    except (KeyError, ValueError):
        raise ConfigurationError(f"Unknown alt_hypothesis={alternative!r}") from None
    return tail(k, n, p)

