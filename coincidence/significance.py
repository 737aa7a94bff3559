from __future__ import annotations

import numpy as np

from .config import Correction
from .errors import ConfigurationError


def correct(sig_level: float, correction: Correction | str, n: int) -> float:
    """Adjust a significance threshold for ``n`` simultaneous comparisons.

    - none:       sig_level
    - bonferroni: sig_level / n
    - sidak:      1 - (1 - sig_level)^(1/n)

    With ``n <= 0`` there is nothing to correct for and the threshold is returned unchanged.
    """
    try:
        correction = Correction(correction)
    except ValueError:
        raise ConfigurationError(f"Unknown correction={correction!r}") from None

    sig_level = float(sig_level)
    n = int(n)
    if correction is Correction.NONE or n <= 0:
        return sig_level
    if correction is Correction.BONFERRONI:
        return sig_level / n
    if correction is Correction.SIDAK:
        # expm1/log1p keep precision when sig_level / n is tiny
        return float(-np.expm1(np.log1p(-sig_level) / n))
    raise ConfigurationError(f"Unhandled correction={correction!r}")
