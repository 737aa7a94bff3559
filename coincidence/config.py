from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigurationError


class SetMode(str, Enum):
    """How the universe of observations is sized for one pair."""

    INTERSECTION = "intersection"  # |E_A u E_B|
    FULL = "full"  # every connector in the dataset


class MaxMode(str, Enum):
    """What counts as a success under the null model."""

    AVOID = "avoid"  # exactly one of the pair present
    ACCOMPANY = "accompany"  # both present


class AltHypothesis(str, Enum):
    LESS = "less"
    GREATER = "greater"
    TWO_SIDED = "two-sided"


class Correction(str, Enum):
    NONE = "none"
    BONFERRONI = "bonferroni"
    SIDAK = "sidak"


def _coerce(enum_cls: type, value: Any, key: str) -> Enum:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(f"Invalid {key}={value!r} (use one of: {allowed})") from None


@dataclass(frozen=True)
class AnalysisConfig:
    """Options for one coincidence run.

    Shared read-only by every pair evaluation. Mode fields accept either the
    enum member or its string value; anything else raises ConfigurationError.
    """

    sig_level: float = 0.05
    correction: Correction = Correction.BONFERRONI
    coin_set_mode: SetMode = SetMode.INTERSECTION
    coin_max_mode: MaxMode = MaxMode.ACCOMPANY
    alt_hypothesis: AltHypothesis = AltHypothesis.TWO_SIDED
    output_all: bool = False
    verbose: bool = False

    # Worker count for the pair pool; None -> os.cpu_count()
    n_jobs: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "correction", _coerce(Correction, self.correction, "correction"))
        object.__setattr__(self, "coin_set_mode", _coerce(SetMode, self.coin_set_mode, "coin_set_mode"))
        object.__setattr__(self, "coin_max_mode", _coerce(MaxMode, self.coin_max_mode, "coin_max_mode"))
        object.__setattr__(self, "alt_hypothesis", _coerce(AltHypothesis, self.alt_hypothesis, "alt_hypothesis"))
        if not 0.0 < float(self.sig_level) <= 1.0:
            raise ConfigurationError(f"sig_level must be in (0,1], got {self.sig_level!r}")
        if self.n_jobs is not None and int(self.n_jobs) < 1:
            raise ConfigurationError(f"n_jobs must be >= 1, got {self.n_jobs!r}")

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        for k, v in d.items():
            if isinstance(v, Enum):
                d[k] = v.value
        return d


def _require(d: Mapping[str, Any], key: str) -> Any:
    if key not in d:
        raise KeyError(f"Missing required config key: {key}")
    return d[key]


def _get(d: Mapping[str, Any], key: str, default: Any) -> Any:
    return d[key] if key in d else default


def config_from_mapping(data: Mapping[str, Any]) -> AnalysisConfig:
    known = {f.name for f in fields(AnalysisConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown config keys: {unknown}")

    defaults = AnalysisConfig()
    n_jobs = _get(data, "n_jobs", None)
    return AnalysisConfig(
        sig_level=float(_get(data, "sig_level", defaults.sig_level)),
        correction=_get(data, "correction", defaults.correction),
        coin_set_mode=_get(data, "coin_set_mode", defaults.coin_set_mode),
        coin_max_mode=_get(data, "coin_max_mode", defaults.coin_max_mode),
        alt_hypothesis=_get(data, "alt_hypothesis", defaults.alt_hypothesis),
        output_all=bool(_get(data, "output_all", defaults.output_all)),
        verbose=bool(_get(data, "verbose", defaults.verbose)),
        n_jobs=None if n_jobs is None else int(n_jobs),
    )


def load_analysis_config(path: str | Path) -> AnalysisConfig:
    data = load_yaml(path)
    # Accept either a bare mapping or one nested under "analysis".
    if "analysis" in data:
        data = _require(data, "analysis")
        if not isinstance(data, dict):
            raise ValueError("'analysis' must be a mapping")
    return config_from_mapping(data)


def load_yaml(path: str | Path) -> Dict[str, Any]:
    path = Path(path)
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML file {path} must contain a mapping at the top level")
    return data
