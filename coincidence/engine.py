from __future__ import annotations

"""Pairwise coincidence engine.

Every unordered pair of alphas (A, B) with name(A) < name(B) is tested with a
binomial null model built from their connector sets:

  set mode (size of the observation universe n):
    INTERSECTION: n = |E_A u E_B|      (pair skipped when n == 0)
    FULL:         n = number of connectors in the dataset

  max mode (what a success is, and its chance under independence):
    ACCOMPANY: k = |E_A n E_B|,  rate = cA * cB
    AVOID:     k = |E_A ^ E_B|,  rate = cA (1 - cB) + cB (1 - cA)

  with cA = |E_A| / n and cB = |E_B| / n.

Pairs whose rate is exactly 0 or 1 are skipped. The p-value is compared with a
threshold corrected once for the number of edges in the dataset. In ACCOMPANY
mode the mean absolute weight difference over the shared connectors (the
"synthetic distance") is reported next to p.

The flat n_alpha * n_alpha index space is split into chunks evaluated on a
thread pool. Pair evaluation touches no shared state; only the ResultSink is
written to, under its lock.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np

from . import binomial, significance
from .config import AnalysisConfig, MaxMode, SetMode
from .dataset import Alpha, Beta, DataSet, edge_id
from .errors import ConfigurationError
from .export import PairResult, ResultSink, pairs_path

logger = logging.getLogger(__name__)

STATUS_NONE_FOUND = -1
STATUS_FOUND = 0


@dataclass(frozen=True)
class PairOverlap:
    overlap: List[Beta]  # connectors of A also in B, in A's order
    union: List[Beta]  # A's connectors, then B's connectors not in A
    degree_a: int
    degree_b: int

    @property
    def overlap_count(self) -> int:
        return len(self.overlap)

    @property
    def total_range(self) -> int:
        return self.degree_a + self.degree_b - self.overlap_count


@dataclass(frozen=True)
class NullModel:
    num_observations: int
    successes: int
    chance_a: float
    chance_b: float
    rate: float

    @property
    def expected(self) -> int:
        return int(self.rate * self.num_observations + 0.5)

    @property
    def degenerate(self) -> bool:
        return self.rate == 0.0 or self.rate == 1.0


def compute_overlap(edges_a: Dict[Beta, int], edges_b: Dict[Beta, int]) -> PairOverlap:
    overlap = [beta for beta in edges_a if beta in edges_b]
    union = list(edges_a) + [beta for beta in edges_b if beta not in edges_a]
    return PairOverlap(overlap=overlap, union=union, degree_a=len(edges_a), degree_b=len(edges_b))


def observation_count(set_mode: SetMode, ov: PairOverlap, num_betas: int) -> int:
    if set_mode is SetMode.INTERSECTION:
        return ov.total_range
    if set_mode is SetMode.FULL:
        return int(num_betas)
    raise ConfigurationError(f"Invalid coin_set_mode={set_mode!r}")


def _chance(degree: int, n: int) -> float:
    # FULL sizing over a dataset with no connectors: nothing can occur
    if n <= 0:
        return 0.0
    return float(degree) / float(n)


def null_model(max_mode: MaxMode, ov: PairOverlap, num_observations: int) -> NullModel:
    chance_a = _chance(ov.degree_a, num_observations)
    chance_b = _chance(ov.degree_b, num_observations)

    if max_mode is MaxMode.AVOID:
        successes = ov.total_range - ov.overlap_count
        rate = chance_a * (1.0 - chance_b) + chance_b * (1.0 - chance_a)
    elif max_mode is MaxMode.ACCOMPANY:
        successes = ov.overlap_count
        rate = chance_a * chance_b
    else:
        raise ConfigurationError(f"Invalid coin_max_mode={max_mode!r}")

    return NullModel(
        num_observations=int(num_observations),
        successes=int(successes),
        chance_a=chance_a,
        chance_b=chance_b,
        rate=float(rate),
    )


def synthetic_distance(dataset: DataSet, a: Alpha, b: Alpha, overlap: List[Beta]) -> float:
    """Mean |w(A-p) - w(B-p)| over the shared connectors p; NaN when none are shared.

    Raises MissingEdgeError if either edge is not registered.
    """
    if not overlap:
        return float("nan")
    w_a = np.array([dataset.find_edge(edge_id(a.name, p.name)).weight for p in overlap], dtype=float)
    w_b = np.array([dataset.find_edge(edge_id(b.name, p.name)).weight for p in overlap], dtype=float)
    return float(np.abs(w_a - w_b).mean())


def _diagnostic_block(a: Alpha, b: Alpha, ov: PairOverlap, nm: NullModel, max_coincidence: int) -> str:
    k, n, rate = nm.successes, nm.num_observations, nm.rate
    rows = [
        ("yain", a.name),
        ("tain", b.name),
        None,
        ("any_yain", ov.degree_a),
        ("any_tain", ov.degree_b),
        ("both_of", ov.overlap_count),
        ("one_of", ov.total_range),
        ("max_coincidence", max_coincidence),
        None,
        ("chance_i", nm.chance_a),
        ("chance_j", nm.chance_b),
        ("not_cross_1_chance", 1.0 - nm.chance_a),
        ("not_cross_2_chance", 1.0 - nm.chance_b),
        None,
        ("rate", rate),
        ("successes", k),
        ("num_observations", n),
        None,
        ("p_value LESS", binomial.one_sided_less(k, n, rate)),
        ("p_value GREATER", binomial.one_sided_greater(k, n, rate)),
        ("p_value TWOTAILED", binomial.two_sided(k, n, rate)),
    ]
    lines = ["*" * 31]
    for row in rows:
        lines.append("*" + "-" * 30 if row is None else f"* {row[0]:<19} {row[1]}.")
    lines.append("*" * 31)
    return "\n".join(lines)


class CoincidenceEngine:
    """Runs the pair tests for one dataset under one configuration."""

    def __init__(self, dataset: DataSet, config: AnalysisConfig) -> None:
        # Re-validate modes here so a bad value is fatal before any output exists.
        if not isinstance(config.coin_set_mode, SetMode):
            raise ConfigurationError(f"Invalid coin_set_mode={config.coin_set_mode!r}")
        if not isinstance(config.coin_max_mode, MaxMode):
            raise ConfigurationError(f"Invalid coin_max_mode={config.coin_max_mode!r}")

        self.dataset = dataset
        self.config = config
        self.alphas: List[Alpha] = dataset.alpha_list()
        self.max_coincidence = dataset.num_betas
        self.cor_sig = significance.correct(config.sig_level, config.correction, dataset.num_edges)
        self._sink: Optional[ResultSink] = None

    # ---- reporting --------------------------------------------------------------

    def _diagnose(self, message: str) -> None:
        if self._sink is not None:
            self._sink.diagnose(message)
        else:
            logger.info(message)

    def _reject(self, a: Alpha, b: Alpha, reason: str) -> None:
        if self.config.verbose:
            self._diagnose(f"Rejected ({a.name}, {b.name}) because {reason}.")

    # ---- one pair ---------------------------------------------------------------

    def evaluate_pair(self, a: Alpha, b: Alpha) -> Optional[PairResult]:
        """Test (a, b); return the row to emit, or None if the pair is skipped or filtered."""
        cfg = self.config
        ov = compute_overlap(a.edges, b.edges)

        n = observation_count(cfg.coin_set_mode, ov, self.max_coincidence)
        if cfg.coin_set_mode is SetMode.INTERSECTION and n == 0:
            self._reject(a, b, "there are no observations")
            return None

        nm = null_model(cfg.coin_max_mode, ov, n)
        if nm.degenerate:
            self._reject(a, b, f"the rate is {nm.rate:g}")
            return None

        p_value = binomial.test(cfg.alt_hypothesis, nm.successes, n, nm.rate)
        significant = p_value <= self.cor_sig

        if cfg.verbose:
            block = _diagnostic_block(a, b, ov, nm, self.max_coincidence)
            if significant:
                verdict = f"Accepted ({a.name}, {b.name}) because it is significant with p = {p_value:g}."
            else:
                verdict = f"Rejected ({a.name}, {b.name}) because it isn't significant with p = {p_value:g}."
            self._diagnose(block + "\n" + verdict)

        if not significant and not cfg.output_all:
            return None

        syn_dist: Optional[float] = None
        if cfg.coin_max_mode is MaxMode.ACCOMPANY:
            syn_dist = synthetic_distance(self.dataset, a, b, ov.overlap)

        return PairResult(
            source=a.name,
            target=b.name,
            p_value=float(p_value),
            syn_dist=syn_dist,
            successes=nm.successes,
            num_observations=n,
            rate=nm.rate,
            expected=nm.expected,
            total_source=ov.degree_a,
            total_target=ov.degree_b,
            fraction_source=nm.chance_a,
            fraction_target=nm.chance_b,
            significant=bool(significant),
        )

    # ---- all pairs ----------------------------------------------------------------

    def _evaluate_chunk(self, flat: np.ndarray) -> List[PairResult]:
        n_alpha = len(self.alphas)
        out: List[PairResult] = []
        for idx in flat.tolist():
            i, j = divmod(idx, n_alpha)
            a, b = self.alphas[i], self.alphas[j]
            if not b.name > a.name:
                continue
            rec = self.evaluate_pair(a, b)
            if rec is None:
                continue
            if self._sink is not None:
                self._sink.emit(rec)
            out.append(rec)
        return out

    def _chunks(self, n_jobs: int) -> List[np.ndarray]:
        total = len(self.alphas) ** 2
        if total == 0:
            return []
        n_chunks = min(total, max(1, n_jobs) * 4)
        return np.array_split(np.arange(total, dtype=np.int64), n_chunks)

    def run(self, sink: Optional[ResultSink] = None) -> Tuple[int, List[PairResult]]:
        """Evaluate every pair; emit rows to ``sink`` (already opened, header written).

        Returns (status, records): status is 0 if at least one row was
        emitted (significant, or any pair under output_all), -1 otherwise.
        Records come back in no particular order.
        """
        n_jobs = int(self.config.n_jobs or os.cpu_count() or 1)
        chunks = self._chunks(n_jobs)
        logger.debug(
            "testing %d alphas (%d chunks, %d workers), corrected threshold %g",
            len(self.alphas), len(chunks), n_jobs, self.cor_sig,
        )

        self._sink = sink
        records: List[PairResult] = []
        try:
            if n_jobs == 1:
                for chunk in chunks:
                    records.extend(self._evaluate_chunk(chunk))
            else:
                with ThreadPoolExecutor(max_workers=n_jobs) as pool:
                    futures = [pool.submit(self._evaluate_chunk, chunk) for chunk in chunks]
                    try:
                        for fut in futures:
                            records.extend(fut.result())
                    except BaseException:
                        for fut in futures:
                            fut.cancel()
                        raise
        finally:
            self._sink = None

        status = STATUS_FOUND if records else STATUS_NONE_FOUND
        return status, records


def run(dataset: DataSet, config: AnalysisConfig, prefix: str | Path) -> Tuple[int, List[PairResult]]:
    """Run the analysis and write ``<prefix>_pairs.csv``.

    The table only appears under its final name if every pair was evaluated.
    """
    engine = CoincidenceEngine(dataset, config)
    logger.debug("iterating matrix for %r", dataset)
    with ResultSink(pairs_path(prefix), config.coin_max_mode) as sink:
        status, records = engine.run(sink)
    return status, records
