from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, List, Optional

import networkx as nx

from .config import MaxMode
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DELIMITER = "\t"

ACCOMPANY_COLUMNS = [
    "Source",
    "Target",
    "p",
    "Avg synthetic distance",
    "successes",
    "observations",
    "rate",
    "expected",
    "total source",
    "total target",
    "fraction source",
    "fraction target",
]
AVOID_COLUMNS = [c for c in ACCOMPANY_COLUMNS if c != "Avg synthetic distance"]


@dataclass(frozen=True)
class PairResult:
    """One emitted (source, target) row.

    ``syn_dist`` is None in AVOID mode. ``significant`` is not written; it
    records whether p passed the corrected threshold.
    """

    source: str
    target: str
    p_value: float
    syn_dist: Optional[float]
    successes: int
    num_observations: int
    rate: float
    expected: int
    total_source: int
    total_target: int
    fraction_source: float
    fraction_target: float
    significant: bool


def header_columns(max_mode: MaxMode) -> List[str]:
    if max_mode is MaxMode.ACCOMPANY:
        return list(ACCOMPANY_COLUMNS)
    if max_mode is MaxMode.AVOID:
        return list(AVOID_COLUMNS)
    raise ConfigurationError(f"Invalid coin_max_mode={max_mode!r}")


def _fmt(x: object) -> str:
    # 6 significant digits, matching the historical output of this table
    if isinstance(x, float):
        return format(x, "g")
    return str(x)


def format_row(record: PairResult, max_mode: MaxMode) -> str:
    values: List[object] = [record.source, record.target, record.p_value]
    if max_mode is MaxMode.ACCOMPANY:
        values.append(record.syn_dist)
    elif max_mode is not MaxMode.AVOID:
        raise ConfigurationError(f"Invalid coin_max_mode={max_mode!r}")
    values += [
        record.successes,
        record.num_observations,
        record.rate,
        record.expected,
        record.total_source,
        record.total_target,
        record.fraction_source,
        record.fraction_target,
    ]
    return DELIMITER.join(_fmt(v) for v in values) + "\n"


def pairs_path(prefix: str | Path) -> Path:
    return Path(f"{prefix}_pairs.csv")


class ResultSink:
    """Append-only tab-separated pair table shared by all workers.

    Rows go to ``<path>.part`` and only replace ``path`` on ``commit``; a run
    that dies mid-way leaves no file under the final name. Every row and every
    diagnostic block is written under one lock so lines never interleave.
    """

    def __init__(self, path: str | Path, max_mode: MaxMode) -> None:
        self.path = Path(path)
        self.max_mode = MaxMode(max_mode)
        self._part = self.path.with_name(self.path.name + ".part")
        self._lock = threading.Lock()
        self._fh: Optional[IO[str]] = None
        self.rows_written = 0

    def open(self) -> "ResultSink":
        header = DELIMITER.join(header_columns(self.max_mode)) + "\n"
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # a stale table from an earlier run must not survive a failed one
        self.path.unlink(missing_ok=True)
        self._fh = self._part.open("w", encoding="utf-8", newline="")
        self._fh.write(header)
        return self

    def emit(self, record: PairResult) -> None:
        line = format_row(record, self.max_mode)
        with self._lock:
            if self._fh is None:
                raise RuntimeError("ResultSink is not open")
            self._fh.write(line)
            self.rows_written += 1

    def diagnose(self, message: str) -> None:
        with self._lock:
            logger.info(message)

    def commit(self) -> Path:
        with self._lock:
            if self._fh is not None:
                self._fh.close()
                self._fh = None
            os.replace(self._part, self.path)
        return self.path

    def discard(self) -> None:
        with self._lock:
            if self._fh is not None:
                self._fh.close()
                self._fh = None
            self._part.unlink(missing_ok=True)

    def __enter__(self) -> "ResultSink":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.discard()


def coincidence_graph(records: List[PairResult]) -> nx.Graph:
    """Undirected graph with one edge per emitted pair."""
    G = nx.Graph()
    for r in records:
        attrs = {"p": float(r.p_value), "significant": bool(r.significant)}
        if r.syn_dist is not None:
            attrs["syn_dist"] = float(r.syn_dist)
        G.add_edge(r.source, r.target, **attrs)
    return G


def write_graphml(path: str | Path, G: nx.Graph) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    nx.write_graphml(G, path)
    return path
