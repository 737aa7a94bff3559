from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

import pandas as pd

from .errors import MissingEdgeError

logger = logging.getLogger(__name__)

EDGE_SEPARATOR = "-"
EDGE_TABLE_COLUMNS = ("alpha", "beta", "weight")


def edge_id(alpha_name: str, beta_name: str) -> str:
    return f"{alpha_name}{EDGE_SEPARATOR}{beta_name}"


@dataclass(frozen=True)
class Beta:
    """Connector: the label that makes two alphas' edges comparable."""

    name: str


@dataclass(frozen=True)
class Edge:
    id: str
    weight: float


@dataclass
class Alpha:
    """Entity under test.

    ``edges`` maps each connector the alpha touches to an occurrence count.
    Only presence matters to the analysis.
    """

    name: str
    edges: Dict[Beta, int] = field(default_factory=dict)

    @property
    def degree(self) -> int:
        return len(self.edges)


class DataSet:
    """Alpha / beta / edge registry.

    Populated once via ``add_edge`` (or ``load_edge_table``) and treated as
    read-only by the engine. Alphas and betas keep insertion order.
    """

    def __init__(self) -> None:
        self._alphas: Dict[str, Alpha] = {}
        self._betas: Dict[str, Beta] = {}
        self._edges: Dict[str, Edge] = {}

    # ---- construction ---------------------------------------------------------

    def add_alpha(self, name: str) -> Alpha:
        alpha = self._alphas.get(name)
        if alpha is None:
            alpha = self._alphas[name] = Alpha(name=name)
        return alpha

    def add_beta(self, name: str) -> Beta:
        beta = self._betas.get(name)
        if beta is None:
            beta = self._betas[name] = Beta(name=name)
        return beta

    def add_edge(self, alpha_name: str, beta_name: str, weight: float = 1.0) -> Edge:
        """Register ``alpha-beta`` with ``weight``.

        Repeated (alpha, beta) pairs bump the occurrence count and keep the
        first weight seen.
        """
        alpha = self.add_alpha(str(alpha_name))
        beta = self.add_beta(str(beta_name))
        alpha.edges[beta] = alpha.edges.get(beta, 0) + 1

        key = edge_id(alpha.name, beta.name)
        edge = self._edges.get(key)
        if edge is None:
            edge = self._edges[key] = Edge(id=key, weight=float(weight))
        return edge

    # ---- lookup ---------------------------------------------------------------

    @property
    def alphas(self) -> Dict[str, Alpha]:
        return self._alphas

    @property
    def betas(self) -> Dict[str, Beta]:
        return self._betas

    def alpha_list(self) -> List[Alpha]:
        return list(self._alphas.values())

    def find_edge(self, key: str) -> Edge:
        try:
            return self._edges[key]
        except KeyError:
            raise MissingEdgeError(f"No edge with id {key!r}") from None

    @property
    def num_edges(self) -> int:
        return len(self._edges)

    @property
    def num_betas(self) -> int:
        return len(self._betas)

    def __repr__(self) -> str:
        return f"DataSet(alphas={len(self._alphas)}, betas={self.num_betas}, edges={self.num_edges})"


def dataset_from_frame(df: pd.DataFrame) -> DataSet:
    missing = [c for c in EDGE_TABLE_COLUMNS[:2] if c not in df.columns]
    if missing:
        raise ValueError(f"Edge table is missing columns: {missing}")

    ds = DataSet()
    weights = df["weight"] if "weight" in df.columns else pd.Series(1.0, index=df.index)
    for a, b, w in zip(df["alpha"], df["beta"], weights):
        ds.add_edge(str(a), str(b), float(w))
    return ds


def load_edge_table(path: str | Path, *, sep: str = "\t") -> DataSet:
    """Read an ``alpha``/``beta``/``weight`` table (weight optional, default 1.0)."""
    path = Path(path)
    df = pd.read_csv(path, sep=sep, dtype={"alpha": str, "beta": str})
    ds = dataset_from_frame(df)
    logger.debug("loaded %s from %s", ds, path)
    return ds
