from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import AltHypothesis, AnalysisConfig, Correction, MaxMode, SetMode, load_analysis_config
from .dataset import DataSet, load_edge_table
from .engine import STATUS_FOUND, run
from .export import PairResult, coincidence_graph, write_graphml

logger = logging.getLogger(__name__)


def run_analysis(
    dataset: DataSet,
    config: AnalysisConfig,
    prefix: str | Path,
    *,
    write_graph: bool = True,
) -> Tuple[int, List[PairResult]]:
    """Pair table plus a GraphML of the emitted pairs (``<prefix>_graph.graphml``)."""
    status, records = run(dataset, config, prefix)
    if write_graph:
        write_graphml(Path(f"{prefix}_graph.graphml"), coincidence_graph(records))
    return status, records


def _choices(enum_cls: type) -> List[str]:
    return [m.value for m in enum_cls]


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Pairwise binomial coincidence / avoidance analysis over an alpha-beta edge table")
    ap.add_argument("--edges", type=str, required=True, help="Tab-separated table with columns alpha, beta[, weight]")
    ap.add_argument("--prefix", type=str, required=True, help="Output prefix; writes <prefix>_pairs.csv")
    ap.add_argument("--config", type=str, default=None, help="YAML file with analysis options")

    # Overrides (None -> keep value from --config or the default)
    ap.add_argument("--sig_level", type=float, default=None)
    ap.add_argument("--correction", choices=_choices(Correction), default=None)
    ap.add_argument("--set_mode", choices=_choices(SetMode), default=None)
    ap.add_argument("--max_mode", choices=_choices(MaxMode), default=None)
    ap.add_argument("--alt_hypothesis", choices=_choices(AltHypothesis), default=None)
    ap.add_argument("--output_all", action="store_true", help="Also write non-significant pairs")
    ap.add_argument("--verbose", action="store_true", help="Per-pair diagnostics on stderr")
    ap.add_argument("--n_jobs", type=int, default=None)
    ap.add_argument("--no_graph", action="store_true", help="Skip the GraphML export")
    return ap


def config_from_args(args: argparse.Namespace) -> AnalysisConfig:
    cfg = load_analysis_config(args.config) if args.config else AnalysisConfig()
    overrides: Dict[str, Any] = {
        "sig_level": args.sig_level,
        "correction": args.correction,
        "coin_set_mode": args.set_mode,
        "coin_max_mode": args.max_mode,
        "alt_hypothesis": args.alt_hypothesis,
        "n_jobs": args.n_jobs,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if args.output_all:
        overrides["output_all"] = True
    if args.verbose:
        overrides["verbose"] = True
    return replace(cfg, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = config_from_args(args)
    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.WARNING,
        format="%(message)s",
    )

    dataset = load_edge_table(args.edges)
    logger.debug("options: %s", config.to_dict())

    status, records = run_analysis(dataset, config, args.prefix, write_graph=not args.no_graph)

    n_sig = sum(1 for r in records if r.significant)
    print(f"[coincidence] wrote {len(records)} pairs ({n_sig} significant) to: {args.prefix}_pairs.csv")
    if status != STATUS_FOUND:
        print("[coincidence] no pairs written")
    return status


if __name__ == "__main__":
    main()
