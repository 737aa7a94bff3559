"""
End-to-end tests for the command line entry point.
"""

import networkx as nx
import pandas as pd

from coincidence.cli import build_parser, config_from_args, main
from coincidence.config import MaxMode, SetMode
from coincidence.engine import STATUS_FOUND


def _write_edges(path):
    path.write_text(
        "alpha\tbeta\tweight\n"
        "X\tp\t1\n"
        "X\tq\t2\n"
        "Y\tq\t5\n"
        "Y\tr\t1\n"
    )
    return path


def test_overrides_win_over_yaml(tmp_path):
    cfg_path = tmp_path / "analysis.yaml"
    cfg_path.write_text("coin_set_mode: full\ncoin_max_mode: avoid\nsig_level: 0.2\n")
    args = build_parser().parse_args([
        "--edges", "e.tsv", "--prefix", "out", "--config", str(cfg_path),
        "--max_mode", "accompany", "--output_all",
    ])
    cfg = config_from_args(args)
    assert cfg.coin_set_mode is SetMode.FULL
    assert cfg.coin_max_mode is MaxMode.ACCOMPANY
    assert cfg.sig_level == 0.2
    assert cfg.output_all


def test_main_writes_table_and_graph(tmp_path, capsys):
    edges = _write_edges(tmp_path / "edges.tsv")
    prefix = tmp_path / "res" / "run"
    status = main([
        "--edges", str(edges), "--prefix", str(prefix),
        "--correction", "none", "--sig_level", "1.0", "--n_jobs", "2",
    ])
    assert status == STATUS_FOUND

    df = pd.read_csv(f"{prefix}_pairs.csv", sep="\t")
    assert list(df["Source"]) == ["X"]
    assert list(df["Target"]) == ["Y"]
    assert df.loc[0, "successes"] == 1

    G = nx.read_graphml(f"{prefix}_graph.graphml")
    assert G.has_edge("X", "Y")
    assert "[coincidence] wrote 1 pairs" in capsys.readouterr().out


def test_main_avoid_without_graph(tmp_path):
    edges = _write_edges(tmp_path / "edges.tsv")
    prefix = tmp_path / "avoid"
    main([
        "--edges", str(edges), "--prefix", str(prefix),
        "--max_mode", "avoid", "--output_all", "--no_graph", "--n_jobs", "1",
    ])
    df = pd.read_csv(f"{prefix}_pairs.csv", sep="\t")
    assert len(df.columns) == 11
    assert len(df) == 1
    assert not (tmp_path / "avoid_graph.graphml").exists()
