"""Pairwise coincidence analysis over alpha-beta edge tables.

For every unordered pair of alphas, a binomial test decides whether their
connector (beta) sets overlap more, or less, than chance predicts:

- **DataSet**: alphas, betas and weighted ``alpha-beta`` edges.
- **AnalysisConfig**: set mode (observation universe), max mode (co-occurrence
  vs. avoidance), tail, correction, output options.
- **CoincidenceEngine**: parallel pair tests, corrected threshold, synthetic
  distance for co-occurring pairs.
- **ResultSink**: the ``<prefix>_pairs.csv`` table, written under a lock.

Usage:
  python -m coincidence --edges edges.tsv --prefix results/run1 --max_mode accompany
"""

__all__ = [
    "config",
    "errors",
    "dataset",
    "significance",
    "binomial",
    "engine",
    "export",
    "cli",
]
