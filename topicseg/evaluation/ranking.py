"""
Per-example ranking metrics over class score vectors.

Every function takes a gold indicator vector Y and a predicted score
vector Z of the same length C. Classes are ranked by descending score,
ties by ascending class index.
"""

from typing import Literal

import numpy as np

APMode = Literal["primary", "multilabel"]


def safe_div(numerator: float, denominator: float) -> float:
    """Division where n / 0 == 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def rank_indices(scores: np.ndarray) -> np.ndarray:
    """Class indices sorted by descending score (stable)."""
    scores = np.asarray(scores, dtype=np.float64).ravel()
    return np.argsort(-scores, kind="stable")


def primary_index(gold: np.ndarray) -> int:
    """
    Index of the primary gold class (first maximum), or -1 if the gold
    vector has no positive entry.
    """
    gold = np.asarray(gold, dtype=np.float64).ravel()
    if gold.size == 0 or not np.any(gold > 0):
        return -1
    return int(np.argmax(gold))


def _relevant(gold: np.ndarray) -> np.ndarray:
    return np.asarray(gold, dtype=np.float64).ravel() > 0


def reciprocal_rank(gold: np.ndarray, ranked: np.ndarray) -> float:
    """1 / rank of the primary gold class, 0 without a positive."""
    idx = primary_index(gold)
    if idx < 0:
        return 0.0
    rank = int(np.nonzero(ranked == idx)[0][0]) + 1
    return 1.0 / rank


def precision_at_k(gold: np.ndarray, ranked: np.ndarray, k: int) -> float:
    """Share of the top-k ranked classes that are relevant."""
    if k < 1:
        return 0.0
    relevant = _relevant(gold)
    hits = relevant[ranked[:k]].sum()
    return float(hits) / k


def recall_at_k(gold: np.ndarray, ranked: np.ndarray, k: int) -> float:
    """Share of relevant classes found in the top-k, 0 without a positive."""
    gold = np.asarray(gold, dtype=np.float64).ravel()
    relevant = gold > 0
    hits = relevant[ranked[:max(k, 0)]].sum()
    return safe_div(float(hits), float(gold.sum()))


def hit_at_k(gold: np.ndarray, ranked: np.ndarray, k: int) -> float:
    """1 if the primary gold class is among the top-k, else 0."""
    idx = primary_index(gold)
    if idx < 0:
        return 0.0
    return 1.0 if idx in ranked[:k] else 0.0


def average_precision(gold: np.ndarray, ranked: np.ndarray, mode: APMode = "primary") -> float:
    """
    Average precision of a ranking.

    Walks the ranking and accumulates precision@rank at every relevant
    position, divided by the number of relevant classes.

    Args:
        gold: Gold indicator vector [C]
        ranked: Ranked class indices [C]
        mode: "primary" treats only the primary gold class as relevant,
            which reduces AP to the reciprocal rank. "multilabel" treats
            every positive entry as relevant.

    Returns:
        AP in [0, 1], 0 if the gold vector has no positive
    """
    if mode == "primary":
        idx = primary_index(gold)
        if idx < 0:
            return 0.0
        relevant = np.zeros(len(ranked), dtype=bool)
        relevant[idx] = True
    elif mode == "multilabel":
        relevant = _relevant(gold)
    else:
        raise ValueError(f"Unknown average precision mode '{mode}'")

    hits = relevant[ranked]
    num_relevant = int(hits.sum())
    if num_relevant == 0:
        return 0.0
    precisions = np.cumsum(hits) / np.arange(1, len(hits) + 1)
    return float(precisions[hits].sum() / num_relevant)
