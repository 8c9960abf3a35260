"""
Classification metrics for topic labels per sentence or per segment.

The evaluator accumulates ranking sums (MAP, MRR, P@K, R@K) and the
(primary gold class, top predicted class) pairs example by example.
``compute()`` finalizes the ranking means and derives the confusion matrix
and P/R/F1 from the pairs with scikit-learn.

Example:
    >>> evaluator = ClassificationEvaluator(num_classes=25, k=3)
    >>> for doc in documents:
    ...     evaluator.update(doc.gold_vectors, doc.pred_vectors)
    >>> scores = evaluator.compute()
    >>> print(f"MAP: {scores.map:.4f}")
"""

import logging
import threading
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import torch
from sklearn.metrics import confusion_matrix, precision_recall_fscore_support

from ..exceptions import InvalidParameterError
from ..types import Segment
from .ranking import (
    APMode,
    average_precision,
    hit_at_k,
    precision_at_k,
    primary_index,
    rank_indices,
    recall_at_k,
    reciprocal_rank,
    safe_div,
)

logger = logging.getLogger(__name__)

ArrayLike = Union[np.ndarray, torch.Tensor, Sequence[float]]


def _to_numpy(values: ArrayLike) -> np.ndarray:
    if isinstance(values, torch.Tensor):
        values = values.detach().cpu().numpy()
    return np.asarray(values, dtype=np.float64)


def match_max_overlap(segment: Segment, candidates: Sequence[Segment]) -> Optional[Segment]:
    """
    Return the candidate sharing the most sentences with ``segment``.

    Ties go to the earliest candidate. Returns None if no candidate
    overlaps.
    """
    best = None
    best_overlap = 0
    for candidate in candidates:
        overlap = segment.overlap(candidate)
        if overlap > best_overlap:
            best = candidate
            best_overlap = overlap
    return best


def format_per_class_table(per_class: Dict[Union[str, int], Dict[str, float]]) -> str:
    """Format the output of ``compute_per_class`` as a tab-separated table."""
    lines = [
        "SINGLE-LABEL CLASSIFICATION [performance per class]",
        "No\tClass\t#Examples\tTP\tFP\tAcc\tPrec\tRec\tF1",
    ]
    for key, m in per_class.items():
        lines.append(
            f"{m['class_id']}\t{key}\t{m['support']}\t{m['tp']}\t{m['fp']}\t"
            f"{m['accuracy']:.4f}\t{m['precision']:.4f}\t{m['recall']:.4f}\t{m['f1']:.4f}"
        )
    return "\n".join(lines)


@dataclass
class ClassificationScores:
    """Finalized classification metrics, all values in [0, 1]."""
    accuracy: float = 0.0
    accuracy_at_k: float = 0.0
    precision_at_1: float = 0.0
    precision_at_k: float = 0.0
    recall_at_1: float = 0.0
    recall_at_k: float = 0.0
    map: float = 0.0
    mrr: float = 0.0
    micro_precision: float = 0.0
    micro_recall: float = 0.0
    micro_f1: float = 0.0
    macro_precision: float = 0.0
    macro_recall: float = 0.0
    macro_f1: float = 0.0
    num_examples: int = 0
    k: int = 3

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


class ClassificationEvaluator:
    """
    Accumulates ranking and confusion statistics for class vectors.

    Gold inputs are indicator vectors (1 for relevant classes), predictions
    are score distributions over the same classes. The confusion matrix uses
    the primary gold class (first maximum) as actual class and the argmax of
    the prediction as predicted class. Examples without any gold positive
    add 0 to the ranking sums and are left out of the confusion matrix.

    Attributes:
        num_classes: Number of classes C
        k: Cutoff for P@K, R@K and Accuracy@K
        class_names: Optional class names for reports
        ap_mode: "primary" or "multilabel" average precision
    """

    def __init__(
        self,
        num_classes: int,
        k: int = 3,
        class_names: Optional[Sequence[str]] = None,
        ap_mode: APMode = "primary"
    ):
        if num_classes <= 0:
            raise ValueError(f"num_classes must be positive, got {num_classes}")
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        if ap_mode not in ("primary", "multilabel"):
            raise ValueError(f"Unknown average precision mode '{ap_mode}'")
        if class_names is not None and len(class_names) != num_classes:
            raise ValueError(
                f"Got {len(class_names)} class names for {num_classes} classes"
            )

        self.num_classes = num_classes
        self.k = k
        self.class_names = list(class_names) if class_names is not None else None
        self.ap_mode = ap_mode
        self._lock = threading.Lock()
        self.reset()

        logger.debug(
            f"ClassificationEvaluator initialized: {num_classes} classes, "
            f"k={k}, ap_mode={ap_mode}"
        )

    def reset(self) -> None:
        """Clear all accumulated statistics."""
        self._y_true: List[int] = []
        self._y_pred: List[int] = []
        self._sums = {
            "map": 0.0,
            "mrr": 0.0,
            "p1": 0.0,
            "r1": 0.0,
            "pk": 0.0,
            "rk": 0.0,
            "hitk": 0.0,
        }
        self._num_examples = 0
        self._num_unlabeled = 0

    def _score_example(
        self,
        gold: np.ndarray,
        pred: np.ndarray,
        sums: Dict[str, float],
        y_true: List[int],
        y_pred: List[int]
    ) -> bool:
        ranked = rank_indices(pred)
        if pred.sum() == 0:
            logger.warning("Ranking a zero prediction vector, please check vector dimensions")

        sums["map"] += average_precision(gold, ranked, mode=self.ap_mode)
        sums["mrr"] += reciprocal_rank(gold, ranked)
        sums["p1"] += precision_at_k(gold, ranked, 1)
        sums["r1"] += recall_at_k(gold, ranked, 1)
        sums["pk"] += precision_at_k(gold, ranked, self.k)
        sums["rk"] += recall_at_k(gold, ranked, self.k)
        sums["hitk"] += hit_at_k(gold, ranked, self.k)

        actual = primary_index(gold)
        if actual < 0:
            return False
        y_true.append(actual)
        y_pred.append(int(ranked[0]))
        return True

    def update(self, gold: ArrayLike, pred: ArrayLike) -> None:
        """
        Add one example [C] or a batch of examples [N, C].

        Args:
            gold: Gold indicator vectors
            pred: Predicted score vectors

        Raises:
            InvalidParameterError: If shapes differ or do not match num_classes
        """
        gold = _to_numpy(gold)
        pred = _to_numpy(pred)
        if gold.ndim == 1:
            gold = gold[None, :]
        if pred.ndim == 1:
            pred = pred[None, :]
        if gold.shape != pred.shape:
            raise InvalidParameterError(f"Shape mismatch: gold={gold.shape}, pred={pred.shape}")
        if gold.ndim != 2 or gold.shape[1] != self.num_classes:
            raise InvalidParameterError(
                f"Expected [N, {self.num_classes}] vectors, got shape {gold.shape}"
            )

        sums = dict.fromkeys(self._sums, 0.0)
        y_true: List[int] = []
        y_pred: List[int] = []
        unlabeled = 0
        for y, z in zip(gold, pred):
            if not self._score_example(y, z, sums, y_true, y_pred):
                unlabeled += 1

        with self._lock:
            for key, value in sums.items():
                self._sums[key] += value
            self._y_true.extend(y_true)
            self._y_pred.extend(y_pred)
            self._num_examples += gold.shape[0]
            self._num_unlabeled += unlabeled

    def update_time_series(
        self,
        gold: ArrayLike,
        pred: ArrayLike,
        mask: Optional[ArrayLike] = None
    ) -> None:
        """
        Add the unmasked time steps of a batch of sequences.

        Args:
            gold: Gold vectors [B, C, T]
            pred: Predicted vectors [B, C, T]
            mask: Time step mask [B, T], 1 for steps to evaluate. All steps
                are used when None.
        """
        gold = _to_numpy(gold)
        pred = _to_numpy(pred)
        if gold.ndim != 3 or gold.shape != pred.shape:
            raise InvalidParameterError(
                f"Expected matching [B, C, T] arrays, got gold={gold.shape}, pred={pred.shape}"
            )

        # [B, C, T] -> [B, T, C]
        gold = gold.transpose(0, 2, 1)
        pred = pred.transpose(0, 2, 1)
        if mask is None:
            keep = np.ones(gold.shape[:2], dtype=bool)
        else:
            keep = _to_numpy(mask) > 0
            if keep.shape != gold.shape[:2]:
                raise InvalidParameterError(
                    f"Mask shape {keep.shape} does not match [B, T] = {gold.shape[:2]}"
                )

        if not keep.any():
            return
        self.update(gold[keep], pred[keep])

    def update_from_segments(
        self,
        gold_segments: Sequence[Segment],
        pred_segments: Sequence[Segment],
        match_all_predicted: bool = True
    ) -> None:
        """
        Evaluate segment class vectors of one document.

        Every gold segment is paired with the predicted segment of maximum
        overlap. With ``match_all_predicted``, predicted segments that were
        not chosen are paired with their best gold segment as well.

        Segments without a vector are skipped.
        """
        golds: List[np.ndarray] = []
        preds: List[np.ndarray] = []
        matched = set()

        def add_pair(gold_seg: Segment, pred_seg: Segment) -> None:
            if gold_seg.vector is None or pred_seg.vector is None:
                logger.debug(f"Skipping segment pair {gold_seg.begin}-{gold_seg.end} without vectors")
                return
            golds.append(_to_numpy(gold_seg.vector))
            preds.append(_to_numpy(pred_seg.vector))

        for gold_seg in gold_segments:
            pred_seg = match_max_overlap(gold_seg, pred_segments)
            if pred_seg is None:
                logger.warning(
                    f"Could not match predicted segment for gold segment {gold_seg.begin}-{gold_seg.end}"
                )
                continue
            matched.add(id(pred_seg))
            add_pair(gold_seg, pred_seg)

        if match_all_predicted:
            for pred_seg in pred_segments:
                if id(pred_seg) in matched:
                    continue
                gold_seg = match_max_overlap(pred_seg, gold_segments)
                if gold_seg is not None:
                    add_pair(gold_seg, pred_seg)

        if golds:
            self.update(np.stack(golds), np.stack(preds))

    def merge(self, other: "ClassificationEvaluator") -> None:
        """Add the statistics of another evaluator with the same classes."""
        if other.num_classes != self.num_classes:
            raise ValueError(
                f"Cannot merge evaluators with {other.num_classes} and {self.num_classes} classes"
            )
        with self._lock:
            for key, value in other._sums.items():
                self._sums[key] += value
            self._y_true.extend(other._y_true)
            self._y_pred.extend(other._y_pred)
            self._num_examples += other._num_examples
            self._num_unlabeled += other._num_unlabeled

    def _pairs(self):
        with self._lock:
            return np.asarray(self._y_true, dtype=np.int64), np.asarray(self._y_pred, dtype=np.int64)

    def _confusion(self, y_true: np.ndarray, y_pred: np.ndarray) -> np.ndarray:
        if y_true.size == 0:
            return np.zeros((self.num_classes, self.num_classes), dtype=np.int64)
        return confusion_matrix(y_true, y_pred, labels=list(range(self.num_classes)))

    def _prf(self, y_true: np.ndarray, y_pred: np.ndarray, average: Optional[str]):
        """precision_recall_fscore_support over all classes, 0 for empty input."""
        if y_true.size == 0:
            if average is None:
                zeros = np.zeros(self.num_classes)
                return zeros, zeros, zeros, zeros.astype(np.int64)
            return 0.0, 0.0, 0.0, None
        return precision_recall_fscore_support(
            y_true,
            y_pred,
            labels=list(range(self.num_classes)),  # Include classes never seen
            average=average,
            zero_division=0,
        )

    def compute(self) -> ClassificationScores:
        """
        Finalize all metrics.

        Ranking metrics are means over all examples. Accuracy, micro and
        macro scores are computed over the labeled examples only; macro
        scores average over all classes (classes never predicted count as
        0).
        """
        with self._lock:
            n = self._num_examples
            sums = dict(self._sums)
            y_true = np.asarray(self._y_true, dtype=np.int64)
            y_pred = np.asarray(self._y_pred, dtype=np.int64)

        if n == 0:
            logger.warning("compute() called with no accumulated examples")
            return ClassificationScores(k=self.k)

        labeled = float(y_true.size)
        micro_p, micro_r, micro_f1, _ = self._prf(y_true, y_pred, "micro")
        macro_p, macro_r, macro_f1, _ = self._prf(y_true, y_pred, "macro")

        return ClassificationScores(
            accuracy=safe_div(float(np.sum(y_true == y_pred)), labeled),
            accuracy_at_k=safe_div(sums["hitk"], labeled),
            precision_at_1=sums["p1"] / n,
            precision_at_k=sums["pk"] / n,
            recall_at_1=sums["r1"] / n,
            recall_at_k=sums["rk"] / n,
            map=sums["map"] / n,
            mrr=sums["mrr"] / n,
            micro_precision=float(micro_p),
            micro_recall=float(micro_r),
            micro_f1=float(micro_f1),
            macro_precision=float(macro_p),
            macro_recall=float(macro_r),
            macro_f1=float(macro_f1),
            num_examples=n,
            k=self.k,
        )

    def compute_per_class(self) -> Dict[Union[str, int], Dict[str, float]]:
        """
        Per-class statistics.

        Returns:
            Dictionary mapping class name (or index) to a dict with keys
            class_id, support, tp, fp, accuracy, precision, recall, f1.
            Accuracy is the share of the class's examples predicted
            correctly.
        """
        y_true, y_pred = self._pairs()
        precision, recall, f1, support = self._prf(y_true, y_pred, None)
        cm = self._confusion(y_true, y_pred)
        tp = np.diag(cm)
        fp = cm.sum(axis=0) - tp

        results = {}
        for c in range(self.num_classes):
            key = self.class_names[c] if self.class_names else c
            results[key] = {
                "class_id": c,
                "support": int(support[c]),
                "tp": int(tp[c]),
                "fp": int(fp[c]),
                "accuracy": safe_div(float(tp[c]), float(support[c])),
                "precision": float(precision[c]),
                "recall": float(recall[c]),
                "f1": float(f1[c]),
            }
        return results

    def format_per_class_report(self) -> str:
        """Per-class statistics as a tab-separated table."""
        return format_per_class_table(self.compute_per_class())

    def get_confusion_matrix(self) -> np.ndarray:
        """
        Confusion matrix [C, C]. Entry [i, j] counts examples of primary
        class i predicted as j.
        """
        y_true, y_pred = self._pairs()
        return self._confusion(y_true, y_pred)

    @property
    def num_samples(self) -> int:
        """Number of examples accumulated so far."""
        return self._num_examples

    @property
    def num_unlabeled(self) -> int:
        """Examples without a gold positive (left out of the confusion matrix)."""
        return self._num_unlabeled

    def __repr__(self) -> str:
        return (
            f"ClassificationEvaluator(num_classes={self.num_classes}, "
            f"k={self.k}, ap_mode={self.ap_mode!r}, samples={self._num_examples})"
        )
