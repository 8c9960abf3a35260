"""
Segment construction from boundary indicators and from sentence-level
class predictions.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np
import torch

from ..exceptions import InvalidParameterError
from ..types import Provenance, Segment

logger = logging.getLogger(__name__)


def build_segments(
    num_sentences: int,
    edges: Optional[torch.Tensor]
) -> List[Segment]:
    """
    Convert an edge vector into a contiguous list of predicted segments.

    A new segment opens at every sentence t with edges[t] == 1 (always at
    t == 0). The result partitions [0, num_sentences).

    Args:
        num_sentences: Number of sentences T
        edges: Edge vector [T], or None

    Returns:
        Ordered list of PRED segments. Empty for T == 0, a single segment
        for T == 1 or when no edge vector is available.
    """
    if num_sentences < 1:
        logger.warning("Empty document, no segments created")
        return []

    if edges is None or num_sentences < 2:
        return [Segment(begin=0, end=num_sentences, provenance=Provenance.PRED)]

    edges = torch.as_tensor(edges).flatten()
    if edges.shape[0] != num_sentences:
        raise InvalidParameterError(
            f"Edge vector length {edges.shape[0]} does not match {num_sentences} sentences"
        )

    starts = [0] + [t for t in range(1, num_sentences) if edges[t].item() > 0]
    ends = starts[1:] + [num_sentences]
    return [
        Segment(begin=b, end=e, provenance=Provenance.PRED)
        for b, e in zip(starts, ends)
    ]


def segments_from_gold(gold_segments: Sequence[Segment]) -> List[Segment]:
    """Copy gold boundaries into a predicted segmentation (upper bound)."""
    return [
        Segment(begin=s.begin, end=s.end, provenance=Provenance.PRED)
        for s in sorted(gold_segments, key=lambda s: (s.begin, s.end))
    ]


def _top_k(vector: np.ndarray, k: int) -> List[int]:
    order = np.argsort(-vector, kind="stable")
    return order[:k].tolist()


def segments_from_class_vectors(
    pred_vectors: np.ndarray,
    k: int = 2
) -> List[Segment]:
    """
    Segment by changes of the predicted topic.

    The running label of the open segment is the argmax of its mean
    prediction. A new segment starts at a sentence whose top-k labels do
    not contain the running label.

    Args:
        pred_vectors: Sentence predictions [T, C]
        k: Number of top labels checked per sentence

    Returns:
        Ordered list of PRED segments
    """
    pred_vectors = np.asarray(pred_vectors, dtype=np.float64)
    if pred_vectors.ndim != 2:
        raise InvalidParameterError(f"Expected [T, C] predictions, got shape {pred_vectors.shape}")
    if k < 1:
        raise InvalidParameterError(f"k must be >= 1, got {k}")

    T = pred_vectors.shape[0]
    if T == 0:
        logger.warning("Empty document, no segments created")
        return []

    starts: List[int] = []
    running_label: Optional[int] = None
    running_sum = np.zeros(pred_vectors.shape[1])
    running_len = 0

    for t, pred in enumerate(pred_vectors):
        if running_label not in _top_k(pred, k):
            starts.append(t)
            running_sum = np.zeros_like(running_sum)
            running_len = 0
        running_sum += pred
        running_len += 1
        running_label = int(np.argmax(running_sum / running_len))

    ends = starts[1:] + [T]
    return [
        Segment(begin=b, end=e, provenance=Provenance.PRED)
        for b, e in zip(starts, ends)
    ]


def attach_segment_vectors(
    segments: Sequence[Segment],
    pred_vectors: np.ndarray,
    labels: Optional[Sequence[str]] = None
) -> List[Segment]:
    """
    Attach mean class vectors, labels and confidences to PRED segments.

    Args:
        segments: Predicted segments (modified in place)
        pred_vectors: Sentence predictions [T, C]
        labels: Optional class names indexed by class id

    Returns:
        The same segments, for chaining
    """
    pred_vectors = np.asarray(pred_vectors, dtype=np.float64)
    for seg in segments:
        span = pred_vectors[seg.begin:seg.end]
        if len(span) == 0:
            continue
        mean = span.mean(axis=0)
        best = int(np.argmax(mean))
        seg.vector = mean
        seg.label = labels[best] if labels is not None and best < len(labels) else str(best)
        seg.confidence = float(mean[best])
    return list(segments)
