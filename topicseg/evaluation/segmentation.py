"""
Boundary metrics for topic segmentation: Pk and WindowDiff.

Both compare a reference and a hypothesis position array with a sliding
window of size k. Lower is better, 0 means identical segmentations.

References:
    Beeferman et al. (1999), Statistical Models for Text Segmentation.
    Pevzner and Hearst (2002), A Critique and Improvement of an
    Evaluation Metric for Text Segmentation.
"""

import logging
import threading
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..exceptions import InvalidParameterError
from ..types import Document, Provenance
from .positions import (
    masses_from_positions,
    positions_from_segments,
    validate_positions,
    window_size,
)

logger = logging.getLogger(__name__)


def _check_inputs(reference: Sequence[int], hypothesis: Sequence[int], k: int) -> Tuple[np.ndarray, np.ndarray]:
    ref = validate_positions(reference)
    hyp = validate_positions(hypothesis)
    if ref.shape[0] != hyp.shape[0]:
        raise InvalidParameterError(
            f"Reference and hypothesis lengths differ: {ref.shape[0]} vs {hyp.shape[0]}"
        )
    if k < 1:
        raise InvalidParameterError(f"k must be >= 1, got {k}")
    return ref, hyp


def _two_sentence_score(ref: np.ndarray, hyp: np.ndarray) -> float:
    return 0.0 if (ref[0] == ref[1]) == (hyp[0] == hyp[1]) else 1.0


def pk(reference: Sequence[int], hypothesis: Sequence[int], k: int) -> float:
    """
    Pk: share of windows where reference and hypothesis disagree on
    whether both window ends lie in the same segment.

    Args:
        reference: Gold position array [T]
        hypothesis: Predicted position array [T]
        k: Window size

    Returns:
        Score in [0, 1]
    """
    ref, hyp = _check_inputs(reference, hypothesis, k)
    T = ref.shape[0]
    if T < 2:
        return 0.0
    if T == 2:
        return _two_sentence_score(ref, hyp)
    if T <= k:
        return 0.0

    agree_ref = ref[:T - k] == ref[k:]
    agree_hyp = hyp[:T - k] == hyp[k:]
    return float(np.mean(agree_ref != agree_hyp))


def window_diff(reference: Sequence[int], hypothesis: Sequence[int], k: int) -> float:
    """
    WindowDiff: share of windows where reference and hypothesis contain a
    different number of boundaries.

    Args:
        reference: Gold position array [T]
        hypothesis: Predicted position array [T]
        k: Window size

    Returns:
        Score in [0, 1]
    """
    ref, hyp = _check_inputs(reference, hypothesis, k)
    T = ref.shape[0]
    if T < 2:
        return 0.0
    if T == 2:
        return _two_sentence_score(ref, hyp)
    if T <= k:
        return 0.0

    # boundary[t] == 1 between sentence t and t+1
    ref_bounds = np.concatenate([[0], np.cumsum(ref[1:] != ref[:-1])])
    hyp_bounds = np.concatenate([[0], np.cumsum(hyp[1:] != hyp[:-1])])
    ref_counts = ref_bounds[k:] - ref_bounds[:T - k]
    hyp_counts = hyp_bounds[k:] - hyp_bounds[:T - k]
    return float(np.mean(ref_counts != hyp_counts))


@dataclass
class SegmentationScores:
    """Corpus-level boundary metrics."""
    pk: float = 0.0
    window_diff: float = 0.0
    num_documents: int = 0
    count_expected: int = 0
    count_predicted: int = 0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


class SegmentationEvaluator:
    """
    Accumulates Pk and WindowDiff over documents.

    ``update`` converts every document into its (reference, hypothesis)
    position arrays and validates them. Scoring happens in ``compute``: the
    window size is computed once from the gold masses of all accumulated
    documents, or for every document when ``per_document_k`` is set. The
    corpus score is the mean of per-document scores.

    Attributes:
        per_document_k: Recompute k for every document
        merge_sections: Merge adjacent segments with the same label into one

    Example:
        >>> evaluator = SegmentationEvaluator()
        >>> evaluator.update(documents)
        >>> scores = evaluator.compute()
        >>> print(f"WD: {scores.window_diff:.4f}")
    """

    def __init__(self, per_document_k: bool = False, merge_sections: bool = True):
        self.per_document_k = per_document_k
        self.merge_sections = merge_sections
        self._lock = threading.Lock()
        self.reset()

    def positions(self, doc: Document, provenance: Provenance) -> np.ndarray:
        """Position array of one segmentation of a document."""
        return positions_from_segments(
            doc.segments(provenance), doc.num_sentences, merge=self.merge_sections
        )

    def masses(self, doc: Document, provenance: Provenance) -> List[int]:
        """Masses of one segmentation of a document."""
        return masses_from_positions(self.positions(doc, provenance))

    def corpus_window_size(self, documents: Iterable[Document]) -> int:
        """Window size from the mean gold segment length over all documents."""
        masses: List[int] = []
        for doc in documents:
            masses.extend(self.masses(doc, Provenance.GOLD))
        return window_size(masses)

    def score_document(self, doc: Document, k: Optional[int] = None) -> Tuple[float, float]:
        """
        Compute (pk, window_diff) for a single document.

        Args:
            doc: Document with gold and predicted segments
            k: Window size, computed from the document's gold masses if None
        """
        reference = self.positions(doc, Provenance.GOLD)
        hypothesis = self.positions(doc, Provenance.PRED)
        if k is None:
            k = window_size(masses_from_positions(reference))
        return pk(reference, hypothesis, k), window_diff(reference, hypothesis, k)

    def update(self, documents: Sequence[Document]) -> None:
        """
        Add a batch of documents.

        Nothing is stored if any document of the batch is malformed.

        Raises:
            InvalidSegmentationError: If a segmentation is malformed
        """
        pairs: List[Tuple[np.ndarray, np.ndarray]] = []
        for doc in documents:
            reference = validate_positions(self.positions(doc, Provenance.GOLD))
            hypothesis = validate_positions(self.positions(doc, Provenance.PRED))
            pairs.append((reference, hypothesis))
            logger.debug(
                f"Document {doc.doc_id}: {len(masses_from_positions(reference))} gold, "
                f"{len(masses_from_positions(hypothesis))} predicted segments"
            )

        with self._lock:
            self._pairs.extend(pairs)

    def compute(self) -> SegmentationScores:
        """Score all accumulated documents."""
        with self._lock:
            pairs = list(self._pairs)

        if not pairs:
            logger.warning("compute() called with no accumulated documents")
            return SegmentationScores()

        gold_masses = [masses_from_positions(ref) for ref, _ in pairs]
        corpus_k = None
        if not self.per_document_k:
            corpus_k = window_size([m for masses in gold_masses for m in masses])
            logger.debug(f"Using window size k={corpus_k} for {len(pairs)} documents")

        pk_sum = wd_sum = 0.0
        count_pred = 0
        for (reference, hypothesis), masses in zip(pairs, gold_masses):
            k = corpus_k if corpus_k is not None else window_size(masses)
            pk_sum += pk(reference, hypothesis, k)
            wd_sum += window_diff(reference, hypothesis, k)
            count_pred += len(masses_from_positions(hypothesis))

        return SegmentationScores(
            pk=pk_sum / len(pairs),
            window_diff=wd_sum / len(pairs),
            num_documents=len(pairs),
            count_expected=sum(len(masses) for masses in gold_masses),
            count_predicted=count_pred,
        )

    def reset(self) -> None:
        """Drop all accumulated documents."""
        self._pairs: List[Tuple[np.ndarray, np.ndarray]] = []

    def merge(self, other: "SegmentationEvaluator") -> None:
        """Add the documents of another evaluator (e.g. from a worker thread)."""
        with other._lock:
            pairs = list(other._pairs)
        with self._lock:
            self._pairs.extend(pairs)

    @property
    def num_documents(self) -> int:
        """Number of documents accumulated so far."""
        return len(self._pairs)

    def __repr__(self) -> str:
        return (
            f"SegmentationEvaluator(per_document_k={self.per_document_k}, "
            f"merge_sections={self.merge_sections}, documents={self.num_documents})"
        )
