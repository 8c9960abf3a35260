"""
Combined evaluation of sentence classification, segmentation and segment
classification over a corpus of documents.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from ..types import Document, Provenance, Segment
from .classification import (
    ClassificationEvaluator,
    ClassificationScores,
    format_per_class_table,
)
from .config import EvaluationConfig
from .segmentation import SegmentationEvaluator, SegmentationScores

logger = logging.getLogger(__name__)

# Per-class tables are skipped for larger label sets
MAX_CLASSES_PER_CLASS_TABLE = 50


def _with_vector(segment: Segment, sentence_vectors: Optional[np.ndarray]) -> Segment:
    """Copy of ``segment`` carrying the mean sentence vector of its span."""
    if segment.vector is not None or sentence_vectors is None:
        return segment
    span = np.asarray(sentence_vectors, dtype=np.float64)[segment.begin:segment.end]
    if len(span) == 0:
        return segment
    return dataclasses.replace(segment, vector=span.mean(axis=0))


@dataclass
class EvaluationReport:
    """
    Result of a combined evaluation run.

    Sections that were disabled (or had no usable input) are None.
    """
    num_documents: int = 0
    num_sentences: int = 0
    count_gold: int = 0
    count_predicted: int = 0
    sentence: Optional[ClassificationScores] = None
    segmentation: Optional[SegmentationScores] = None
    segment: Optional[ClassificationScores] = None
    per_class: Dict[Union[str, int], Dict[str, float]] = field(default_factory=dict)

    @property
    def score(self) -> float:
        """Segment MAP if available, else sentence MAP, else 0."""
        if self.segment is not None:
            return self.segment.map
        if self.sentence is not None:
            return self.sentence.map
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "num_documents": self.num_documents,
            "num_sentences": self.num_sentences,
            "count_gold": self.count_gold,
            "count_predicted": self.count_predicted,
            "sentence": self.sentence.to_dict() if self.sentence else None,
            "segmentation": self.segmentation.to_dict() if self.segmentation else None,
            "segment": self.segment.to_dict() if self.segment else None,
            "score": self.score,
        }

    @staticmethod
    def _classification_cells(scores: ClassificationScores) -> List[str]:
        return [
            f"{scores.accuracy:.4f}",
            f"{scores.accuracy_at_k:.4f}",
            f"{scores.precision_at_1:.4f}",
            f"{scores.precision_at_k:.4f}",
            f"{scores.recall_at_1:.4f}",
            f"{scores.recall_at_k:.4f}",
            f"{scores.map:.4f}",
        ]

    @staticmethod
    def _classification_header(k: int) -> str:
        return f"| A@1\t A@{k}\t P@1\t P@{k}\t R@1\t R@{k}\t MAP"

    def format_table(self) -> str:
        """Results as a tab-separated table, one column group per section."""
        groups = ["|statistics ---"]
        headers = ["||docs|\t|sents|"]
        cells = [str(self.num_documents), str(self.num_sentences)]

        if self.sentence is not None:
            groups.append("|sentence classification ---")
            headers.append(self._classification_header(self.sentence.k))
            cells.extend(self._classification_cells(self.sentence))
        if self.segmentation is not None:
            groups.append("|segmentation ---")
            headers.append("| |exp|\t |relv|\t |pred|\t |retr|\t Pk\t WD")
            cells.extend([
                str(self.count_gold),
                str(self.segmentation.count_expected),
                str(self.count_predicted),
                str(self.segmentation.count_predicted),
                f"{self.segmentation.pk:.4f}",
                f"{self.segmentation.window_diff:.4f}",
            ])
        if self.segment is not None:
            groups.append("|segment classification ---")
            headers.append(self._classification_header(self.segment.k))
            cells.extend(self._classification_cells(self.segment))

        return "\n".join([
            "TOPIC SEGMENTATION EVALUATION [micro-avg]",
            "\t".join(groups),
            "\t".join(headers),
            "\t".join(cells),
        ])

    def format_per_class(self) -> str:
        """Per-class table of the segment (or sentence) classification."""
        if not self.per_class:
            return "Too many classes for single-class stats"
        return format_per_class_table(self.per_class)


class SectorEvaluation:
    """
    Runs all evaluations configured in ``EvaluationConfig`` on documents.

    Classification needs the number of classes (or class names). Without
    them only segmentation is evaluated.

    Example:
        >>> evaluation = SectorEvaluation(class_names=labels)
        >>> report = evaluation.evaluate(documents)
        >>> print(report.format_table())
    """

    def __init__(
        self,
        num_classes: Optional[int] = None,
        class_names: Optional[Sequence[str]] = None,
        config: Optional[EvaluationConfig] = None
    ):
        if num_classes is None and class_names is not None:
            num_classes = len(class_names)
        self.num_classes = num_classes
        self.class_names = list(class_names) if class_names is not None else None
        self.config = config or EvaluationConfig()

        self.segmentation_eval = self._new_segmentation_evaluator()
        self.sentence_eval = self._new_classification_evaluator()
        self.segment_eval = self._new_classification_evaluator()

        self.reset()

    def _new_segmentation_evaluator(self) -> SegmentationEvaluator:
        return SegmentationEvaluator(
            per_document_k=self.config.per_document_k,
            merge_sections=self.config.merge_sections,
        )

    def _new_classification_evaluator(self) -> Optional[ClassificationEvaluator]:
        if self.num_classes is None:
            return None
        cfg = self.config
        return ClassificationEvaluator(
            self.num_classes, k=cfg.k, class_names=self.class_names, ap_mode=cfg.ap_mode
        )

    @property
    def sentence_enabled(self) -> bool:
        return self.config.sentence_classification and self.sentence_eval is not None

    @property
    def segment_enabled(self) -> bool:
        return self.config.segment_classification and self.segment_eval is not None

    @property
    def segmentation_enabled(self) -> bool:
        return self.config.segmentation

    def reset(self) -> None:
        """Clear all evaluators and corpus counts."""
        self.segmentation_eval.reset()
        if self.sentence_eval is not None:
            self.sentence_eval.reset()
        if self.segment_eval is not None:
            self.segment_eval.reset()
        self._num_documents = 0
        self._num_sentences = 0
        self._count_gold = 0
        self._count_predicted = 0

    @staticmethod
    def _update_sentences(evaluator: ClassificationEvaluator, documents: Sequence[Document]) -> None:
        for doc in documents:
            if doc.gold_vectors is None or doc.pred_vectors is None:
                logger.debug(f"Document {doc.doc_id} has no sentence vectors, skipped")
                continue
            evaluator.update(doc.gold_vectors, doc.pred_vectors)

    def _update_segments(self, evaluator: ClassificationEvaluator, documents: Sequence[Document]) -> None:
        for doc in documents:
            gold = [_with_vector(s, doc.gold_vectors) for s in doc.segments(Provenance.GOLD)]
            pred = [_with_vector(s, doc.pred_vectors) for s in doc.segments(Provenance.PRED)]
            evaluator.update_from_segments(
                gold, pred, match_all_predicted=self.config.match_all_predicted
            )

    def update(self, documents: Sequence[Document]) -> None:
        """
        Add a batch of documents to every enabled evaluation.

        The batch is evaluated into fresh evaluators and merged only when
        every evaluation succeeded, so a malformed document leaves the
        accumulated statistics untouched.

        Raises:
            InvalidSegmentationError: If a segmentation is malformed
            InvalidParameterError: If class vectors have the wrong shape
        """
        documents = list(documents)
        logger.info(f"Evaluating {len(documents)} documents...")

        segmentation = self._new_segmentation_evaluator()
        sentence = self._new_classification_evaluator()
        segment = self._new_classification_evaluator()

        if self.segmentation_enabled:
            logger.info("calculating segmentation scores...")
            segmentation.update(documents)
        if self.sentence_enabled:
            logger.info("calculating sentence scores...")
            self._update_sentences(sentence, documents)
        if self.segment_enabled:
            logger.info("calculating segment scores...")
            self._update_segments(segment, documents)

        self.segmentation_eval.merge(segmentation)
        if self.sentence_enabled:
            self.sentence_eval.merge(sentence)
        if self.segment_enabled:
            self.segment_eval.merge(segment)

        for doc in documents:
            self._num_documents += 1
            self._num_sentences += doc.num_sentences
            self._count_gold += len(doc.gold_segments)
            self._count_predicted += len(doc.pred_segments)
        logger.info("done.")

    def report(self) -> EvaluationReport:
        """Finalize all enabled evaluations."""
        report = EvaluationReport(
            num_documents=self._num_documents,
            num_sentences=self._num_sentences,
            count_gold=self._count_gold,
            count_predicted=self._count_predicted,
        )
        if self.sentence_enabled:
            report.sentence = self.sentence_eval.compute()
        if self.segmentation_enabled:
            report.segmentation = self.segmentation_eval.compute()
        if self.segment_enabled:
            report.segment = self.segment_eval.compute()

        if self.num_classes is not None and self.num_classes < MAX_CLASSES_PER_CLASS_TABLE:
            if self.segment_enabled:
                report.per_class = self.segment_eval.compute_per_class()
            elif self.sentence_enabled:
                report.per_class = self.sentence_eval.compute_per_class()
        return report

    def evaluate(self, documents: Sequence[Document]) -> EvaluationReport:
        """Reset, evaluate ``documents`` and return the report."""
        self.reset()
        self.update(documents)
        return self.report()

    @property
    def score(self) -> float:
        """Segment MAP if enabled, else sentence MAP, else 0."""
        if self.segment_enabled:
            return self.segment_eval.compute().map
        if self.sentence_enabled:
            return self.sentence_eval.compute().map
        return 0.0

    def __repr__(self) -> str:
        return (
            f"SectorEvaluation(num_classes={self.num_classes}, "
            f"documents={self._num_documents})"
        )
