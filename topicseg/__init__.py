"""
topicseg: embedding-driven topic segmentation and evaluation.

Segments documents at topic shifts of their sentence embeddings and scores
predicted segmentations and topic labels against gold annotations
(Pk, WindowDiff, MAP, MRR, P@K, R@K, Accuracy@K, P/R/F1).
"""

from .exceptions import TopicSegError, InvalidSegmentationError, InvalidParameterError
from .types import Provenance, Segment, Document
from .segmentation import SegmentationConfig, TopicSegmenter
from .evaluation import (
    EvaluationConfig,
    SegmentationEvaluator,
    ClassificationEvaluator,
    SectorEvaluation,
    EvaluationReport,
)

__version__ = "0.1.0"

__all__ = [
    'TopicSegError',
    'InvalidSegmentationError',
    'InvalidParameterError',
    'Provenance',
    'Segment',
    'Document',
    'SegmentationConfig',
    'TopicSegmenter',
    'EvaluationConfig',
    'SegmentationEvaluator',
    'ClassificationEvaluator',
    'SectorEvaluation',
    'EvaluationReport',
]
