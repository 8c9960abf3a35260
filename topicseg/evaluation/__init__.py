"""
Evaluation of topic segmentation and topic classification.

Boundary metrics (Pk, WindowDiff) compare position arrays, ranking
metrics (MAP, MRR, P@K, R@K, Accuracy@K) and P/R/F1 compare class
vectors. ``SectorEvaluation`` combines them over a corpus.

Example:
    from topicseg.evaluation import SectorEvaluation, EvaluationConfig

    evaluation = SectorEvaluation(class_names=labels, config=EvaluationConfig(k=3))
    report = evaluation.evaluate(documents)
    print(report.format_table())
"""

from .config import EvaluationConfig
from .positions import (
    positions_from_segments,
    masses_from_positions,
    validate_positions,
    round_half_up,
    window_size,
)
from .segmentation import pk, window_diff, SegmentationScores, SegmentationEvaluator
from .ranking import (
    rank_indices,
    primary_index,
    reciprocal_rank,
    average_precision,
    precision_at_k,
    recall_at_k,
    hit_at_k,
    safe_div,
)
from .classification import (
    ClassificationScores,
    ClassificationEvaluator,
    match_max_overlap,
    format_per_class_table,
)
from .sector import EvaluationReport, SectorEvaluation

__all__ = [
    'EvaluationConfig',
    'positions_from_segments',
    'masses_from_positions',
    'validate_positions',
    'round_half_up',
    'window_size',
    'pk',
    'window_diff',
    'SegmentationScores',
    'SegmentationEvaluator',
    'rank_indices',
    'primary_index',
    'reciprocal_rank',
    'average_precision',
    'precision_at_k',
    'recall_at_k',
    'hit_at_k',
    'safe_div',
    'ClassificationScores',
    'ClassificationEvaluator',
    'match_max_overlap',
    'format_per_class_table',
    'EvaluationReport',
    'SectorEvaluation',
]
