"""
Configuration for combined segmentation and classification evaluation
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..settings import settings
from .ranking import APMode


@dataclass
class EvaluationConfig:
    """
    Evaluation configuration.

    Attributes:
        k: Cutoff for P@K, R@K and Accuracy@K
        per_document_k: Recompute the Pk / WindowDiff window size for every
            document instead of once for the corpus
        merge_sections: Merge adjacent segments with the same label into
            one segment (gold and predicted)
        ap_mode: "primary" average precision uses only the first gold class,
            "multilabel" uses every gold positive
        sentence_classification: Evaluate per-sentence class vectors
        segmentation: Evaluate Pk / WindowDiff
        segment_classification: Evaluate per-segment class vectors
        match_all_predicted: Also pair unmatched predicted segments with
            their best gold segment
    """
    k: int = 3
    per_document_k: bool = False
    merge_sections: bool = True
    ap_mode: APMode = "primary"
    sentence_classification: bool = True
    segmentation: bool = True
    segment_classification: bool = True
    match_all_predicted: bool = True

    def __post_init__(self):
        if self.k < 1:
            raise ValueError("k must be >= 1")
        if self.ap_mode not in ("primary", "multilabel"):
            raise ValueError(f"Unknown average precision mode '{self.ap_mode}'")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "EvaluationConfig":
        """Build from a settings section, ignoring unknown keys."""
        data = data or {}
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    @classmethod
    def from_settings(cls) -> "EvaluationConfig":
        """Build from the ``evaluation`` section of topicseg.yaml."""
        return cls.from_dict(settings.get("evaluation"))
