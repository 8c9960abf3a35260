"""
Core data structures shared by segmentation and evaluation.

The segmentation package produces ``Segment`` lists, the evaluation
package consumes them. ``Document`` bundles everything that is known about
one document at evaluation time.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

import numpy as np
import torch


class Provenance(str, Enum):
    """Origin of a segment annotation."""
    GOLD = "GOLD"
    PRED = "PRED"


@dataclass
class Segment:
    """
    Contiguous span of sentences sharing one topic.

    Attributes:
        begin: Index of the first sentence (inclusive)
        end: Index after the last sentence (exclusive)
        label: Topic class label, if known
        heading: Section heading, if known
        confidence: Confidence of the predicted label
        provenance: GOLD or PRED
        vector: Class distribution of the segment [C]
    """
    begin: int
    end: int
    label: Optional[str] = None
    heading: Optional[str] = None
    confidence: Optional[float] = None
    provenance: Provenance = Provenance.PRED
    vector: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    @property
    def length(self) -> int:
        """Number of sentences in the segment"""
        return self.end - self.begin

    @property
    def label_or_heading(self) -> Optional[str]:
        """Label used to merge adjacent segments."""
        return self.label if self.label is not None else self.heading

    def overlap(self, other: "Segment") -> int:
        """Number of sentences shared with another segment."""
        return max(0, min(self.end, other.end) - max(self.begin, other.begin))


Matrix = Union[torch.Tensor, np.ndarray]


@dataclass
class Document:
    """
    One document as seen by the segmentation and evaluation engine.

    Embeddings and class vectors are produced by an external encoder and
    are read-only here. Predicted segments are written by the segmenter.

    Attributes:
        doc_id: Document identifier
        num_sentences: Number of sentences T
        embeddings: Sentence embeddings [T, D]
        embeddings_fw: Forward-direction embeddings [T, D]
        embeddings_bw: Backward-direction embeddings [T, D]
        gold_vectors: Gold class indicator vectors per sentence [T, C]
        pred_vectors: Predicted class distributions per sentence [T, C]
        gold_segments: Gold segmentation
        pred_segments: Predicted segmentation
    """
    doc_id: str
    num_sentences: int
    embeddings: Optional[Matrix] = field(default=None, repr=False)
    embeddings_fw: Optional[Matrix] = field(default=None, repr=False)
    embeddings_bw: Optional[Matrix] = field(default=None, repr=False)
    gold_vectors: Optional[np.ndarray] = field(default=None, repr=False)
    pred_vectors: Optional[np.ndarray] = field(default=None, repr=False)
    gold_segments: List[Segment] = field(default_factory=list)
    pred_segments: List[Segment] = field(default_factory=list)

    def __post_init__(self):
        if self.num_sentences < 0:
            raise ValueError(f"num_sentences must be >= 0, got {self.num_sentences}")

    def segments(self, provenance: Provenance) -> List[Segment]:
        """Return the segments of one provenance sorted by begin."""
        segs = self.gold_segments if provenance == Provenance.GOLD else self.pred_segments
        return sorted(segs, key=lambda s: (s.begin, s.end))

    def set_predicted(self, segments: List[Segment]) -> None:
        """Replace the predicted segmentation."""
        self.pred_segments = list(segments)
