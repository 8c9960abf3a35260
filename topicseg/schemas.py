"""
Pydantic schemas for validating annotation payloads handed over by the
document store and converting them into topicseg dataclasses.
"""

from typing import Any, Dict, List, Optional

import numpy as np
from pydantic import BaseModel, Field, field_validator, model_validator

from .types import Document, Provenance, Segment


class SegmentSchema(BaseModel):
    """One annotated segment in sentence offsets (end exclusive)"""
    begin: int = Field(..., ge=0, description="First sentence index (inclusive)")
    end: int = Field(..., gt=0, description="Sentence index after the segment (exclusive)")
    label: Optional[str] = Field(None, description="Topic class label")
    heading: Optional[str] = Field(None, description="Section heading")
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0, description="Label confidence [0,1]")
    provenance: Provenance = Field(Provenance.GOLD, description="GOLD or PRED")
    vector: Optional[List[float]] = Field(None, description="Class distribution of the segment [C]")

    @model_validator(mode="after")
    def validate_range(self) -> "SegmentSchema":
        """Check that end > begin"""
        if self.end <= self.begin:
            raise ValueError(f"Segment end must be > begin, got [{self.begin}, {self.end})")
        return self

    def to_segment(self) -> Segment:
        return Segment(
            begin=self.begin,
            end=self.end,
            label=self.label,
            heading=self.heading,
            confidence=self.confidence,
            provenance=self.provenance,
            vector=None if self.vector is None else np.asarray(self.vector, dtype=np.float64),
        )


class DocumentSchema(BaseModel):
    """Complete evaluation payload of one document"""
    doc_id: str = Field(..., min_length=1, description="Document identifier")
    num_sentences: int = Field(..., ge=0, description="Number of sentences T")
    embeddings: Optional[List[List[float]]] = Field(None, description="Sentence embeddings [T, D]")
    embeddings_fw: Optional[List[List[float]]] = Field(None, description="Forward embeddings [T, D]")
    embeddings_bw: Optional[List[List[float]]] = Field(None, description="Backward embeddings [T, D]")
    gold_vectors: Optional[List[List[float]]] = Field(None, description="Gold class vectors [T, C]")
    pred_vectors: Optional[List[List[float]]] = Field(None, description="Predicted class vectors [T, C]")
    segments: List[SegmentSchema] = Field(default_factory=list, description="Gold and/or predicted segments")

    @field_validator("embeddings", "embeddings_fw", "embeddings_bw", "gold_vectors", "pred_vectors")
    @classmethod
    def validate_rectangular(cls, v: Optional[List[List[float]]]) -> Optional[List[List[float]]]:
        """Check that all rows have the same width"""
        if v is None or len(v) == 0:
            return v
        width = len(v[0])
        for row in v:
            if len(row) != width:
                raise ValueError(f"All rows must have {width} values, got {len(row)}")
        return v

    @model_validator(mode="after")
    def validate_shapes(self) -> "DocumentSchema":
        """Check matrix row counts and segment bounds against num_sentences"""
        for name in ("embeddings", "embeddings_fw", "embeddings_bw", "gold_vectors", "pred_vectors"):
            rows = getattr(self, name)
            if rows is not None and len(rows) != self.num_sentences:
                raise ValueError(f"{name} must have {self.num_sentences} rows, got {len(rows)}")
        if self.embeddings_fw is not None and self.embeddings_bw is not None:
            if self.embeddings_fw and len(self.embeddings_fw[0]) != len(self.embeddings_bw[0]):
                raise ValueError("embeddings_fw and embeddings_bw must have the same dimension")
        for seg in self.segments:
            if seg.end > self.num_sentences:
                raise ValueError(
                    f"Segment [{seg.begin}, {seg.end}) exceeds document length {self.num_sentences}"
                )
        return self

    def to_document(self) -> Document:
        """Convert to the internal Document dataclass."""
        def as_array(rows):
            # empty matrices carry no shape information
            return np.asarray(rows, dtype=np.float32) if rows else None

        segments = [s.to_segment() for s in self.segments]
        return Document(
            doc_id=self.doc_id,
            num_sentences=self.num_sentences,
            embeddings=as_array(self.embeddings),
            embeddings_fw=as_array(self.embeddings_fw),
            embeddings_bw=as_array(self.embeddings_bw),
            gold_vectors=as_array(self.gold_vectors),
            pred_vectors=as_array(self.pred_vectors),
            gold_segments=[s for s in segments if s.provenance == Provenance.GOLD],
            pred_segments=[s for s in segments if s.provenance == Provenance.PRED],
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentSchema":
        return cls(**data)
