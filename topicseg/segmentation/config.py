"""
Configuration for embedding-based topic segmentation
"""

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

from ..settings import settings

SegmentationMethod = Literal["emd", "bemd", "bemd_fixed", "gold", "max"]


@dataclass
class SegmentationConfig:
    """
    Topic segmenter configuration.

    Attributes:
        method: Segmentation strategy. "emd" detects edges on the embedding
            deviation, "bemd" on the bidirectional (FW/BW) deviation,
            "bemd_fixed" like "bemd" but with as many segments as the gold
            standard, "gold" copies the gold boundaries and "max" starts a
            new segment whenever the top label changes
        pca_dims: Number of principal components kept before smoothing
        sigma: Gaussian bandwidth for the unidirectional pipeline
        bidirectional_sigma: Gaussian bandwidth for the bidirectional pipeline
        drop_components: Leading principal components zeroed in the
            bidirectional pipeline (global drift)
        centered: Mean-center embeddings before estimating components
            (unidirectional pipeline)
        label_top_k: Top-k labels checked by the "max" strategy
        attach_vectors: Attach mean class vectors, labels and confidences to
            predicted segments when sentence predictions are available
    """
    method: SegmentationMethod = "bemd"
    pca_dims: int = 16
    sigma: float = 2.5
    bidirectional_sigma: float = 1.5
    drop_components: int = 2
    centered: bool = True
    label_top_k: int = 2
    attach_vectors: bool = True

    def __post_init__(self):
        if self.method not in ("emd", "bemd", "bemd_fixed", "gold", "max"):
            raise ValueError(f"Unknown segmentation method '{self.method}'")
        if self.pca_dims < 1:
            raise ValueError("pca_dims must be >= 1")
        if self.sigma <= 0 or self.bidirectional_sigma <= 0:
            raise ValueError("sigma and bidirectional_sigma must be > 0")
        if not 0 <= self.drop_components < self.pca_dims:
            raise ValueError("drop_components must be in [0, pca_dims)")
        if self.label_top_k < 1:
            raise ValueError("label_top_k must be >= 1")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SegmentationConfig":
        """Build from a settings section, ignoring unknown keys."""
        data = data or {}
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    @classmethod
    def from_settings(cls) -> "SegmentationConfig":
        """Build from the ``segmentation`` section of topicseg.yaml."""
        return cls.from_dict(settings.get("segmentation"))
