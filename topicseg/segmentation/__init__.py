"""
Topic segmentation from sentence embeddings.

Pipeline: PCA -> Gaussian smoothing -> deviation -> edge detection ->
segment building.

Example:
    from topicseg.segmentation import TopicSegmenter, SegmentationConfig

    segmenter = TopicSegmenter(SegmentationConfig(method="emd"))
    segments = segmenter.segment(doc)
"""

from .config import SegmentationConfig
from .reducer import principal_components, reduce_dimensions
from .smoothing import gaussian_kernel, gaussian_smooth
from .deviation import (
    cosine_distance,
    embedding_deviation,
    bidirectional_deviation,
    deviation_from_embeddings,
    deviation_from_bidirectional,
)
from .edges import detect_edges, detect_edges_with_count
from .builder import (
    build_segments,
    segments_from_gold,
    segments_from_class_vectors,
    attach_segment_vectors,
)
from .segmenter import TopicSegmenter

__all__ = [
    'SegmentationConfig',
    'principal_components',
    'reduce_dimensions',
    'gaussian_kernel',
    'gaussian_smooth',
    'cosine_distance',
    'embedding_deviation',
    'bidirectional_deviation',
    'deviation_from_embeddings',
    'deviation_from_bidirectional',
    'detect_edges',
    'detect_edges_with_count',
    'build_segments',
    'segments_from_gold',
    'segments_from_class_vectors',
    'attach_segment_vectors',
    'TopicSegmenter',
]
