"""
Topic segmenter: runs the configured strategy on documents and attaches
the predicted segments.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

import torch

from ..types import Document, Provenance, Segment
from .builder import (
    attach_segment_vectors,
    build_segments,
    segments_from_class_vectors,
    segments_from_gold,
)
from .config import SegmentationConfig
from .deviation import deviation_from_bidirectional, deviation_from_embeddings
from .edges import detect_edges, detect_edges_with_count

logger = logging.getLogger(__name__)


class TopicSegmenter:
    """
    Detects topic boundaries in documents.

    Embedding strategies ("emd", "bemd", "bemd_fixed") run
    PCA -> Gaussian smoothing -> deviation -> edge detection -> segments.
    "gold" copies gold boundaries, "max" follows changes of the predicted
    topic label.

    Attributes:
        config: Segmenter configuration
        labels: Optional class names used for segment labels

    Example:
        >>> segmenter = TopicSegmenter(SegmentationConfig(method="emd"))
        >>> segments = segmenter.segment(doc)
    """

    def __init__(
        self,
        config: Optional[SegmentationConfig] = None,
        labels: Optional[Sequence[str]] = None
    ):
        self.config = config or SegmentationConfig()
        self.labels = list(labels) if labels is not None else None

    def deviation(self, doc: Document) -> Optional[torch.Tensor]:
        """
        Compute the deviation series used by the embedding strategies.

        Returns:
            Tensor [T] or None if the document is too short
        """
        cfg = self.config
        if cfg.method == "emd":
            if doc.embeddings is None:
                raise ValueError(f"Document {doc.doc_id} has no embeddings")
            return deviation_from_embeddings(
                doc.embeddings,
                pca_dims=cfg.pca_dims,
                sigma=cfg.sigma,
                centered=cfg.centered,
            )
        if cfg.method in ("bemd", "bemd_fixed"):
            if doc.embeddings_fw is None or doc.embeddings_bw is None:
                raise ValueError(f"Document {doc.doc_id} has no forward/backward embeddings")
            return deviation_from_bidirectional(
                doc.embeddings_fw,
                doc.embeddings_bw,
                pca_dims=cfg.pca_dims,
                sigma=cfg.bidirectional_sigma,
                drop_components=cfg.drop_components,
            )
        raise ValueError(f"Method '{cfg.method}' does not use a deviation signal")

    def _detect(self, doc: Document) -> List[Segment]:
        method = self.config.method

        if method == "gold":
            return segments_from_gold(doc.gold_segments)

        if method == "max":
            if doc.pred_vectors is None:
                raise ValueError(f"Document {doc.doc_id} has no sentence predictions")
            return segments_from_class_vectors(doc.pred_vectors, k=self.config.label_top_k)

        if doc.num_sentences < 1:
            return build_segments(0, None)

        dev = self.deviation(doc)
        if method == "bemd_fixed":
            expected = max(len(doc.gold_segments), 1)
            edges = detect_edges_with_count(dev, expected)
        else:
            edges = detect_edges(dev)
        return build_segments(doc.num_sentences, edges)

    def segment(self, doc: Document) -> List[Segment]:
        """
        Segment one document and store the result as its PRED segments.

        Args:
            doc: Document with the inputs required by the configured method

        Returns:
            List of predicted segments partitioning the document
        """
        segments = self._detect(doc)

        if self.config.attach_vectors and doc.pred_vectors is not None:
            attach_segment_vectors(segments, doc.pred_vectors, self.labels)

        for seg in segments:
            seg.provenance = Provenance.PRED
        doc.set_predicted(segments)

        logger.debug(
            f"Document {doc.doc_id}: {len(segments)} segments from "
            f"{doc.num_sentences} sentences ({self.config.method})"
        )
        return segments

    def segment_documents(
        self,
        docs: Sequence[Document],
        max_workers: Optional[int] = None
    ) -> List[List[Segment]]:
        """
        Segment many documents, in parallel when max_workers > 1.

        Documents are independent, each worker only writes to its own
        document.
        """
        logger.info(f"Predicting segmentation {self.config.method} for {len(docs)} documents...")
        if max_workers is None or max_workers <= 1:
            results = [self.segment(doc) for doc in docs]
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                results = list(pool.map(self.segment, docs))
        logger.info("Segmentation done.")
        return results

    def __repr__(self) -> str:
        return f"TopicSegmenter(method={self.config.method!r}, pca_dims={self.config.pca_dims})"
