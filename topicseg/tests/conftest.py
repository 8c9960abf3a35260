"""
Shared test configuration and fixtures
"""

import sys
from pathlib import Path

import numpy as np
import pytest
import torch

# Add the project root to the path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from topicseg.types import Document, Provenance, Segment  # noqa: E402


def _make_segments(ranges, provenance=Provenance.GOLD, labels=None):
    """Build segments from (begin, end) pairs, end exclusive."""
    labels = labels or [None] * len(ranges)
    return [
        Segment(begin=b, end=e, label=label, provenance=provenance)
        for (b, e), label in zip(ranges, labels)
    ]


def _make_document(num_sentences, gold_ranges, pred_ranges, doc_id="doc", **kwargs):
    """Document with unlabeled gold and predicted segments."""
    return Document(
        doc_id=doc_id,
        num_sentences=num_sentences,
        gold_segments=_make_segments(gold_ranges, Provenance.GOLD),
        pred_segments=_make_segments(pred_ranges, Provenance.PRED),
        **kwargs,
    )


def _block_embeddings(block_sizes, dim=32, noise=0.01, seed=0):
    """
    Embeddings made of constant blocks (one random direction per block)
    with a small amount of noise.
    """
    generator = torch.Generator().manual_seed(seed)
    blocks = []
    for size in block_sizes:
        center = torch.randn(1, dim, generator=generator)
        blocks.append(center.repeat(size, 1) + noise * torch.randn(size, dim, generator=generator))
    return torch.cat(blocks, dim=0)


@pytest.fixture
def three_topic_embeddings():
    """30 sentences in three topical blocks of 10."""
    return _block_embeddings([10, 10, 10])


@pytest.fixture
def three_topic_document(three_topic_embeddings):
    """Document with embeddings, gold segments and class vectors."""
    T = three_topic_embeddings.shape[0]
    gold_vectors = np.zeros((T, 3), dtype=np.float32)
    gold_vectors[0:10, 0] = 1
    gold_vectors[10:20, 1] = 1
    gold_vectors[20:30, 2] = 1
    pred_vectors = 0.1 + 0.8 * gold_vectors
    return Document(
        doc_id="three-topics",
        num_sentences=T,
        embeddings=three_topic_embeddings,
        embeddings_fw=three_topic_embeddings,
        embeddings_bw=three_topic_embeddings,
        gold_vectors=gold_vectors,
        pred_vectors=pred_vectors,
        gold_segments=_make_segments(
            [(0, 10), (10, 20), (20, 30)], Provenance.GOLD, labels=["a", "b", "c"]
        ),
    )


@pytest.fixture
def make_segments():
    """Factory for segment lists from (begin, end) pairs."""
    return _make_segments


@pytest.fixture
def make_document():
    """Factory for documents with gold and predicted segments."""
    return _make_document


@pytest.fixture
def block_embeddings():
    """Factory for block-structured embeddings."""
    return _block_embeddings
