"""
Unit tests for data types, exceptions and payload schemas
"""

import numpy as np
import pytest
from pydantic import ValidationError

from topicseg.exceptions import InvalidParameterError, InvalidSegmentationError, TopicSegError
from topicseg.schemas import DocumentSchema, SegmentSchema
from topicseg.types import Document, Provenance, Segment


class TestSegment:
    """Tests for Segment"""

    def test_length_and_overlap(self):
        a = Segment(begin=0, end=5)
        b = Segment(begin=3, end=8)
        assert a.length == 5
        assert a.overlap(b) == 2
        assert a.overlap(Segment(begin=5, end=9)) == 0

    def test_label_or_heading(self):
        assert Segment(begin=0, end=1, label="a", heading="H").label_or_heading == "a"
        assert Segment(begin=0, end=1, heading="H").label_or_heading == "H"
        assert Segment(begin=0, end=1).label_or_heading is None

    def test_equality_ignores_vector(self):
        a = Segment(begin=0, end=2, vector=np.array([1.0, 0.0]))
        b = Segment(begin=0, end=2, vector=np.array([0.0, 1.0]))
        assert a == b


class TestDocument:
    """Tests for Document"""

    def test_negative_length(self):
        with pytest.raises(ValueError):
            Document(doc_id="bad", num_sentences=-1)

    def test_segments_sorted(self):
        doc = Document(
            doc_id="doc",
            num_sentences=6,
            gold_segments=[
                Segment(begin=3, end=6, provenance=Provenance.GOLD),
                Segment(begin=0, end=3, provenance=Provenance.GOLD),
            ],
        )
        assert [s.begin for s in doc.segments(Provenance.GOLD)] == [0, 3]
        assert doc.segments(Provenance.PRED) == []

    def test_set_predicted(self):
        doc = Document(doc_id="doc", num_sentences=2)
        segments = [Segment(begin=0, end=2)]
        doc.set_predicted(segments)
        assert doc.pred_segments == segments
        assert doc.pred_segments is not segments


class TestExceptions:
    """Tests for the exception hierarchy"""

    def test_hierarchy(self):
        for error in (InvalidSegmentationError, InvalidParameterError):
            assert issubclass(error, TopicSegError)
            assert issubclass(error, ValueError)


class TestSegmentSchema:
    """Tests for SegmentSchema"""

    def test_valid(self):
        segment = SegmentSchema(begin=0, end=3, label="a", vector=[0.2, 0.8]).to_segment()
        assert segment.provenance == Provenance.GOLD
        assert segment.vector.dtype == np.float64
        assert segment.vector.tolist() == [0.2, 0.8]

    def test_empty_range(self):
        with pytest.raises(ValidationError):
            SegmentSchema(begin=3, end=3)

    def test_negative_begin(self):
        with pytest.raises(ValidationError):
            SegmentSchema(begin=-1, end=3)

    def test_confidence_range(self):
        with pytest.raises(ValidationError):
            SegmentSchema(begin=0, end=3, confidence=1.5)


class TestDocumentSchema:
    """Tests for DocumentSchema"""

    @pytest.fixture
    def payload(self):
        return {
            "doc_id": "wiki-1",
            "num_sentences": 3,
            "embeddings": [[0.1, 0.2], [0.1, 0.3], [0.9, 0.1]],
            "gold_vectors": [[1, 0], [1, 0], [0, 1]],
            "segments": [
                {"begin": 0, "end": 2, "label": "a"},
                {"begin": 2, "end": 3, "label": "b"},
                {"begin": 0, "end": 3, "provenance": "PRED"},
            ],
        }

    def test_to_document(self, payload):
        doc = DocumentSchema.from_dict(payload).to_document()
        assert doc.num_sentences == 3
        assert doc.embeddings.shape == (3, 2)
        assert doc.embeddings.dtype == np.float32
        assert doc.pred_vectors is None
        assert [s.label for s in doc.gold_segments] == ["a", "b"]
        assert len(doc.pred_segments) == 1

    def test_row_count_mismatch(self, payload):
        payload["embeddings"] = payload["embeddings"][:2]
        with pytest.raises(ValidationError):
            DocumentSchema.from_dict(payload)

    def test_ragged_rows(self, payload):
        payload["embeddings"][1] = [0.1]
        with pytest.raises(ValidationError):
            DocumentSchema.from_dict(payload)

    def test_segment_beyond_document(self, payload):
        payload["segments"].append({"begin": 2, "end": 4})
        with pytest.raises(ValidationError):
            DocumentSchema.from_dict(payload)

    def test_direction_dimensions(self, payload):
        payload["embeddings_fw"] = [[0.0, 0.0]] * 3
        payload["embeddings_bw"] = [[0.0]] * 3
        with pytest.raises(ValidationError):
            DocumentSchema.from_dict(payload)

    def test_empty_document(self):
        doc = DocumentSchema(doc_id="empty", num_sentences=0, embeddings=[]).to_document()
        assert doc.embeddings is None
        assert doc.gold_segments == []
