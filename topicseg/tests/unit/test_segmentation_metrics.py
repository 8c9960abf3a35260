"""
Unit tests for Pk, WindowDiff and the segmentation evaluator.

Segment ranges are (begin, end) with end exclusive.
"""

import logging

import numpy as np
import pytest

from topicseg.exceptions import InvalidParameterError, InvalidSegmentationError
from topicseg.evaluation import SegmentationEvaluator, pk, window_diff
from topicseg.types import Document, Provenance, Segment

TOLERANCE = 0.03

HEARST_PREDICTED = [(0, 3), (3, 9), (9, 13), (13, 15), (15, 19), (19, 21)]
HEARST_JUDGE_1 = [(0, 3), (3, 6), (6, 9), (9, 10), (10, 13), (13, 19), (19, 21)]
HEARST_JUDGE_2 = [(0, 3), (3, 11), (11, 13), (13, 17), (17, 19), (19, 21)]


def evaluate(doc, **kwargs):
    evaluator = SegmentationEvaluator(**kwargs)
    evaluator.update([doc])
    return evaluator.compute()


class TestPk:
    """Tests for the Pk metric"""

    def test_identical(self):
        ref = [1, 1, 1, 2, 2, 2, 3, 3]
        assert pk(ref, ref, 2) == 0.0

    def test_single_vs_many(self):
        ref = [1] * 13
        hyp = [1] * 4 + [2] * 4 + [3] * 5
        assert pk(ref, hyp, 7) == pytest.approx(1.0)

    def test_missed_boundary(self):
        ref = [1, 1, 1, 2, 2, 2]
        hyp = [1] * 6
        # windows (0,2) (1,3) (2,4) (3,5): ref disagrees at t=1 and t=2
        assert pk(ref, hyp, 2) == pytest.approx(0.5)

    def test_single_sentence(self):
        assert pk([1], [1], 2) == 0.0

    def test_two_sentences(self):
        """Test T=2 compares both sentences directly"""
        assert pk([1, 1], [1, 1], 2) == 0.0
        assert pk([1, 2], [1, 1], 2) == 1.0
        assert pk([1, 2], [1, 2], 5) == 0.0

    def test_window_larger_than_document(self):
        assert pk([1, 1, 2], [1, 2, 2], 3) == 0.0

    def test_length_mismatch(self):
        with pytest.raises(InvalidParameterError):
            pk([1, 1, 2], [1, 1], 2)

    def test_invalid_k(self):
        with pytest.raises(InvalidParameterError):
            pk([1, 1, 2], [1, 1, 2], 0)

    def test_malformed_positions(self):
        with pytest.raises(InvalidSegmentationError):
            pk([1, 0, 2], [1, 1, 2], 2)
        with pytest.raises(InvalidSegmentationError):
            pk([1, 1, 2], [2, 1, 1], 2)


class TestWindowDiff:
    """Tests for the WindowDiff metric"""

    def test_identical(self):
        ref = [1, 1, 1, 1, 2, 2, 2, 2, 3, 3, 3, 3, 3]
        assert window_diff(ref, ref, 2) == 0.0

    def test_counts_boundaries(self):
        """Test WindowDiff penalizes a different number of boundaries"""
        ref = [1, 1, 2, 2, 2, 2]
        hyp = [1, 1, 2, 3, 3, 3]
        assert window_diff(ref, hyp, 2) == pytest.approx(0.5)

    def test_single_sentence(self):
        assert window_diff([1], [1], 2) == 0.0

    def test_two_sentences(self):
        assert window_diff([1, 2], [1, 1], 2) == 1.0
        assert window_diff([1, 2], [1, 2], 2) == 0.0

    def test_identical_for_every_window_size(self):
        """Test Pk and WindowDiff are 0 for identical segmentations at any k"""
        rng = np.random.default_rng(1)
        for _ in range(10):
            T = int(rng.integers(2, 30))
            positions = np.cumsum(rng.integers(0, 2, T)) + 1
            for k in range(1, T):
                assert pk(positions, positions, k) == 0.0
                assert window_diff(positions, positions, k) == 0.0

    def test_bounds(self):
        """Test scores stay in [0, 1]"""
        rng = np.random.default_rng(0)
        for _ in range(20):
            T = int(rng.integers(3, 40))
            ref = np.cumsum(rng.integers(0, 2, T)) + 1
            hyp = np.cumsum(rng.integers(0, 2, T)) + 1
            k = int(rng.integers(1, T))
            assert 0.0 <= window_diff(ref, hyp, k) <= 1.0
            assert 0.0 <= pk(ref, hyp, k) <= 1.0

    def test_length_mismatch(self):
        with pytest.raises(InvalidParameterError):
            window_diff([1, 1, 2], [1, 1], 2)


class TestThirteenSentenceScenarios:
    """Reference scenarios on a document of 13 sentences"""

    def test_identical_segmentation(self, make_document):
        doc = make_document(13, [(0, 4), (4, 8), (8, 13)], [(0, 4), (4, 8), (8, 13)])
        scores = evaluate(doc)
        assert scores.window_diff == 0.0
        assert scores.pk == 0.0

    def test_one_gold_three_predicted(self, make_document):
        doc = make_document(13, [(0, 13)], [(0, 4), (4, 8), (8, 13)])
        assert evaluate(doc).window_diff == pytest.approx(1.0, abs=TOLERANCE)

    def test_three_gold_one_predicted(self, make_document):
        doc = make_document(13, [(0, 4), (4, 8), (8, 13)], [(0, 13)])
        assert evaluate(doc).window_diff == pytest.approx(0.3636, abs=TOLERANCE)

    def test_one_additional_segment_predicted(self, make_document):
        doc = make_document(13, [(0, 5), (5, 8), (8, 13)], [(0, 5), (5, 6), (6, 8), (8, 13)])
        assert evaluate(doc).window_diff == pytest.approx(0.1818, abs=TOLERANCE)

    def test_additional_segment_all_misaligned(self, make_document):
        doc = make_document(13, [(0, 5), (5, 8), (8, 13)], [(0, 6), (6, 7), (7, 9), (9, 13)])
        assert evaluate(doc).window_diff == pytest.approx(0.2727, abs=TOLERANCE)


class TestHearstScenarios:
    """Hearst (1997) Stargazers article, two human judges vs one prediction"""

    def test_judge_one(self, make_document):
        doc = make_document(21, HEARST_JUDGE_1, HEARST_PREDICTED)
        assert evaluate(doc).window_diff == pytest.approx(0.3158, abs=TOLERANCE)

    def test_judge_two(self, make_document):
        doc = make_document(21, HEARST_JUDGE_2, HEARST_PREDICTED)
        assert evaluate(doc).window_diff == pytest.approx(0.4211, abs=TOLERANCE)


class TestSegmentationEvaluator:
    """Tests for SegmentationEvaluator"""

    @pytest.fixture
    def long_doc(self, make_document):
        return make_document(13, [(0, 13)], [(0, 4), (4, 8), (8, 13)], doc_id="long")

    @pytest.fixture
    def short_doc(self, make_document):
        return make_document(4, [(0, 2), (2, 4)], [(0, 2), (2, 4)], doc_id="short")

    def test_corpus_window_size(self, long_doc, short_doc):
        """Test k from the corpus mean mass: (13 + 2 + 2) / 3 / 2 -> 3"""
        evaluator = SegmentationEvaluator()
        assert evaluator.corpus_window_size([long_doc, short_doc]) == 3
        evaluator.update([long_doc, short_doc])
        # long doc with k=3: 6 of 10 windows disagree, short doc is perfect
        assert evaluator.compute().window_diff == pytest.approx(0.3)

    def test_window_size_spans_updates(self, long_doc, short_doc):
        """Test the corpus k covers every update, not only the current batch"""
        split = SegmentationEvaluator()
        split.update([long_doc])
        split.update([short_doc])

        single = SegmentationEvaluator()
        single.update([long_doc, short_doc])

        assert split.compute().to_dict() == pytest.approx(single.compute().to_dict())
        assert split.compute().window_diff == pytest.approx(0.3)

    def test_malformed_batch_is_not_stored(self, long_doc, make_document):
        evaluator = SegmentationEvaluator()
        uncovered = make_document(6, [(2, 6)], [(0, 6)], doc_id="uncovered")
        with pytest.raises(InvalidSegmentationError):
            evaluator.update([long_doc, uncovered])
        assert evaluator.num_documents == 0

    def test_per_document_window_size(self, long_doc, short_doc):
        """Test k per document: 7 for the long doc, 2 for the short one"""
        evaluator = SegmentationEvaluator(per_document_k=True)
        evaluator.update([long_doc, short_doc])
        assert evaluator.compute().window_diff == pytest.approx(0.5)

    def test_mean_of_document_scores(self, long_doc, short_doc):
        evaluator = SegmentationEvaluator(per_document_k=True)
        evaluator.update([long_doc, short_doc])
        long_pk, long_wd = evaluator.score_document(long_doc)
        short_pk, short_wd = evaluator.score_document(short_doc)
        scores = evaluator.compute()
        assert scores.pk == pytest.approx((long_pk + short_pk) / 2)
        assert scores.window_diff == pytest.approx((long_wd + short_wd) / 2)

    def test_counts(self, long_doc, short_doc):
        evaluator = SegmentationEvaluator()
        evaluator.update([long_doc, short_doc])
        scores = evaluator.compute()
        assert scores.num_documents == 2
        assert scores.count_expected == 3
        assert scores.count_predicted == 5

    def test_merge_sections(self):
        """Test adjacent gold segments with one label count as a single segment"""
        doc = Document(
            doc_id="merge",
            num_sentences=13,
            gold_segments=[
                Segment(begin=0, end=4, label="a", provenance=Provenance.GOLD),
                Segment(begin=4, end=8, label="a", provenance=Provenance.GOLD),
                Segment(begin=8, end=13, label="b", provenance=Provenance.GOLD),
            ],
            pred_segments=[
                Segment(begin=0, end=8, provenance=Provenance.PRED),
                Segment(begin=8, end=13, provenance=Provenance.PRED),
            ],
        )
        assert evaluate(doc, merge_sections=True).window_diff == 0.0
        assert evaluate(doc, merge_sections=False).window_diff > 0.0

    def test_merge_evaluators(self, long_doc, short_doc):
        combined = SegmentationEvaluator(per_document_k=True)
        combined.update([long_doc, short_doc])

        first = SegmentationEvaluator(per_document_k=True)
        second = SegmentationEvaluator(per_document_k=True)
        first.update([long_doc])
        second.update([short_doc])
        first.merge(second)

        assert first.compute() == combined.compute()

    def test_reset(self, long_doc):
        evaluator = SegmentationEvaluator()
        evaluator.update([long_doc])
        evaluator.reset()
        assert evaluator.num_documents == 0

    def test_compute_without_data(self, caplog):
        with caplog.at_level(logging.WARNING):
            scores = SegmentationEvaluator().compute()
        assert scores.window_diff == 0.0
        assert "no accumulated documents" in caplog.text

    def test_uncovered_sentences_raise(self, make_document):
        doc = make_document(6, [(2, 6)], [(0, 6)])
        with pytest.raises(InvalidSegmentationError):
            SegmentationEvaluator().update([doc])

    def test_to_dict(self, long_doc):
        scores = evaluate(long_doc)
        data = scores.to_dict()
        assert set(data) == {"pk", "window_diff", "num_documents", "count_expected", "count_predicted"}
