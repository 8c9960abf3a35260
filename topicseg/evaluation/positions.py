"""
Position arrays and masses.

A position array assigns every sentence the id of the segment it belongs
to, e.g. [1, 1, 1, 2, 2, 3, 3, 3]. Ids start at 1, 0 marks sentences not
covered by any segment. The masses of that array are the run lengths
[3, 2, 3].
"""

import math
from typing import List, Sequence

import numpy as np

from ..exceptions import InvalidSegmentationError
from ..types import Segment

UNSET = 0


def positions_from_segments(
    segments: Sequence[Segment],
    num_sentences: int,
    merge: bool = True
) -> np.ndarray:
    """
    Build the position array of a segmentation.

    Every segment opens a new id at its begin index; the id extends until
    the next segment begins. With ``merge`` enabled, adjacent segments with
    the same label (or heading) keep the same id. Segments without label
    and heading are never merged.

    Args:
        segments: Segments of one provenance
        num_sentences: Number of sentences T
        merge: Merge adjacent segments with the same label

    Returns:
        Integer array [T]

    Raises:
        InvalidSegmentationError: If segments overlap or start beyond T
    """
    positions = np.full(num_sentences, UNSET, dtype=np.int64)
    ordered = sorted(segments, key=lambda s: (s.begin, s.end))

    section_id = UNSET
    last_label = None
    prev_end = 0
    for i, seg in enumerate(ordered):
        if seg.begin < 0 or seg.begin >= num_sentences:
            raise InvalidSegmentationError(
                f"Segment {seg.begin}-{seg.end} starts outside document of {num_sentences} sentences"
            )
        if i > 0 and seg.begin < prev_end:
            raise InvalidSegmentationError(
                f"Segment {seg.begin}-{seg.end} overlaps previous segment ending at {prev_end}"
            )

        label = seg.label_or_heading
        if not merge or label is None or label != last_label or section_id == UNSET:
            section_id += 1
        last_label = label if merge else None

        positions[seg.begin:] = section_id
        prev_end = seg.end

    return positions


def masses_from_positions(positions: Sequence[int]) -> List[int]:
    """
    Run lengths of a position array.

    Example:
        >>> masses_from_positions([1, 1, 1, 2, 2, 3])
        [3, 2, 1]
    """
    masses: List[int] = []
    last = None
    for pos in positions:
        if masses and pos == last:
            masses[-1] += 1
        else:
            masses.append(1)
            last = pos
    return masses


def validate_positions(positions: Sequence[int]) -> np.ndarray:
    """
    Check that a position array is usable for boundary metrics.

    Raises:
        InvalidSegmentationError: If the array contains the unset sentinel
            or decreases anywhere
    """
    arr = np.asarray(positions)
    if arr.ndim != 1:
        raise InvalidSegmentationError(f"Position array must be 1D, got shape {arr.shape}")
    if arr.size == 0:
        return arr
    if np.any(arr == UNSET):
        first = int(np.argmax(arr == UNSET))
        raise InvalidSegmentationError(f"Sentence {first} is not covered by any segment")
    if np.any(np.diff(arr) < 0):
        raise InvalidSegmentationError("Position array is not monotonic")
    return arr


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 rounds up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def window_size(masses: Sequence[int]) -> int:
    """
    Window size k for Pk / WindowDiff: half the mean segment length, at
    least 2.

    Args:
        masses: Gold masses of one document or of the whole corpus

    Returns:
        Window size k >= 2
    """
    if len(masses) == 0:
        return 2
    mean_length = sum(masses) / len(masses)
    return max(round_half_up(mean_length / 2.0), 2)
