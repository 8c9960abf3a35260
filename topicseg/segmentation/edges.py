"""
Edge detection on deviation series.

Both detectors return an edge vector [T] of 0/1 values where index 0 is
always 1 (a document always starts a new segment).
"""

import logging
from typing import List, Optional

import torch

from ..exceptions import InvalidParameterError

logger = logging.getLogger(__name__)


def _local_maxima(dev: torch.Tensor) -> torch.Tensor:
    """Boolean mask of strict local maxima for 1 <= t <= T-2."""
    mask = torch.zeros(dev.shape[0], dtype=torch.bool)
    if dev.shape[0] >= 3:
        mid = dev[1:-1]
        mask[1:-1] = (dev[:-2] < mid) & (dev[2:] < mid)
    return mask


def _ranked(values: torch.Tensor) -> List[int]:
    """Indices sorted by descending value, ties by ascending index."""
    return torch.sort(values, descending=True, stable=True).indices.tolist()


def detect_edges(dev: Optional[torch.Tensor]) -> Optional[torch.Tensor]:
    """
    Mark every strict local maximum of the deviation as a boundary.

    Args:
        dev: Deviation series [T] or None

    Returns:
        Edge vector [T] (int64) or None if dev is None
    """
    if dev is None:
        return None
    dev = dev.flatten()
    edges = _local_maxima(dev).long()
    if edges.shape[0] > 0:
        edges[0] = 1
    return edges


def detect_edges_with_count(dev: Optional[torch.Tensor], count: int) -> Optional[torch.Tensor]:
    """
    Select boundaries so that the document has ``count`` segments.

    The count - 1 highest local maxima are taken first. If there are not
    enough peaks, the remaining boundaries are filled with the highest raw
    deviation values. Index 0 is never selected (it is always an edge).
    Returning fewer boundaries than requested is not an error.

    Args:
        dev: Deviation series [T] or None
        count: Target number of segments

    Returns:
        Edge vector [T] (int64) or None if dev is None
    """
    if count < 1:
        raise InvalidParameterError(f"count must be >= 1, got {count}")
    if dev is None:
        return None

    dev = dev.flatten()
    T = dev.shape[0]
    edges = torch.zeros(T, dtype=torch.long)
    if T == 0:
        return edges

    peaks = torch.where(_local_maxima(dev), dev, torch.zeros_like(dev))
    wanted = count - 1

    selected = 0
    for idx in _ranked(peaks):
        if selected >= wanted or peaks[idx] <= 0:
            break
        if idx == 0:
            continue
        edges[idx] = 1
        selected += 1

    for idx in _ranked(dev):
        if selected >= wanted:
            break
        if idx == 0 or edges[idx] == 1:
            continue
        edges[idx] = 1
        selected += 1

    if selected < wanted:
        logger.debug(f"Only {selected} of {wanted} requested boundaries available (T={T})")

    edges[0] = 1
    return edges
