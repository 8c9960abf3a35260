"""
Deviation signals: derivative-like scalar series over an embedding
trajectory, used as input for edge detection.
"""

import logging
from typing import Optional, Union

import numpy as np
import torch

from ..exceptions import InvalidParameterError
from .reducer import as_matrix, reduce_dimensions
from .smoothing import DEFAULT_BIDIRECTIONAL_SIGMA, DEFAULT_SIGMA, gaussian_smooth

logger = logging.getLogger(__name__)

Matrix = Union[torch.Tensor, np.ndarray]


def cosine_distance(a: torch.Tensor, b: torch.Tensor) -> torch.Tensor:
    """
    Row-wise cosine distance 1 - cos(a, b).

    Args:
        a: Tensor [N, D]
        b: Tensor [N, D]

    Returns:
        Tensor [N] in [0, 2]. Rows involving a zero vector yield 0.
    """
    a = a.double()
    b = b.double()
    dot = (a * b).sum(dim=1)
    norms = a.norm(dim=1) * b.norm(dim=1)
    dist = 1.0 - dot / norms
    dist = torch.nan_to_num(dist, nan=0.0, posinf=0.0, neginf=0.0)
    return dist.clamp(min=0.0)


def embedding_deviation(matrix: Matrix) -> torch.Tensor:
    """
    Cosine distance between consecutive rows.

    dev[t] = cosine_distance(row[t], row[t-1]) for t >= 1, dev[0] = 0.

    Args:
        matrix: Tensor [T, K]

    Returns:
        Tensor [T] (float64)
    """
    matrix = as_matrix(matrix)
    T = matrix.shape[0]
    dev = torch.zeros(T, dtype=torch.float64)
    if T > 1:
        dev[1:] = cosine_distance(matrix[1:], matrix[:-1])
    return dev


def bidirectional_deviation(fw: Matrix, bw: Matrix) -> torch.Tensor:
    """
    Geometric mean of a forward-looking and a backward-looking distance.

    fwd1[t] = cosine_distance(fw[t], fw[t+1]), 0 at the last index.
    bwd1[t] = cosine_distance(bw[t-1], bw[t-2]), 0 for t <= 2.
    dev[t] = sqrt(fwd1[t] * bwd1[t]), dev[0] = 0, NaN coerced to 0.

    Args:
        fw: Forward trajectory [T, K]
        bw: Backward trajectory [T, K]

    Returns:
        Tensor [T] (float64)
    """
    fw = as_matrix(fw)
    bw = as_matrix(bw)
    if fw.shape != bw.shape:
        raise InvalidParameterError(
            f"Forward and backward shapes differ: {tuple(fw.shape)} vs {tuple(bw.shape)}"
        )

    T = fw.shape[0]
    fwd1 = torch.zeros(T, dtype=torch.float64)
    bwd1 = torch.zeros(T, dtype=torch.float64)
    if T > 2:
        fwd1[1:T - 1] = cosine_distance(fw[1:T - 1], fw[2:T])
    if T > 3:
        bwd1[3:] = cosine_distance(bw[2:T - 1], bw[1:T - 2])

    dev = (fwd1 * bwd1).clamp(min=0.0).sqrt()
    return torch.nan_to_num(dev, nan=0.0)


def deviation_from_embeddings(
    embeddings: Matrix,
    pca_dims: int = 16,
    sigma: float = DEFAULT_SIGMA,
    centered: bool = True
) -> Optional[torch.Tensor]:
    """
    PCA -> Gaussian smoothing -> consecutive cosine distance.

    Returns:
        Deviation series [T], or None for documents with fewer than two
        sentences
    """
    embeddings = as_matrix(embeddings)
    T, D = embeddings.shape
    if T < 2:
        logger.debug(f"No deviation for {T} sentence(s)")
        return None

    reduced = reduce_dimensions(embeddings, min(pca_dims, D), centered=centered)
    smoothed = gaussian_smooth(reduced, sigma)
    return embedding_deviation(smoothed)


def deviation_from_bidirectional(
    embeddings_fw: Matrix,
    embeddings_bw: Matrix,
    pca_dims: int = 16,
    sigma: float = DEFAULT_BIDIRECTIONAL_SIGMA,
    drop_components: int = 2
) -> Optional[torch.Tensor]:
    """
    Bidirectional pipeline on forward and backward embeddings.

    Each direction is projected on its (uncentered) principal directions,
    the first ``drop_components`` columns are zeroed to remove global drift,
    then both are smoothed and combined by ``bidirectional_deviation``.

    Returns:
        Deviation series [T], or None for empty documents
    """
    fw = as_matrix(embeddings_fw)
    bw = as_matrix(embeddings_bw)
    if fw.shape != bw.shape:
        raise InvalidParameterError(
            f"Forward and backward shapes differ: {tuple(fw.shape)} vs {tuple(bw.shape)}"
        )
    T, D = fw.shape
    if T < 1:
        return None

    dims = min(pca_dims, D)
    fw_pca = reduce_dimensions(fw, dims, centered=False)
    bw_pca = reduce_dimensions(bw, dims, centered=False)
    fw_pca[:, :drop_components] = 0
    bw_pca[:, :drop_components] = 0

    fw_smooth = gaussian_smooth(fw_pca, sigma)
    bw_smooth = gaussian_smooth(bw_pca, sigma)
    return bidirectional_deviation(fw_smooth, bw_smooth)
