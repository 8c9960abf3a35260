"""
Dimensionality reduction of sentence embedding matrices (PCA).
"""

from typing import Union

import numpy as np
import torch

from ..exceptions import InvalidParameterError


def as_matrix(matrix: Union[torch.Tensor, np.ndarray]) -> torch.Tensor:
    """Return a float 2D tensor [T, D], converting numpy input."""
    if isinstance(matrix, np.ndarray):
        matrix = torch.from_numpy(matrix)
    if matrix.dim() != 2:
        raise InvalidParameterError(f"Expected 2D matrix [T, D], got shape {tuple(matrix.shape)}")
    if not torch.is_floating_point(matrix):
        matrix = matrix.float()
    return matrix


def principal_components(
    matrix: torch.Tensor,
    k: int,
    centered: bool = True
) -> torch.Tensor:
    """
    Estimate the top-k principal directions of a matrix.

    Args:
        matrix: Tensor [T, D]
        k: Number of directions to keep (1 <= k <= D)
        centered: Subtract the column mean before the decomposition

    Returns:
        Projection factor [D, k] whose columns are ordered by variance
    """
    matrix = as_matrix(matrix)
    D = matrix.shape[1]
    if not 1 <= k <= D:
        raise InvalidParameterError(f"k must be in [1, {D}], got {k}")

    data = matrix.double()
    if centered:
        data = data - data.mean(dim=0, keepdim=True)

    # full_matrices keeps all D directions even when T < k
    _, _, vh = torch.linalg.svd(data, full_matrices=True)
    return vh[:k].T.to(matrix.dtype)


def reduce_dimensions(
    matrix: Union[torch.Tensor, np.ndarray],
    k: int,
    centered: bool = True
) -> torch.Tensor:
    """
    Project a T x D matrix onto its top-k principal directions.

    The directions are estimated on the (optionally centered) data, the
    projection is applied to the matrix as given.

    Args:
        matrix: Embeddings [T, D]
        k: Target dimension
        centered: Estimate directions on mean-centered data

    Returns:
        Tensor [T, k]

    Raises:
        InvalidParameterError: If k > D or k < 1
    """
    matrix = as_matrix(matrix)
    if matrix.shape[0] == 0:
        if not 1 <= k <= matrix.shape[1]:
            raise InvalidParameterError(f"k must be in [1, {matrix.shape[1]}], got {k}")
        return matrix.new_zeros(0, k)

    factor = principal_components(matrix, k, centered=centered)
    return matrix @ factor
