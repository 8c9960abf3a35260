"""
Gaussian low-pass filter along the time axis of an embedding trajectory.
"""

from typing import Union

import numpy as np
import torch
from torch.distributions import Normal

from ..exceptions import InvalidParameterError
from .reducer import as_matrix

DEFAULT_SIGMA = 2.5
DEFAULT_BIDIRECTIONAL_SIGMA = 1.5


def gaussian_kernel(length: int, sigma: float, dtype: torch.dtype = torch.float64) -> torch.Tensor:
    """
    Build the [T, T] smoothing kernel.

    Row t holds the Gaussian density N(k; mean=t, sd=sigma) evaluated at
    every integer position k of the sequence.
    """
    if sigma <= 0:
        raise InvalidParameterError(f"sigma must be > 0, got {sigma}")
    positions = torch.arange(length, dtype=dtype)
    dist = Normal(loc=positions.unsqueeze(1), scale=torch.tensor(sigma, dtype=dtype))
    return dist.log_prob(positions.unsqueeze(0)).exp()


def gaussian_smooth(
    matrix: Union[torch.Tensor, np.ndarray],
    sigma: float = DEFAULT_SIGMA
) -> torch.Tensor:
    """
    Smooth a [T, K] matrix with a full-length Gaussian-weighted sum.

    For every timestep t: out[t] = sum_k in[k] * N(k; t, sigma). The sum
    runs over the whole sequence, locality comes from sigma only.

    Args:
        matrix: Tensor [T, K]
        sigma: Standard deviation of the Gaussian in sentences

    Returns:
        Smoothed tensor [T, K] with the dtype of the input
    """
    matrix = as_matrix(matrix)
    kernel = gaussian_kernel(matrix.shape[0], sigma)
    return (kernel @ matrix.double()).to(matrix.dtype)
