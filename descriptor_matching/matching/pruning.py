"""
Percentile pruning of the correspondences: only the given fraction of correspondences with the lowest distances is
handed to the robust estimation of the transformation.
"""

import numpy as np

from descriptor_matching.core import Correspondences


def check_keep_fraction(keep_fraction: float) -> None:
    if not 0 < keep_fraction <= 1:
        raise ValueError(
            f"The fraction of correspondences kept should be in (0, 1], got {keep_fraction}."
        )


def retained_count(keep_fraction: float, n_correspondences: int) -> int:
    """
    Number of correspondences kept out of n_correspondences, clamped to [0, n_correspondences].
    """
    return int(np.clip(np.floor(keep_fraction * n_correspondences), 0, n_correspondences))


def prune_correspondences(
    correspondences: Correspondences, keep_fraction: float
) -> Correspondences:
    """
    Sorts the correspondences by ascending distance (ties broken by ascending source index) and keeps the first ones.

    Args:
        correspondences: The raw correspondences.
        keep_fraction: The proportion of lowest-distance correspondences retained.

    Returns:
        The sorted and truncated correspondences.
    """
    check_keep_fraction(keep_fraction)
    return correspondences.sorted()[: retained_count(keep_fraction, len(correspondences))]
