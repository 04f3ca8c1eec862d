"""
Functions that can help analyze the correspondences when the exact transformation between the point clouds is known.
"""

import numpy as np
import numpy.typing as npt

from descriptor_matching.core import Correspondences


def apply_transformation(
    transformation: npt.NDArray[np.float64], points: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    """
    Applies a 4x4 homogeneous rigid transformation to a (n_points, 3) array.
    """
    return points @ transformation[:3, :3].T + transformation[:3, 3]


def get_incorrect_matches(
    source_keypoints: npt.NDArray[np.float64],
    target_keypoints: npt.NDArray[np.float64],
    correspondences: Correspondences,
    exact_transformation: npt.NDArray[np.float64],
    tolerance: float = 1e-2,
) -> np.ndarray[bool]:
    """
    Finds the incorrect correspondences between two sets of keypoints.

    Args:
        source_keypoints: keypoints of the point cloud to align.
        target_keypoints: keypoints of the reference point cloud.
        correspondences: the correspondences between the descriptors computed on these keypoints.
        exact_transformation: 4x4 transformation to go from source to target.
        tolerance: distance above which two matched keypoints are not considered to coincide.

    Returns:
        incorrect_matches: incorrect matches as an array of booleans.
    """
    source_indices, target_indices = correspondences.as_matches()
    return (
        np.linalg.norm(
            apply_transformation(exact_transformation, source_keypoints[source_indices])
            - target_keypoints[target_indices],
            axis=1,
        )
        > tolerance
    ).astype(bool)
