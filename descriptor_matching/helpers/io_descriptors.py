"""
Reading of descriptor and keypoint clouds, writing of correspondences.
"""

from pathlib import Path

import numpy as np
import numpy.typing as npt

from descriptor_matching.core import Correspondences


def load_array(file_path: str | Path) -> npt.NDArray[np.float64]:
    """
    Loads a 2D array stored either as a .npy file or as a whitespace-separated text file (one row per line).
    """
    file_path = Path(file_path)
    if file_path.suffix == ".npy":
        array = np.load(file_path)
    else:
        array = np.loadtxt(file_path, ndmin=2)
    return np.asarray(array, dtype=np.float64)


def write_correspondences(
    file_path: str | Path, correspondences: Correspondences
) -> None:
    """
    Writes the correspondences in a text file with one 'source_index target_index distance' line per correspondence.
    """
    np.savetxt(
        file_path,
        np.column_stack(
            (
                correspondences.source_indices,
                correspondences.target_indices,
                correspondences.distances,
            )
        ),
        fmt=["%d", "%d", "%.8g"],
        header="source_index target_index distance",
    )


def read_correspondences(file_path: str | Path) -> Correspondences:
    values = np.loadtxt(file_path, ndmin=2)
    if values.size == 0:
        return Correspondences()
    return Correspondences(
        values[:, 0].astype(np.int64), values[:, 1].astype(np.int64), values[:, 2]
    )
