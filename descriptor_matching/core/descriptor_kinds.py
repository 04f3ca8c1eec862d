"""
Descriptions of the kinds of descriptors that can be matched: their length, the metric used to compare them and what
makes one of them unusable.
"""

from dataclasses import dataclass
from typing import Literal

import numpy as np
import numpy.typing as npt


@dataclass(frozen=True)
class DescriptorKind:
    """
    Trait shared by every descriptor of a given kind.

    Attributes:
        name: Name used to select the kind from a config.
        length: Number of components of a descriptor. None accepts any width as long as both clouds agree.
        metric: Distance used to compare two descriptors.
        reject_empty: Whether all-zero descriptors are considered invalid.
    """

    name: str
    length: int | None = None
    metric: Literal["sqeuclidean", "euclidean"] = "sqeuclidean"
    reject_empty: bool = False

    def valid_mask(self, descriptors: npt.NDArray[np.float64]) -> np.ndarray[bool]:
        """
        Flags the descriptors that can be matched.

        Args:
            descriptors: The descriptor cloud as a (n_points, length) array.

        Returns:
            A mask where False values indicate descriptors that must be skipped.
        """
        mask = np.isfinite(descriptors).all(axis=1)
        if self.reject_empty:
            # empty descriptors come from keypoints whose neighborhood was too sparse
            mask &= np.any(descriptors, axis=1)
        return mask

    def check(self, descriptors: npt.NDArray[np.float64]) -> None:
        """
        Raises a ValueError if the descriptor cloud does not have the expected shape.
        """
        if descriptors.ndim != 2:
            raise ValueError(
                f"Expected a (n_points, descriptor_length) array of {self.name} descriptors, "
                f"got an array of shape {descriptors.shape}."
            )
        if self.length is not None and descriptors.shape[1] != self.length:
            raise ValueError(
                f"{self.name} descriptors have {self.length} components, got {descriptors.shape[1]}."
            )


DESCRIPTOR_KINDS: dict[str, DescriptorKind] = {
    "generic": DescriptorKind("generic"),
    "fpfh": DescriptorKind("fpfh", length=33),
    "shot": DescriptorKind("shot", length=352, reject_empty=True),
}


def get_descriptor_kind(name: str) -> DescriptorKind:
    try:
        return DESCRIPTOR_KINDS[name]
    except KeyError:
        raise ValueError(
            f"Incorrect descriptor kind {name!r}, expected one of {', '.join(DESCRIPTOR_KINDS)}."
        ) from None
