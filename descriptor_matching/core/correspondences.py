from dataclasses import dataclass, field
from typing import Iterator, NamedTuple

import numpy as np
import numpy.typing as npt


class Correspondence(NamedTuple):
    source_index: int
    target_index: int
    distance: float


@dataclass(frozen=True, eq=False)
class Correspondences:
    """
    Set of correspondences between a source and a target descriptor cloud, stored as three aligned arrays.
    """

    source_indices: np.ndarray[np.int64] = field(
        default_factory=lambda: np.empty(0, dtype=np.int64)
    )
    target_indices: np.ndarray[np.int64] = field(
        default_factory=lambda: np.empty(0, dtype=np.int64)
    )
    distances: npt.NDArray[np.float64] = field(
        default_factory=lambda: np.empty(0, dtype=np.float64)
    )

    # the arrays are not hashable
    __hash__ = None

    def __post_init__(self):
        for name, dtype in (
            ("source_indices", np.int64),
            ("target_indices", np.int64),
            ("distances", np.float64),
        ):
            # private read-only copies, the caller's arrays are left untouched
            values = np.array(getattr(self, name), dtype=dtype)
            values.flags.writeable = False
            object.__setattr__(self, name, values)
        if not (
            self.source_indices.shape
            == self.target_indices.shape
            == self.distances.shape
        ):
            raise ValueError("Correspondence arrays must have the same length.")

    def __len__(self) -> int:
        return self.distances.shape[0]

    def __iter__(self) -> Iterator[Correspondence]:
        for source_index, target_index, distance in zip(
            self.source_indices, self.target_indices, self.distances
        ):
            yield Correspondence(int(source_index), int(target_index), float(distance))

    def __getitem__(self, item: int | slice | np.ndarray) -> "Correspondence | Correspondences":
        if isinstance(item, (int, np.integer)):
            return Correspondence(
                int(self.source_indices[item]),
                int(self.target_indices[item]),
                float(self.distances[item]),
            )
        return Correspondences(
            self.source_indices[item], self.target_indices[item], self.distances[item]
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Correspondences):
            return NotImplemented
        return (
            np.array_equal(self.source_indices, other.source_indices)
            and np.array_equal(self.target_indices, other.target_indices)
            and np.array_equal(self.distances, other.distances)
        )

    def sorted(self) -> "Correspondences":
        """
        Sorts the correspondences by ascending distance, ties being broken by ascending source index.
        """
        # lexsort sorts on the last key first
        order = np.lexsort((self.source_indices, self.distances))
        return self[order]

    def as_matches(self) -> tuple[np.ndarray[np.int64], np.ndarray[np.int64]]:
        """
        Indices of the matched keypoints in the source and in the target clouds.
        """
        return self.source_indices, self.target_indices

    @classmethod
    def concatenate(cls, chunks: list["Correspondences"]) -> "Correspondences":
        if len(chunks) == 0:
            return cls()
        return cls(
            np.concatenate([chunk.source_indices for chunk in chunks]),
            np.concatenate([chunk.target_indices for chunk in chunks]),
            np.concatenate([chunk.distances for chunk in chunks]),
        )
