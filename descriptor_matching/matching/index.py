"""
Nearest-neighbor indices built over a descriptor cloud. Each strategy answers the same query: the k closest indexed
descriptors of each query descriptor, sorted by ascending distance and, for equal distances, by ascending position in
the indexed cloud.
"""

from abc import ABC, abstractmethod
from typing import Literal

import numpy as np
import numpy.typing as npt
from scipy.spatial import cKDTree
from scipy.spatial.distance import cdist
from sklearn.neighbors import BallTree, KDTree

from descriptor_matching.core import DESCRIPTOR_KINDS, DescriptorKind

IndexType = Literal["kdtree", "balltree", "brute_force", "approximate"]


def sort_neighbors(
    distances: npt.NDArray[np.float64], indices: np.ndarray[np.int64]
) -> tuple[npt.NDArray[np.float64], np.ndarray[np.int64]]:
    """
    Sorts each row of neighbors by ascending distance, then by ascending index.
    """
    order = np.lexsort((indices, distances), axis=-1)
    return (
        np.take_along_axis(distances, order, axis=-1),
        np.take_along_axis(indices, order, axis=-1),
    )


class NearestNeighborIndex(ABC):
    """
    Base class of the nearest-neighbor indices.
    Invalid descriptors of the indexed cloud are left out of the search structure, the indices returned by nearest
    always refer to positions in the cloud passed at construction.
    """

    def __init__(
        self,
        descriptors: npt.NDArray[np.float64],
        kind: DescriptorKind = DESCRIPTOR_KINDS["generic"],
    ) -> None:
        descriptors = np.asarray(descriptors, dtype=np.float64)
        kind.check(descriptors)
        self.kind = kind
        self.dimension = descriptors.shape[1]
        self.n_descriptors = descriptors.shape[0]
        self.positions = kind.valid_mask(descriptors).nonzero()[0]
        if self.positions.shape[0] > 0:
            self._build(descriptors[self.positions])

    def __len__(self) -> int:
        return self.positions.shape[0]

    @property
    def n_skipped(self) -> int:
        return self.n_descriptors - len(self)

    @abstractmethod
    def _build(self, points: npt.NDArray[np.float64]) -> None:
        """
        Builds the search structure over the valid descriptors.
        """
        ...

    @abstractmethod
    def _query(
        self, queries: npt.NDArray[np.float64], k: int
    ) -> tuple[npt.NDArray[np.float64], np.ndarray[np.int64]]:
        """
        Finds the k nearest valid descriptors of each query.

        Returns:
            The Euclidean distances and the indices among the valid descriptors, both as (n_queries, k) arrays sorted
            with sort_neighbors.
        """
        ...

    def nearest(
        self, queries: npt.NDArray[np.float64], k: int = 1
    ) -> tuple[np.ndarray[np.int64], npt.NDArray[np.float64]]:
        """
        Queries the index.

        Args:
            queries: Descriptors to find neighbors for, as a (n_queries, dimension) array or a single descriptor.
            k: Maximum number of neighbors returned per query.

        Returns:
            The positions of the neighbors in the indexed cloud and their distances to the queries, as two
            (n_queries, min(k, len(self))) arrays. Distances follow the metric of the descriptor kind.
        """
        queries = np.atleast_2d(np.asarray(queries, dtype=np.float64))
        if queries.shape[1] != self.dimension:
            raise ValueError(
                f"Cannot query an index over {self.dimension}-dimensional descriptors "
                f"with {queries.shape[1]}-dimensional descriptors."
            )
        k = min(k, len(self))
        if k <= 0 or queries.shape[0] == 0:
            return (
                np.empty((queries.shape[0], max(k, 0)), dtype=np.int64),
                np.empty((queries.shape[0], max(k, 0)), dtype=np.float64),
            )

        distances, indices = self._query(queries, k)
        if self.kind.metric == "sqeuclidean":
            distances = distances**2

        return self.positions[indices], distances


class _BinaryTreeIndex(NearestNeighborIndex):
    """
    Exact search in one of the trees of scikit-learn.
    Ties on the k-th neighbor are resolved by a radius query so that the lowest indices are always returned.
    """

    tree_class: type[KDTree] | type[BallTree]

    def __init__(
        self,
        descriptors: npt.NDArray[np.float64],
        kind: DescriptorKind = DESCRIPTOR_KINDS["generic"],
        leaf_size: int = 40,
    ) -> None:
        self.leaf_size = leaf_size
        super().__init__(descriptors, kind)

    def _build(self, points: npt.NDArray[np.float64]) -> None:
        self.tree = self.tree_class(points, leaf_size=self.leaf_size)

    def _query(
        self, queries: npt.NDArray[np.float64], k: int
    ) -> tuple[npt.NDArray[np.float64], np.ndarray[np.int64]]:
        # one additional neighbor tells whether the k-th one is tied with points left out of the result
        n_probe = min(k + 1, len(self))
        distances, indices = self.tree.query(queries, k=n_probe)
        if n_probe == k:
            return sort_neighbors(distances, indices)

        ambiguous = (distances[:, k] == distances[:, k - 1]).nonzero()[0]
        distances, indices = distances[:, :k], indices[:, :k]
        if ambiguous.shape[0] > 0:
            tied_indices, tied_distances = self.tree.query_radius(
                queries[ambiguous],
                r=np.nextafter(distances[ambiguous, -1], np.inf),
                return_distance=True,
            )
            for row, candidates, candidate_distances in zip(
                ambiguous, tied_indices, tied_distances
            ):
                candidates = np.concatenate((candidates, indices[row]))
                candidate_distances = np.concatenate(
                    (candidate_distances, distances[row])
                )
                order = np.lexsort((candidates, candidate_distances))
                # dropping duplicates while keeping the sorted order
                _, first_occurrences = np.unique(
                    candidates[order], return_index=True
                )
                order = order[np.sort(first_occurrences)][:k]
                indices[row] = candidates[order]
                distances[row] = candidate_distances[order]

        return sort_neighbors(distances, indices)


class KDTreeIndex(_BinaryTreeIndex):
    tree_class = KDTree


class BallTreeIndex(_BinaryTreeIndex):
    tree_class = BallTree


class BruteForceIndex(NearestNeighborIndex):
    """
    Computes the whole distance matrix between the queries and the indexed descriptors.
    Often faster than a tree as the descriptor space has a high dimension.
    """

    def _build(self, points: npt.NDArray[np.float64]) -> None:
        self.points = points

    def _query(
        self, queries: npt.NDArray[np.float64], k: int
    ) -> tuple[npt.NDArray[np.float64], np.ndarray[np.int64]]:
        distance_matrix = cdist(queries, self.points)
        # a stable sort keeps the lowest index first among equal distances
        indices = np.argsort(distance_matrix, axis=1, kind="stable")[:, :k]
        return np.take_along_axis(distance_matrix, indices, axis=1), indices


class ApproximateIndex(NearestNeighborIndex):
    """
    Approximate search in a scipy KD-tree: the k-th neighbor returned is no further than (1 + eps) times the true k-th
    nearest neighbor.
    The tie-break is weaker than with the exact indices: equal distances are only ordered by index among the
    neighbors the tree returns, a lower-index equidistant descriptor it did not return is not looked for.
    """

    def __init__(
        self,
        descriptors: npt.NDArray[np.float64],
        kind: DescriptorKind = DESCRIPTOR_KINDS["generic"],
        leaf_size: int = 40,
        eps: float = 0.1,
    ) -> None:
        if eps < 0:
            raise ValueError(f"eps should be non-negative, got {eps}.")
        self.leaf_size = leaf_size
        self.eps = eps
        super().__init__(descriptors, kind)

    def _build(self, points: npt.NDArray[np.float64]) -> None:
        self.tree = cKDTree(points, leafsize=self.leaf_size)

    def _query(
        self, queries: npt.NDArray[np.float64], k: int
    ) -> tuple[npt.NDArray[np.float64], np.ndarray[np.int64]]:
        distances, indices = self.tree.query(queries, k=k, eps=self.eps)
        return sort_neighbors(
            distances.reshape(queries.shape[0], k),
            indices.reshape(queries.shape[0], k).astype(np.int64),
        )


INDEX_TYPES: dict[str, type[NearestNeighborIndex]] = {
    "kdtree": KDTreeIndex,
    "balltree": BallTreeIndex,
    "brute_force": BruteForceIndex,
    "approximate": ApproximateIndex,
}


def build_index(
    descriptors: npt.NDArray[np.float64],
    index_type: IndexType = "kdtree",
    kind: DescriptorKind = DESCRIPTOR_KINDS["generic"],
    **index_options: int | float,
) -> NearestNeighborIndex:
    """
    Builds a nearest-neighbor index over a descriptor cloud.

    Args:
        descriptors: The descriptor cloud to index.
        index_type: The search strategy.
        kind: The kind of descriptors indexed.
        index_options: Additional parameters of the strategy (leaf_size for the trees, eps for the approximate one).

    Returns:
        The index.
    """
    if index_type not in INDEX_TYPES:
        raise ValueError("Incorrect index type selection.")
    return INDEX_TYPES[index_type](descriptors, kind, **index_options)
