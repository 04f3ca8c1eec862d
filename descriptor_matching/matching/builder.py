"""
Construction of the raw correspondences: every valid source descriptor is matched with its nearest neighbor among the
target descriptors.
"""

import logging
from dataclasses import dataclass, field
from multiprocessing.pool import ThreadPool
from types import TracebackType

import numpy as np
import numpy.typing as npt
from tqdm import tqdm

from descriptor_matching.core import DESCRIPTOR_KINDS, Correspondences, DescriptorKind

from .index import IndexType, NearestNeighborIndex, build_index


@dataclass(frozen=True)
class MatchingDiagnostics:
    """Counts and statistics gathered while building the correspondences."""

    n_source: int
    n_target: int
    n_produced: int
    n_skipped: int
    n_target_skipped: int = 0
    distance_sum: float = 0.0

    @property
    def skipped_fraction(self) -> float:
        return self.n_skipped / self.n_source if self.n_source > 0 else 0.0

    @property
    def mean_distance(self) -> float | None:
        """Mean distance between matched descriptors, None when no correspondence was found."""
        if self.n_produced == 0:
            return None
        return self.distance_sum / self.n_produced

    @property
    def is_empty(self) -> bool:
        return self.n_produced == 0

    def summary(self) -> str:
        mean_distance = (
            f"{self.mean_distance:.4f}" if self.mean_distance is not None else "n/a"
        )
        return (
            f"Matching diagnostics:\n"
            f" -- correspondences found: {self.n_produced} out of {self.n_source} descriptors\n"
            f" -- invalid descriptors skipped: {self.n_skipped} ({self.skipped_fraction * 100:.2f}%)\n"
            f" -- invalid target descriptors left out of the index: {self.n_target_skipped}\n"
            f" -- average correspondence distance: {mean_distance}"
        )

    def log(self) -> None:
        logging.info(
            f"Found {self.n_produced} correspondences out of {self.n_source} descriptors."
        )
        if self.n_skipped > 0:
            logging.info(
                f"Skipped {self.n_skipped} invalid descriptors ({self.skipped_fraction * 100:.2f}%)."
            )
        if self.is_empty:
            logging.warning(
                "No correspondence found between the descriptors, the description step probably failed."
            )
        else:
            logging.info(f"Average correspondence distance: {self.mean_distance:.4f}")


@dataclass
class CorrespondenceBuilder:
    """
    Queries a nearest-neighbor index built over the target descriptors with chunks of source descriptors.
    Chunks are processed by a pool of threads when n_workers > 1, and are always reassembled in source order.
    """

    index_type: IndexType = "kdtree"
    kind: DescriptorKind = DESCRIPTOR_KINDS["generic"]
    index_options: dict[str, int | float] | None = None

    n_workers: int = 1
    chunk_size: int = 1024
    disable_progress_bar: bool = True

    pool: ThreadPool | None = field(default=None, init=False, repr=False)

    def __enter__(self):
        self.pool = ThreadPool(processes=self.n_workers) if self.n_workers > 1 else None
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self.pool is None:
            return
        if exc_type is not None:
            self.pool.terminate()
        else:
            self.pool.close()
        self.pool.join()
        self.pool = None

    def query_chunks(
        self,
        index: NearestNeighborIndex,
        source_descriptors: npt.NDArray[np.float64],
        source_positions: np.ndarray[np.int64],
    ) -> list[Correspondences]:
        """
        Finds the nearest target descriptor of each source descriptor selected by source_positions.

        Args:
            index: The index built over the target descriptors.
            source_descriptors: The whole source descriptor cloud.
            source_positions: The positions of the valid source descriptors.

        Returns:
            The correspondences found on each chunk, in source order.
        """
        chunks = [
            source_positions[start : start + self.chunk_size]
            for start in range(0, source_positions.shape[0], self.chunk_size)
        ]

        def query_chunk(positions: np.ndarray[np.int64]) -> Correspondences:
            indices, distances = index.nearest(source_descriptors[positions], k=1)
            if indices.shape[1] == 0:
                return Correspondences()
            return Correspondences(positions, indices[:, 0], distances[:, 0])

        # imap yields the chunks in submission order whatever their completion order
        results = (
            self.pool.imap(query_chunk, chunks)
            if self.pool is not None
            else map(query_chunk, chunks)
        )
        return list(
            tqdm(
                results,
                desc="Matching descriptors",
                total=len(chunks),
                disable=self.disable_progress_bar,
            )
        )

    def match(
        self,
        source_descriptors: npt.NDArray[np.float64],
        target_descriptors: npt.NDArray[np.float64],
    ) -> tuple[Correspondences, MatchingDiagnostics]:
        """
        Matches every valid source descriptor with its nearest target descriptor.

        Args:
            source_descriptors: Descriptors computed on the keypoints of the point cloud to align.
            target_descriptors: Descriptors computed on the keypoints of the reference point cloud.

        Returns:
            The raw correspondences in source order and the diagnostics of the matching.
        """
        source_descriptors = np.asarray(source_descriptors, dtype=np.float64)
        target_descriptors = np.asarray(target_descriptors, dtype=np.float64)
        # empty clouds given as flat lists take the width of the other cloud
        source_is_flat_empty = source_descriptors.ndim == 1 and source_descriptors.size == 0
        target_is_flat_empty = target_descriptors.ndim == 1 and target_descriptors.size == 0
        if source_is_flat_empty and target_is_flat_empty:
            source_descriptors = source_descriptors.reshape(0, self.kind.length or 0)
            target_descriptors = target_descriptors.reshape(0, self.kind.length or 0)
        elif target_is_flat_empty and source_descriptors.ndim == 2:
            target_descriptors = target_descriptors.reshape(
                0, source_descriptors.shape[1]
            )
        elif source_is_flat_empty and target_descriptors.ndim == 2:
            source_descriptors = source_descriptors.reshape(
                0, target_descriptors.shape[1]
            )
        self.kind.check(source_descriptors)
        self.kind.check(target_descriptors)
        if source_descriptors.shape[1] != target_descriptors.shape[1]:
            raise ValueError(
                f"Source descriptors have {source_descriptors.shape[1]} components "
                f"while target descriptors have {target_descriptors.shape[1]}."
            )

        index = build_index(
            target_descriptors,
            self.index_type,
            self.kind,
            **(self.index_options or {}),
        )

        source_positions = self.kind.valid_mask(source_descriptors).nonzero()[0]
        correspondences = Correspondences.concatenate(
            self.query_chunks(index, source_descriptors, source_positions)
        )

        return correspondences, MatchingDiagnostics(
            n_source=source_descriptors.shape[0],
            n_target=target_descriptors.shape[0],
            n_produced=len(correspondences),
            n_skipped=source_descriptors.shape[0] - source_positions.shape[0],
            n_target_skipped=index.n_skipped,
            distance_sum=float(correspondences.distances.sum()),
        )


def build_correspondences(
    source_descriptors: npt.NDArray[np.float64],
    target_descriptors: npt.NDArray[np.float64],
    kind: DescriptorKind = DESCRIPTOR_KINDS["generic"],
    index_type: IndexType = "kdtree",
    n_workers: int = 1,
    disable_progress_bar: bool = True,
    **index_options: int | float,
) -> tuple[Correspondences, MatchingDiagnostics]:
    """
    Matching strategy that matches each valid source descriptor with its nearest neighbor in the feature space.
    See CorrespondenceBuilder.match.
    """
    with CorrespondenceBuilder(
        index_type=index_type,
        kind=kind,
        index_options=index_options,
        n_workers=n_workers,
        disable_progress_bar=disable_progress_bar,
    ) as builder:
        return builder.match(source_descriptors, target_descriptors)
