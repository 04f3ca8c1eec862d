"""
Single entry point of the matching stage: builds the raw correspondences between two descriptor clouds and prunes them.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import numpy.typing as npt

from .configuration import MatchingConfig, load_config_from_yaml
from .core import Correspondences, get_descriptor_kind
from .matching import CorrespondenceBuilder, MatchingDiagnostics, prune_correspondences


@dataclass(frozen=True)
class DescriptorMatcher:
    """
    Matches descriptor clouds with a fixed configuration.
    Holds no state besides its configuration, hence can be called repeatedly or from several threads.
    """

    config: MatchingConfig = field(default_factory=MatchingConfig)

    @classmethod
    def from_yaml(
        cls, config_file_path: str, command_line_args: dict[str, Any] | None = None
    ) -> "DescriptorMatcher":
        return cls(load_config_from_yaml(config_file_path, command_line_args))

    def match_with_diagnostics(
        self,
        source_descriptors: npt.NDArray[np.float64],
        target_descriptors: npt.NDArray[np.float64],
    ) -> tuple[Correspondences, MatchingDiagnostics]:
        """
        Matches each valid source descriptor with its nearest target descriptor, then keeps the fraction of the
        correspondences with the lowest distances.

        Args:
            source_descriptors: Descriptors computed on the keypoints of the point cloud to align.
            target_descriptors: Descriptors computed on the keypoints of the reference point cloud.

        Returns:
            The pruned correspondences, sorted by ascending distance, and the diagnostics of the raw matching.
        """
        logging.info("")
        logging.info(
            f"-- Matching descriptors to their nearest neighbor ({self.config.index_type}) --"
        )
        with CorrespondenceBuilder(
            index_type=self.config.index_type,
            kind=get_descriptor_kind(self.config.descriptor_kind),
            index_options=self.config.index_options(),
            n_workers=self.config.n_workers,
            chunk_size=self.config.chunk_size,
            disable_progress_bar=self.config.disable_progress_bar,
        ) as builder:
            raw_correspondences, diagnostics = builder.match(
                source_descriptors, target_descriptors
            )
        diagnostics.log()

        correspondences = prune_correspondences(
            raw_correspondences, self.config.keep_fraction
        )
        logging.info(
            f"Kept {len(correspondences)} correspondences out of {len(raw_correspondences)} "
            f"({self.config.keep_fraction * 100:.0f}% with the lowest distances)."
        )
        return correspondences, diagnostics

    def match(
        self,
        source_descriptors: npt.NDArray[np.float64],
        target_descriptors: npt.NDArray[np.float64],
    ) -> Correspondences:
        return self.match_with_diagnostics(source_descriptors, target_descriptors)[0]


def match_descriptors(
    source_descriptors: npt.NDArray[np.float64],
    target_descriptors: npt.NDArray[np.float64],
    config: MatchingConfig | None = None,
) -> Correspondences:
    """
    Shortcut for DescriptorMatcher(config).match(source_descriptors, target_descriptors).
    """
    return DescriptorMatcher(config or MatchingConfig()).match(
        source_descriptors, target_descriptors
    )
