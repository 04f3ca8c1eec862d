import logging

import numpy as np
import pytest

from descriptor_matching.core import get_descriptor_kind
from descriptor_matching.matching import CorrespondenceBuilder, build_correspondences


class TestCorrespondenceBuilder:
    def test_invalid_source_descriptors_are_skipped(self, small_clouds):
        correspondences, diagnostics = build_correspondences(*small_clouds)

        assert correspondences.source_indices.tolist() == [0, 2]
        assert correspondences.target_indices.tolist() == [0, 1]
        np.testing.assert_allclose(correspondences.distances, [1.0, 1.0])
        assert diagnostics.n_produced == 2
        assert diagnostics.n_skipped == 1
        assert diagnostics.skipped_fraction == pytest.approx(1 / 3)
        assert diagnostics.mean_distance == pytest.approx(1.0)

    def test_counts_with_invalid_descriptors(self, rng):
        source, target = rng.random((50, 6)), rng.random((30, 6))
        source[[3, 17, 42], 2] = np.nan
        source[8, 0] = np.inf
        correspondences, diagnostics = build_correspondences(source, target)

        assert diagnostics.n_skipped == 4
        assert diagnostics.n_produced == len(correspondences) <= 50 - 4
        assert not set(correspondences.source_indices.tolist()) & {3, 8, 17, 42}
        # raw correspondences follow the order of the source cloud
        assert (np.diff(correspondences.source_indices) > 0).all()
        assert (correspondences.distances >= 0).all()
        assert (correspondences.target_indices < 30).all()

    def test_empty_target_cloud(self, rng):
        correspondences, diagnostics = build_correspondences(
            rng.random((10, 4)), np.empty((0, 4))
        )
        assert len(correspondences) == 0
        assert diagnostics.is_empty
        assert diagnostics.n_skipped == 0
        assert diagnostics.mean_distance is None

    def test_empty_target_given_as_a_list(self, rng):
        correspondences, _ = build_correspondences(rng.random((10, 4)), [])
        assert len(correspondences) == 0

    def test_empty_source_given_as_a_list(self, rng):
        correspondences, diagnostics = build_correspondences([], rng.random((4, 3)))
        assert len(correspondences) == 0
        assert diagnostics.n_source == 0
        assert diagnostics.n_skipped == 0
        assert diagnostics.skipped_fraction == 0.0
        assert diagnostics.mean_distance is None

    def test_both_clouds_given_as_empty_lists(self):
        correspondences, diagnostics = build_correspondences([], [])
        assert len(correspondences) == 0
        assert diagnostics.n_source == diagnostics.n_target == 0
        assert diagnostics.is_empty

    def test_dimension_mismatch(self, rng):
        with pytest.raises(ValueError, match="components"):
            build_correspondences(rng.random((10, 4)), rng.random((10, 5)))

    def test_dimension_mismatch_with_empty_target(self, rng):
        with pytest.raises(ValueError):
            build_correspondences(rng.random((10, 4)), np.empty((0, 5)))

    def test_shot_empty_descriptors(self, rng):
        source, target = rng.random((6, 352)), rng.random((4, 352))
        source[1] = 0
        target[2] = 0
        correspondences, diagnostics = build_correspondences(
            source, target, kind=get_descriptor_kind("shot")
        )
        assert diagnostics.n_skipped == 1
        assert diagnostics.n_target_skipped == 1
        assert 2 not in correspondences.target_indices.tolist()

    @pytest.mark.parametrize("index_type", ["kdtree", "brute_force"])
    def test_parallel_queries_match_sequential_ones(self, index_type, descriptor_clouds):
        sequential, sequential_diagnostics = build_correspondences(
            *descriptor_clouds, index_type=index_type
        )
        with CorrespondenceBuilder(
            index_type=index_type, n_workers=4, chunk_size=7
        ) as builder:
            parallel, parallel_diagnostics = builder.match(*descriptor_clouds)

        assert parallel == sequential
        assert parallel_diagnostics.n_produced == sequential_diagnostics.n_produced
        assert parallel_diagnostics.distance_sum == pytest.approx(
            sequential_diagnostics.distance_sum
        )

    def test_builder_without_context_manager(self, small_clouds):
        correspondences, _ = CorrespondenceBuilder(chunk_size=1).match(*small_clouds)
        assert correspondences.source_indices.tolist() == [0, 2]


class TestMatchingDiagnostics:
    def test_warning_on_empty_result(self, caplog, rng):
        caplog.set_level(logging.INFO)
        _, diagnostics = build_correspondences(rng.random((3, 2)), np.empty((0, 2)))
        diagnostics.log()
        assert any(record.levelno == logging.WARNING for record in caplog.records)
        assert "n/a" in diagnostics.summary()

    def test_no_warning_otherwise(self, caplog, small_clouds):
        caplog.set_level(logging.INFO)
        _, diagnostics = build_correspondences(*small_clouds)
        diagnostics.log()
        assert not any(record.levelno == logging.WARNING for record in caplog.records)
        assert "Average correspondence distance: 1.0000" in caplog.text
