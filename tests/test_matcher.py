from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from descriptor_matching import DescriptorMatcher, MatchingConfig, match_descriptors


class TestDescriptorMatcher:
    def test_reference_example(self, small_clouds):
        correspondences, diagnostics = DescriptorMatcher(
            MatchingConfig(keep_fraction=1.0)
        ).match_with_diagnostics(*small_clouds)

        assert diagnostics.n_skipped == 1
        assert sorted(correspondences.source_indices.tolist()) == [0, 2]
        assert sorted(correspondences.target_indices.tolist()) == [0, 1]
        assert (np.diff(correspondences.distances) >= 0).all()

    def test_one_correspondence_per_valid_descriptor(self, descriptor_clouds):
        source, target = descriptor_clouds
        source[[0, 5, 9]] = np.nan
        correspondences = match_descriptors(
            source, target, MatchingConfig(keep_fraction=1.0)
        )
        assert len(correspondences) == source.shape[0] - 3
        assert sorted(correspondences.source_indices.tolist()) == sorted(
            set(range(source.shape[0])) - {0, 5, 9}
        )

    def test_pruning_is_applied(self, descriptor_clouds):
        correspondences = match_descriptors(
            *descriptor_clouds, MatchingConfig(keep_fraction=0.25)
        )
        assert len(correspondences) == 30
        assert (np.diff(correspondences.distances) >= 0).all()

    def test_deterministic(self, descriptor_clouds):
        matcher = DescriptorMatcher(MatchingConfig(keep_fraction=0.5, n_workers=3, chunk_size=11))
        assert matcher.match(*descriptor_clouds) == matcher.match(*descriptor_clouds)

    @pytest.mark.parametrize("index_type", ["balltree", "brute_force", "approximate"])
    def test_index_types_agree(self, index_type, descriptor_clouds):
        reference = DescriptorMatcher().match(*descriptor_clouds)
        correspondences = DescriptorMatcher(
            MatchingConfig(index_type=index_type, eps=0.0)
        ).match(*descriptor_clouds)
        assert correspondences.source_indices.tolist() == reference.source_indices.tolist()
        assert correspondences.target_indices.tolist() == reference.target_indices.tolist()
        np.testing.assert_allclose(correspondences.distances, reference.distances)

    def test_self_match(self, descriptor_clouds):
        cloud = descriptor_clouds[0]
        correspondences = DescriptorMatcher(MatchingConfig(keep_fraction=1.0)).match(
            cloud, cloud
        )
        assert len(correspondences) == cloud.shape[0]
        assert (correspondences.source_indices == correspondences.target_indices).all()
        assert (correspondences.distances == 0).all()

    def test_empty_target_cloud(self, descriptor_clouds):
        correspondences, diagnostics = DescriptorMatcher().match_with_diagnostics(
            descriptor_clouds[0], np.empty((0, 33))
        )
        assert len(correspondences) == 0
        assert diagnostics.is_empty

    def test_dimension_mismatch(self, rng):
        with pytest.raises(ValueError):
            DescriptorMatcher().match(rng.random((5, 33)), rng.random((5, 352)))

    def test_wrong_descriptor_length(self, rng):
        matcher = DescriptorMatcher(MatchingConfig(descriptor_kind="fpfh"))
        with pytest.raises(ValueError):
            matcher.match(rng.random((5, 30)), rng.random((5, 30)))

    def test_concurrent_calls(self, rng):
        matcher = DescriptorMatcher(MatchingConfig(keep_fraction=0.5))
        pairs = [(rng.random((40, 8)), rng.random((25, 8))) for _ in range(6)]
        expected = [matcher.match(*pair) for pair in pairs]
        with ThreadPoolExecutor(max_workers=3) as executor:
            results = list(executor.map(lambda pair: matcher.match(*pair), pairs))
        assert results == expected

    def test_from_yaml(self, config_file, descriptor_clouds):
        matcher = DescriptorMatcher.from_yaml(str(config_file), {"keep_fraction": 0.25})
        assert matcher.config.index_type == "balltree"
        assert matcher.config.keep_fraction == 0.25
        assert len(matcher.match(*descriptor_clouds)) == 30
