import math

import numpy as np
import pytest

from descriptor_matching.core import Correspondences
from descriptor_matching.matching import prune_correspondences, retained_count


class TestPruning:
    def test_keeps_lowest_distances(self):
        raw = Correspondences([0, 1, 2, 3], [5, 6, 7, 8], [0.4, 0.1, 0.3, 0.2])
        pruned = prune_correspondences(raw, 0.5)
        assert pruned.distances.tolist() == [0.1, 0.2]
        assert pruned.source_indices.tolist() == [1, 3]
        assert pruned.target_indices.tolist() == [6, 8]

    @pytest.mark.parametrize("keep_fraction", [0.05, 0.1, 0.25, 0.33, 0.5, 0.85, 0.99, 1.0])
    def test_size_and_order(self, keep_fraction, rng):
        raw = Correspondences(np.arange(37), rng.integers(0, 20, 37), rng.random(37))
        pruned = prune_correspondences(raw, keep_fraction)
        assert len(pruned) == math.floor(keep_fraction * 37)
        assert (np.diff(pruned.distances) >= 0).all()
        # the kept correspondences are the closest ones
        if len(pruned) > 0:
            assert pruned.distances.max() <= np.sort(raw.distances)[len(pruned) - 1]

    def test_full_fraction_keeps_everything_sorted(self):
        raw = Correspondences([2, 0, 1], [0, 0, 0], [0.3, 0.2, 0.1])
        assert prune_correspondences(raw, 1.0) == raw.sorted()

    def test_ties_are_broken_by_source_index(self):
        raw = Correspondences([9, 4, 7, 1], [0, 1, 2, 3], [0.5, 0.5, 0.1, 0.5])
        assert prune_correspondences(raw, 0.75).source_indices.tolist() == [7, 1, 4]

    def test_small_fraction_can_empty_the_set(self):
        raw = Correspondences([0, 1, 2], [0, 0, 0], [0.1, 0.2, 0.3])
        assert len(prune_correspondences(raw, 0.3)) == 0

    def test_empty_set(self):
        assert len(prune_correspondences(Correspondences(), 0.5)) == 0

    @pytest.mark.parametrize("keep_fraction", [0.0, -0.2, 1.01, float("nan")])
    def test_invalid_fraction(self, keep_fraction):
        with pytest.raises(ValueError):
            prune_correspondences(Correspondences([0], [0], [0.1]), keep_fraction)

    def test_retained_count(self):
        assert retained_count(0.5, 4) == 2
        assert retained_count(1.0, 4) == 4
        assert retained_count(0.2, 4) == 0
        assert retained_count(0.5, 0) == 0
