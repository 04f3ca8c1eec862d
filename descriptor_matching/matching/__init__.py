from .builder import CorrespondenceBuilder, MatchingDiagnostics, build_correspondences
from .index import (
    INDEX_TYPES,
    ApproximateIndex,
    BallTreeIndex,
    BruteForceIndex,
    IndexType,
    KDTreeIndex,
    NearestNeighborIndex,
    build_index,
)
from .pruning import check_keep_fraction, prune_correspondences, retained_count

__all__ = [
    "NearestNeighborIndex",
    "KDTreeIndex",
    "BallTreeIndex",
    "BruteForceIndex",
    "ApproximateIndex",
    "INDEX_TYPES",
    "IndexType",
    "build_index",
    "CorrespondenceBuilder",
    "MatchingDiagnostics",
    "build_correspondences",
    "check_keep_fraction",
    "retained_count",
    "prune_correspondences",
]
