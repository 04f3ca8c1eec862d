from .analysis import get_incorrect_matches
from .configuration import MatchingConfig, load_config_from_yaml
from .core import Correspondence, Correspondences, DescriptorKind, get_descriptor_kind
from .helpers import (
    checkpoint,
    load_array,
    read_correspondences,
    timeit,
    write_correspondences,
)
from .matcher import DescriptorMatcher, match_descriptors
from .matching import (
    MatchingDiagnostics,
    build_correspondences,
    build_index,
    prune_correspondences,
)

__all__ = [
    "get_incorrect_matches",
    "MatchingConfig",
    "load_config_from_yaml",
    "Correspondence",
    "Correspondences",
    "DescriptorKind",
    "get_descriptor_kind",
    "checkpoint",
    "timeit",
    "load_array",
    "read_correspondences",
    "write_correspondences",
    "DescriptorMatcher",
    "match_descriptors",
    "MatchingDiagnostics",
    "build_correspondences",
    "build_index",
    "prune_correspondences",
]
