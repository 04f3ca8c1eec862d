from .io_descriptors import load_array, read_correspondences, write_correspondences
from .perf_monitoring import checkpoint, timeit

__all__ = [
    "load_array",
    "read_correspondences",
    "write_correspondences",
    "checkpoint",
    "timeit",
]
