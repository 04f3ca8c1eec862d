import argparse


def add_io_parameters(parser) -> None:
    parser.add_argument(
        "--source_descriptors_path",
        type=str,
        default="./data/source_descriptors.npy",
        help="Path to the descriptors computed on the point cloud to align (.npy or text file).",
    )
    parser.add_argument(
        "--target_descriptors_path",
        type=str,
        default="./data/target_descriptors.npy",
        help="Path to the descriptors computed on the reference point cloud (.npy or text file).",
    )
    parser.add_argument(
        "--source_keypoints_path",
        type=str,
        default=None,
        help="Path to the keypoints the source descriptors were computed on. Only used to count correct matches.",
    )
    parser.add_argument(
        "--target_keypoints_path",
        type=str,
        default=None,
        help="Path to the keypoints the target descriptors were computed on. Only used to count correct matches.",
    )
    parser.add_argument(
        "--transformation_path",
        type=str,
        default=None,
        help="Path to the exact 4x4 transformation from source to target, used to count correct matches. "
        "Leave empty to ignore.",
    )
    parser.add_argument(
        "--output_path",
        type=str,
        default="./data/results/correspondences.txt",
        help="Path to the text file the correspondences are written into.",
    )
    parser.add_argument(
        "--disable_writing",
        action="store_true",
        help="Skips saving the correspondences.",
    )


def add_matching_parameters(parser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        default="./config/matching.yaml",
        help="Path to the YAML config file. Values passed on the command line override it.",
    )
    parser.add_argument(
        "--keep_fraction",
        type=float,
        default=None,
        help="Fraction of the correspondences with the lowest distances that are kept.",
    )
    parser.add_argument(
        "--index_type",
        choices=["kdtree", "balltree", "brute_force", "approximate"],
        type=str,
        default=None,
        help="Choice of the nearest-neighbor search structure.",
    )
    parser.add_argument(
        "--descriptor_kind",
        choices=["generic", "fpfh", "shot"],
        type=str,
        default=None,
        help="Kind of the descriptors matched.",
    )
    parser.add_argument(
        "--eps",
        type=float,
        default=None,
        help="Relative tolerance of the approximate nearest-neighbor search.",
    )
    parser.add_argument(
        "--n_workers",
        type=int,
        default=None,
        help="Number of threads querying the index.",
    )
    parser.add_argument(
        "--disable_progress_bar",
        action="store_const",
        const=True,
        default=None,
        help="Disables the progress bar over the queries.",
    )


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """
    Parses the command line arguments. Also produces the help message.
    """
    parser = argparse.ArgumentParser(
        description="Nearest-neighbor matching of local descriptors between two point clouds."
    )
    add_io_parameters(parser.add_argument_group("I/O"))
    add_matching_parameters(parser.add_argument_group("Matching"))

    return parser.parse_args(args)
