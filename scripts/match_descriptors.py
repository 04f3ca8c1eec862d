import argparse
import logging
from pathlib import Path

import coloredlogs

from descriptor_matching import (
    DescriptorMatcher,
    checkpoint,
    get_incorrect_matches,
    load_array,
    write_correspondences,
)
from scripts.parse_args import parse_args


def main(args: argparse.Namespace | None = None) -> None:
    """
    Matches the descriptors of two point clouds.
    Outputs useful information in the logs and writes the correspondences in a text file.

    Args:
        args: Arguments parsed from command-line using argparse.
    """
    coloredlogs.install(
        level="INFO",
        fmt="%(asctime)s %(levelname)-7s %(message)s",
        field_styles={
            "levelname": {"color": "black", "bright": True, "bold": True},
            "asctime": {"color": "magenta", "bright": True},
        },
        level_styles={
            "info": {"color": "cyan", "faint": True},
            "critical": {"color": "red", "bold": True},
            "error": {"color": "red", "bright": True},
            "warning": {"color": "yellow", "bright": True},
        },
    )

    args = args or parse_args()
    matcher = DescriptorMatcher.from_yaml(args.config, vars(args))
    logging.info(matcher.config.help_message())

    global_timer = checkpoint()
    timer = checkpoint()
    source_descriptors = load_array(args.source_descriptors_path)
    target_descriptors = load_array(args.target_descriptors_path)
    timer("Time spent retrieving the descriptors")

    correspondences, diagnostics = matcher.match_with_diagnostics(
        source_descriptors, target_descriptors
    )
    timer("Time spent finding matches between the descriptors")

    ground_truth_paths = (
        args.source_keypoints_path,
        args.target_keypoints_path,
        args.transformation_path,
    )
    if all(path is not None for path in ground_truth_paths):
        try:
            incorrect_matches = get_incorrect_matches(
                *(load_array(path) for path in ground_truth_paths[:2]),
                correspondences,
                load_array(args.transformation_path),
            )
            logging.info(
                f"{(~incorrect_matches).sum()} correct matches out of {len(correspondences)} correspondences "
                f"and {diagnostics.n_source} descriptors."
            )
        except FileNotFoundError:
            logging.warning(
                f"Keypoints or transformation not found under {', '.join(ground_truth_paths)}, ignoring them."
            )

    if not args.disable_writing:
        logging.info("")
        logging.info(f" -- Writing the correspondences under '{args.output_path}' --")
        Path(args.output_path).parent.mkdir(exist_ok=True, parents=True)
        write_correspondences(args.output_path, correspondences)

    global_timer("\nTotal time spent")


if __name__ == "__main__":
    main()
