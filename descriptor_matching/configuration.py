"""
Classes that can contain the configuration required by the matching of descriptors.
"""

import json
import warnings
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, fields
from typing import Any, Literal

import yaml

from descriptor_matching.core import DESCRIPTOR_KINDS
from descriptor_matching.matching.index import INDEX_TYPES
from descriptor_matching.matching.pruning import check_keep_fraction


@dataclass(frozen=True)
class Config(ABC):
    """Base class that describes the structure of every config class and implements a type casting behavior."""

    def __post_init__(self):
        for field in fields(self):
            value = getattr(self, field.name)
            try:
                if not isinstance(value, field.type):
                    warnings.warn(
                        f"Expected {field.name} to be {field.type}, got {repr(value)} of type {type(value)}"
                    )
                    # recasting the value
                    object.__setattr__(self, field.name, field.type(value))
            except TypeError:
                ...

    def __repr__(self) -> str:
        return json.dumps(asdict(self), indent=2)

    @abstractmethod
    def help_message(self) -> str:
        """
        Creates a help message describing the behavior of the method with the set of parameters specified.

        Returns:
            The help message.
        """
        ...


@dataclass(frozen=True, repr=False)
class MatchingConfig(Config):
    """
    Parameters of the matching method. Validated at construction so that a matcher can never hold an invalid
    configuration.
    """

    keep_fraction: float = 0.85
    index_type: Literal["kdtree", "balltree", "brute_force", "approximate"] = "kdtree"
    descriptor_kind: Literal["generic", "fpfh", "shot"] = "generic"
    leaf_size: int = 40
    eps: float = 0.1
    n_workers: int = 1
    chunk_size: int = 1024
    disable_progress_bar: bool = True

    def __post_init__(self):
        super().__post_init__()
        check_keep_fraction(self.keep_fraction)
        if self.index_type not in INDEX_TYPES:
            raise ValueError("Incorrect index type selection.")
        if self.descriptor_kind not in DESCRIPTOR_KINDS:
            raise ValueError("Incorrect descriptor kind selection.")
        if self.leaf_size < 1:
            raise ValueError(f"leaf_size should be positive, got {self.leaf_size}.")
        if self.eps < 0:
            raise ValueError(f"eps should be non-negative, got {self.eps}.")
        if self.n_workers < 1:
            raise ValueError(f"n_workers should be positive, got {self.n_workers}.")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size should be positive, got {self.chunk_size}.")

    def help_message(self) -> str:
        return (
            f"Matching parameters:\n"
            f" -- fraction of correspondences kept: {self.keep_fraction}\n"
            f" -- nearest-neighbor index: {self.index_type}"
            f"{f' (eps: {self.eps})' if self.index_type == 'approximate' else ''}\n"
            f" -- descriptor kind: {self.descriptor_kind}\n"
            f" -- number of workers: {self.n_workers}"
        )

    def index_options(self) -> dict[str, int | float]:
        """
        Retrieves the parameters effectively used by the selected index type.

        Returns:
            A dict whose keys match the keyword arguments of the index class.
        """
        match self.index_type:
            case "kdtree" | "balltree":
                return {"leaf_size": self.leaf_size}
            case "approximate":
                return {"leaf_size": self.leaf_size, "eps": self.eps}
            case _:
                return {}


def get_values(
    default_values: dict[str, Any], override_values: dict[str, Any]
) -> dict[str, Any]:
    """
    Overrides entries from a dictionary when values are non-null.
    """
    return {
        **default_values,
        **{
            k: v
            for k, v in override_values.items()
            if k in {field.name for field in fields(MatchingConfig)} and v is not None
        },
    }


def load_config_from_yaml(
    config_file_path: str, command_line_args: dict[str, Any] | None = None
) -> MatchingConfig:
    """
    Loads a YAML config file and overrides its values with the non-null values found in command_line_args.
    """
    with open(config_file_path) as f:
        config = yaml.safe_load(f.read()) or {}

    return MatchingConfig(
        **get_values(config.get("matching") or {}, command_line_args or {})
    )
