from .correspondences import Correspondence, Correspondences
from .descriptor_kinds import DESCRIPTOR_KINDS, DescriptorKind, get_descriptor_kind

__all__ = [
    "Correspondence",
    "Correspondences",
    "DescriptorKind",
    "DESCRIPTOR_KINDS",
    "get_descriptor_kind",
]
