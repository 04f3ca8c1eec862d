from .matches_analysis import apply_transformation, get_incorrect_matches

__all__ = ["apply_transformation", "get_incorrect_matches"]
