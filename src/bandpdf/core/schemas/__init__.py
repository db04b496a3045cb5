"""Template and data validation."""

from .validator import validate_data, validate_template

__all__ = ["validate_data", "validate_template"]
