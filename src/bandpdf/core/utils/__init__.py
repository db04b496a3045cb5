"""Small shared helpers: colours, dot paths, JSON loading."""

from .colors import parse_color
from .data import resolve_dot_path
from .serialization import load_data, load_template

__all__ = ["parse_color", "resolve_dot_path", "load_data", "load_template"]
