"""Infrastructure components."""

from .debounce_comp import DebouncedAction

__all__ = ["DebouncedAction"]
