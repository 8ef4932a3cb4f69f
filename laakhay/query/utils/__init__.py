"""Utility functions."""

from .paths import get_path

__all__ = ["get_path"]
