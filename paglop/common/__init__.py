"""Utility types shared throughout Paglop."""

from .enums import Direction as Direction
