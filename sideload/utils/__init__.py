"""Sideload utilities."""

from .inflection import demodulize, pluralize, underscore

__all__ = ["demodulize", "pluralize", "underscore"]
