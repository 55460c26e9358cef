"""Exceptions raised for caller contract violations."""

from __future__ import annotations


class MissingRequiredInput(ValueError):
    """A mandatory argument was missing or referenced unknown data."""
