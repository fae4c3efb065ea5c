"""Data models shared across backends."""

from pydbi.models.params import BindParams, Named, Positional, named, positional

__all__ = ["BindParams", "Named", "Positional", "named", "positional"]
