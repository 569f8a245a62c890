"""Delimited-file helpers."""

from .explode import explode, resolve_delimiter

__all__ = ["explode", "resolve_delimiter"]
