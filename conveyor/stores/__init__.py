"""Persistent stores used between pipeline runs."""

from .registry import DEFAULT_STORAGE_PATH, ComponentRegistry

__all__ = ["ComponentRegistry", "DEFAULT_STORAGE_PATH"]
