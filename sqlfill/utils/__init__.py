"""Utility functions and classes for sqlfill."""

from sqlfill.utils import schema, serializers, text, type_guards

__all__ = ("schema", "serializers", "text", "type_guards")
