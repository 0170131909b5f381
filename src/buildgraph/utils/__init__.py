"""Utility functions and exceptions."""

from .exceptions import (
    AmbiguousProvidesError,
    BuildGraphError,
    DeclarationError,
    DuplicateDefinitionError,
    UnknownPackageError,
)

__all__ = [
    "BuildGraphError",
    "DeclarationError",
    "DuplicateDefinitionError",
    "AmbiguousProvidesError",
    "UnknownPackageError",
]
