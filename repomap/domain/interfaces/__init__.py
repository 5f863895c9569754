"""Protocols for entities and repositories."""

from .entity import EntityProtocol
from .repository import PublicRepository

__all__ = [
    "EntityProtocol",
    "PublicRepository",
]
