from .entity import Entity

__all__ = [
    "Entity",
]
