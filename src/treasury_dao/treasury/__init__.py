from .treasury import Treasury

__all__ = ["Treasury"]
