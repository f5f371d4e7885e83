from .votes import Vote

__all__ = ["Vote"]
