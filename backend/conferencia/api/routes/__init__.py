from . import comparacao, health

__all__ = ["comparacao", "health"]
