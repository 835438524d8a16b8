from .check import check
from .describe import describe

__all__ = ["check", "describe"]
