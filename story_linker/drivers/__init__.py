"""Browser driver adapters used by the link workflow."""

from .base import PageDriver

__all__ = ["PageDriver"]
