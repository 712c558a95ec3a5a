"""Story-link workflow: fallback strategies, step definitions and the driver loop."""

from .linker import link_story

__all__ = ["link_story"]
