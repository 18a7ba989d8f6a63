"""FastAPI dependency helpers."""

from .actor import Actor, get_actor
from .context import get_clock, get_config, get_feed, get_store

__all__ = ["Actor", "get_actor", "get_clock", "get_config", "get_feed", "get_store"]
