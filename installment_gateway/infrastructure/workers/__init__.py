"""Background workers."""

from .poller import BackgroundPoller

__all__ = ["BackgroundPoller"]
