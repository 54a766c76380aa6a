from .feeds import FeedError, FeedUnavailable

__all__ = ["FeedError", "FeedUnavailable"]
