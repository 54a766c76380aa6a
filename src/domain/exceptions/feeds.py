class FeedError(Exception):
    """Base exception for upstream GPS feed failures."""


class FeedUnavailable(FeedError):
    """Raised when a feed answers with an error status or an unusable body."""

    def __init__(self, feed: str, reason: str) -> None:
        super().__init__(f"{feed}: {reason}")
        self.feed = feed
        self.reason = reason
