"""
Exceptions raised by the contest pipeline.

None of these reach an API client: the background jobs catch them, log them and carry on.
"""


class ContestTrackerError(Exception):
    """Base exception for contest pipeline failures"""
    pass


class UpstreamFetchError(ContestTrackerError):
    """Raised when a platform API or the video catalogue cannot be read"""

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(f"{source}: {detail}")


class ReconciliationConflict(ContestTrackerError):
    """Raised when an insert would duplicate an existing (platform, identity) row"""

    def __init__(self, platform: str, identity: str):
        self.platform = platform
        self.identity = identity
        super().__init__(f"{platform} contest {identity} already exists")


class CacheUnavailable(ContestTrackerError):
    """Raised when the upcoming-contest cache cannot be read or written"""
    pass
