'''Upstream feed fetchers. Pluggable fetcher protocol, httpx by default.'''

from feedsieve.fetchers.protocol import (
    USER_AGENT,
    FeedFetcher,
    HttpFeedFetcher,
    fetch_feed,
)

__all__ = [
    'USER_AGENT',
    'FeedFetcher',
    'HttpFeedFetcher',
    'fetch_feed',
]
