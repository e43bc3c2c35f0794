'''
Feed fetcher protocol for retrieving raw upstream feed bytes.

Provides a pluggable interface so the pipeline can run against the network
or against an in-process stand-in.
'''

from abc import ABC, abstractmethod

import httpx
import structlog

from feedsieve.errors import TransportError, UpstreamStatusError


logger = structlog.get_logger()

USER_AGENT = 'Atom Feed Filter Bot 1.0'


class FeedFetcher(ABC):
    '''Protocol for upstream feed fetchers.'''

    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        '''
        Fetch a URL and return the response body.

        Args:
            url: URL to fetch

        Returns:
            Raw body bytes

        Raises:
            TransportError: the request never produced a response
            UpstreamStatusError: the response status was not 2xx
        '''


class HttpFeedFetcher(FeedFetcher):
    '''
    Single-shot HTTP GET using httpx. No retries; a failure fails the run.
    '''

    def __init__(
        self,
        timeout: float = 30.0,
        follow_redirects: bool = True,
        user_agent: str = USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self.user_agent = user_agent
        self._transport = transport

    async def fetch(self, url: str) -> bytes:
        '''GET url with the identifying User-Agent and return the body.'''
        logger.info('fetching upstream feed', url=url)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=self.follow_redirects,
                headers={'User-Agent': self.user_agent},
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            # RequestError also covers redirect loops and undecodable bodies
            logger.warning('upstream transport failure', url=url, error=str(e))
            raise TransportError(str(e) or type(e).__name__) from e

        if not response.is_success:
            logger.warning('upstream returned error status', url=url, status=response.status_code)
            raise UpstreamStatusError(response.status_code)

        logger.debug('upstream feed fetched', url=url, size=len(response.content))
        return response.content


async def fetch_feed(url: str, fetcher: FeedFetcher | None = None) -> bytes:
    '''
    Fetch a feed URL. Convenience for one-off callers.

    Args:
        url: URL to fetch
        fetcher: Optional fetcher instance; defaults to HttpFeedFetcher

    Returns:
        Raw feed bytes
    '''
    f = fetcher or HttpFeedFetcher()
    return await f.fetch(url)
