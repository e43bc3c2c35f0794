'''
Pipeline: fetch upstream, filter by keyword, render, publish to the cache.
'''

from datetime import datetime

import structlog

from feedsieve.cache import CacheGate
from feedsieve.config import FeedConfig
from feedsieve.fetchers import FeedFetcher, HttpFeedFetcher
from feedsieve.models import OutputKind, RenderedDocument
from feedsieve.parse import parse_and_filter
from feedsieve.render import render


class FeedPipeline:
    '''One fetch → parse → filter → render run per call. No caching here.'''

    def __init__(self, config: FeedConfig, fetcher: FeedFetcher | None = None) -> None:
        self.config = config
        self.fetcher = fetcher or HttpFeedFetcher(timeout=config.timeout)

    async def run(self, kind: OutputKind, now: datetime | None = None) -> RenderedDocument:
        '''
        Produce a fresh document of the given kind. The first failing stage's
        FeedError propagates unchanged.
        '''
        log = structlog.get_logger().bind(kind=kind.value, url=self.config.url)
        raw = await self.fetcher.fetch(self.config.url)
        feed, matched = parse_and_filter(raw, self.config.filter_word)
        document = render(kind, feed, matched, self.config, now=now)
        log.info('pipeline run complete', entries=document.entry_count)
        return document


class FeedService:
    '''
    Pipeline behind a cache gate. Construct one per process and hand it to
    the HTTP app.
    '''

    def __init__(self, pipeline: FeedPipeline, gate: CacheGate) -> None:
        self.pipeline = pipeline
        self.gate = gate

    @property
    def config(self) -> FeedConfig:
        return self.pipeline.config

    async def document(self, kind: OutputKind, refresh: bool = False) -> tuple[RenderedDocument, bool]:
        '''Returns (document, served_from_cache).'''
        return await self.gate.get(kind, lambda: self.pipeline.run(kind), refresh=refresh)


def build_service(config: FeedConfig, cache_seconds: float, fetcher: FeedFetcher | None = None) -> FeedService:
    '''Wire a FeedService from config and a cache validity window.'''
    return FeedService(FeedPipeline(config, fetcher=fetcher), CacheGate(cache_seconds))
