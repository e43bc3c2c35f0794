from datetime import UTC, datetime

import pytest

from feedsieve.config import FeedConfig
from feedsieve.errors import TransportError
from feedsieve.fetchers import FeedFetcher


FEED_URL = 'https://example.com/commits.atom'


def atom_entry(
    title: str,
    entry_id: str,
    summary: str | None = None,
    content: str | None = None,
    updated: str = '2026-01-05T10:00:00Z',
    link: str | None = None,
    author: str | None = None,
) -> str:
    parts = [f'<entry><id>{entry_id}</id><title>{title}</title><updated>{updated}</updated>']
    if link:
        parts.append(f'<link rel="alternate" href="{link}"/>')
    if author:
        parts.append(f'<author><name>{author}</name></author>')
    if summary is not None:
        parts.append(f'<summary>{summary}</summary>')
    if content is not None:
        parts.append(f'<content type="text">{content}</content>')
    parts.append('</entry>')
    return ''.join(parts)


def atom_doc(*entries: str, feed_id: str | None = 'urn:example:feed', link: str | None = 'https://example.com/') -> bytes:
    head = ['<?xml version="1.0" encoding="utf-8"?>', '<feed xmlns="http://www.w3.org/2005/Atom">']
    if feed_id:
        head.append(f'<id>{feed_id}</id>')
    head.append('<title>Upstream</title><updated>2026-01-05T12:00:00Z</updated>')
    head.append('<author><name>Upstream Author</name></author>')
    if link:
        head.append(f'<link rel="alternate" href="{link}"/>')
    return ('\n'.join(head) + ''.join(entries) + '</feed>').encode('utf-8')


ROUNDUP_FEED = atom_doc(
    atom_entry('Weekly Article Roundup', 'urn:e:1', summary='Links from the week',
               link='https://example.com/1', author='Ada'),
    atom_entry('Bug Fixes', 'urn:e:2', summary='Parser cleanups', link='https://example.com/2'),
    atom_entry('Another article on testing', 'urn:e:3', link='https://example.com/3',
               updated='2026-01-04T09:30:00Z'),
)

FIXED_NOW = datetime(2026, 1, 6, 8, 0, 0, tzinfo=UTC)


class StubFetcher(FeedFetcher):
    '''Returns canned bytes (or raises) and counts calls.'''

    def __init__(self, body: bytes = ROUNDUP_FEED):
        self.body = body
        self.error: Exception | None = None
        self.calls = 0

    async def fetch(self, url: str) -> bytes:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.body


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def config() -> FeedConfig:
    return FeedConfig(
        url=FEED_URL,
        filter_word='article',
        title='Filtered Feed',
        description="Feed entries containing 'article'",
    )


@pytest.fixture
def fetcher() -> StubFetcher:
    return StubFetcher()


@pytest.fixture
def failing_fetcher() -> StubFetcher:
    f = StubFetcher()
    f.error = TransportError('connection reset')
    return f


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
