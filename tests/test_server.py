import httpx
import pytest
from fastapi.testclient import TestClient

from feedsieve.cache import CacheGate
from feedsieve.errors import TransportError
from feedsieve.fetchers import HttpFeedFetcher
from feedsieve.pipeline import FeedPipeline, FeedService
from feedsieve.server import create_app


@pytest.fixture
def service(config, fetcher, clock) -> FeedService:
    return FeedService(FeedPipeline(config, fetcher=fetcher), CacheGate(300, clock=clock))


@pytest.fixture
def client(service) -> TestClient:
    return TestClient(create_app(service))


def test_homepage_describes_configuration(client, config) -> None:
    r = client.get('/')
    assert r.status_code == 200
    assert r.headers['content-type'].startswith('text/html')
    assert config.url in r.text
    assert '"article"' in r.text
    assert '/rss' in r.text and '/atom' in r.text


def test_homepage_escapes_config(fetcher, clock) -> None:
    from feedsieve.config import FeedConfig

    config = FeedConfig(url='https://example.com/a.atom', filter_word='<script>', title='T')
    app = create_app(FeedService(FeedPipeline(config, fetcher=fetcher), CacheGate(300, clock=clock)))
    r = TestClient(app).get('/')
    assert '<script>' not in r.text
    assert '&lt;script&gt;' in r.text


@pytest.mark.parametrize('path', ['/rss', '/rss.xml'])
def test_rss_routes(client, path) -> None:
    r = client.get(path)
    assert r.status_code == 200
    assert r.headers['content-type'] == 'application/rss+xml; charset=utf-8'
    assert '<rss' in r.text
    assert 'Weekly Article Roundup' in r.text
    assert 'Bug Fixes' not in r.text


@pytest.mark.parametrize('path', ['/atom', '/feed.xml'])
def test_atom_routes(client, path) -> None:
    r = client.get(path)
    assert r.status_code == 200
    assert r.headers['content-type'] == 'application/atom+xml; charset=utf-8'
    assert 'http://www.w3.org/2005/Atom' in r.text
    assert 'Another article on testing' in r.text


def test_second_request_is_served_from_cache(client, fetcher) -> None:
    assert client.get('/rss').headers['x-cache'] == 'MISS'
    assert client.get('/rss.xml').headers['x-cache'] == 'HIT'
    assert fetcher.calls == 1


def test_refresh_parameter_presence_forces_fetch(client, fetcher) -> None:
    client.get('/rss')
    r = client.get('/rss?refresh')
    assert r.headers['x-cache'] == 'MISS'
    r = client.get('/rss', params={'refresh': 'false'})
    assert r.headers['x-cache'] == 'MISS'
    assert fetcher.calls == 3


def test_pipeline_failure_returns_500_text(client, fetcher) -> None:
    fetcher.error = TransportError('connection refused')
    r = client.get('/atom')
    assert r.status_code == 500
    assert r.headers['content-type'].startswith('text/plain')
    assert r.text == 'Failed to fetch feed: transport error: connection refused'


def test_failed_refresh_does_not_evict_cache(client, fetcher) -> None:
    first = client.get('/rss').text

    fetcher.error = TransportError('connection reset')
    assert client.get('/rss?refresh=1').status_code == 500

    r = client.get('/rss')
    assert r.status_code == 200
    assert r.headers['x-cache'] == 'HIT'
    assert r.text == first


def test_cors_allows_any_origin(client) -> None:
    r = client.get('/rss', headers={'Origin': 'https://reader.example.org'})
    assert r.headers['access-control-allow-origin'] == '*'


def test_upstream_redirect_loop_returns_500_text(config, clock) -> None:
    loop = httpx.MockTransport(lambda request: httpx.Response(302, headers={'Location': str(request.url)}))
    service = FeedService(
        FeedPipeline(config, fetcher=HttpFeedFetcher(transport=loop)),
        CacheGate(300, clock=clock),
    )
    r = TestClient(create_app(service)).get('/rss')
    assert r.status_code == 500
    assert r.text.startswith('Failed to fetch feed: transport error:')
