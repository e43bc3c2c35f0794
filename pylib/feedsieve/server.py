'''HTTP surface: homepage plus Atom and RSS endpoints over a FeedService.'''

from html import escape

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from feedsieve import __version__
from feedsieve.errors import FeedError
from feedsieve.models import OutputKind
from feedsieve.pipeline import FeedService


logger = structlog.get_logger()

HOMEPAGE = '''<!DOCTYPE html>
<html>
<head>
    <title>Atom Feed Filter</title>
    <style>
        body {{ font-family: Arial, sans-serif; max-width: 800px; margin: 50px auto; padding: 20px; }}
        .container {{ text-align: center; }}
        .feed-link {{ background: #f0f0f0; padding: 10px; border-radius: 5px; margin: 20px 0; }}
        code {{ background: #e0e0e0; padding: 2px 5px; border-radius: 3px; }}
        .config {{ background: #f9f9f9; padding: 15px; border-radius: 5px; text-align: left; }}
    </style>
</head>
<body>
    <div class="container">
        <h1>Atom Feed Filter</h1>
        <p>This service filters Atom feed entries to show only those containing the word <strong>"{word}"</strong>.</p>

        <div class="feed-link">
            <h3>Feed URLs:</h3>
            <p>RSS: <code>/rss</code> or <code>/rss.xml</code></p>
            <p>Atom: <code>/atom</code> or <code>/feed.xml</code></p>
            <p>Append <code>?refresh</code> to bypass the cache.</p>
        </div>

        <div class="config">
            <h3>Configuration:</h3>
            <p><strong>Source:</strong> {url}</p>
            <p><strong>Filter:</strong> "{word}" (case-insensitive)</p>
            <p><strong>Feed Title:</strong> {title}</p>
            <p><strong>Cache:</strong> {cache_seconds:g}s</p>
        </div>

        <p>Add this feed to your reader to get notified when new entries match your filter!</p>
    </div>
</body>
</html>
'''


def create_app(service: FeedService) -> FastAPI:
    '''Build the FastAPI app around an explicitly constructed FeedService.'''
    app = FastAPI(title='Atom Feed Filter', version=__version__)
    app.state.service = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=['*'],
        allow_methods=['GET'],
        allow_headers=['*'],
    )

    async def _serve(request: Request, kind: OutputKind) -> Response:
        refresh = 'refresh' in request.query_params
        try:
            document, cached = await service.document(kind, refresh=refresh)
        except FeedError as e:
            logger.error('failed to fetch feed', kind=kind.value, error=str(e))
            return PlainTextResponse(f'Failed to fetch feed: {e}', status_code=500)
        return Response(
            content=document.body,
            media_type=kind.media_type,
            headers={'X-Cache': 'HIT' if cached else 'MISS'},
        )

    @app.get('/', response_class=HTMLResponse)
    async def homepage() -> HTMLResponse:
        config = service.config
        return HTMLResponse(HOMEPAGE.format(
            word=escape(config.filter_word),
            url=escape(config.url),
            title=escape(config.title),
            cache_seconds=service.gate.validity,
        ))

    @app.get('/atom')
    @app.get('/feed.xml')
    async def atom_feed(request: Request) -> Response:
        return await _serve(request, OutputKind.ATOM)

    @app.get('/rss')
    @app.get('/rss.xml')
    async def rss_feed(request: Request) -> Response:
        return await _serve(request, OutputKind.RSS)

    return app
