'''CLI for the Atom feed filter: serve over HTTP, or print one document.'''

import asyncio
import sys

import click
import structlog
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel

from feedsieve.config import FeedConfig
from feedsieve.errors import ConfigError, FeedError
from feedsieve.models import OutputKind
from feedsieve.pipeline import FeedPipeline, build_service


def _configure_logging() -> None:
    '''Plain tracebacks, console rendering, everything on stderr so stdout stays clean.'''
    from structlog.contextvars import merge_contextvars
    from structlog.dev import ConsoleRenderer, plain_traceback, set_exc_info
    from structlog.processors import StackInfoRenderer, TimeStamper, add_log_level

    structlog.configure(
        processors=[
            merge_contextvars,
            add_log_level,
            StackInfoRenderer(),
            set_exc_info,
            TimeStamper(fmt='%Y-%m-%d %H:%M:%S', utc=False),
            ConsoleRenderer(exception_formatter=plain_traceback),
        ],
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


@click.command(help="Filters Atom feed entries by keyword (default: 'article').")
@click.option('-p', '--port', type=int, default=3000, show_default=True, help='Port to listen on')
@click.option('--host', default='0.0.0.0', show_default=True, help='Interface to bind')
@click.option('-c', '--cache-seconds', type=click.FloatRange(min=0), default=300, show_default=True,
              help='How long a rendered feed is served before refetching')
@click.option('--serve-once', is_flag=True, help='Print one rendered feed to stdout and exit')
@click.option('-u', '--url', default=None, help='Atom feed URL to filter (default: ATOM_FEED_URL env)')
@click.option('-f', '--filter-word', default='article', show_default=True, help='Filter keyword')
@click.option('-o', '--output', type=click.Choice([k.value for k in OutputKind]), default=OutputKind.RSS.value,
              show_default=True, help='Format printed by --serve-once')
@click.option('--timeout', type=float, default=None, help='Upstream HTTP timeout in seconds (default: FEED_TIMEOUT env or 30)')
def main(
    port: int,
    host: str,
    cache_seconds: float,
    serve_once: bool,
    url: str | None,
    filter_word: str,
    output: str,
    timeout: float | None,
) -> None:
    load_dotenv()
    _configure_logging()

    try:
        config = FeedConfig.from_env(url=url, filter_word=filter_word, timeout=timeout)
    except ConfigError as e:
        click.echo(f'Error: {e}', err=True)
        click.echo('Example: https://example.com/feed.atom', err=True)
        sys.exit(1)

    if serve_once:
        run_once(config, OutputKind(output))
        return

    serve(config, host=host, port=port, cache_seconds=cache_seconds)


def run_once(config: FeedConfig, kind: OutputKind) -> None:
    '''Run the pipeline one time and print the document. Exit 1 on failure.'''
    try:
        document = asyncio.run(FeedPipeline(config).run(kind))
    except FeedError as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)
    click.echo(document.body)


def serve(config: FeedConfig, host: str, port: int, cache_seconds: float) -> None:
    '''Start the HTTP server with a fresh, empty cache.'''
    import uvicorn

    from feedsieve.server import create_app

    log = structlog.get_logger()
    app = create_app(build_service(config, cache_seconds))

    Console(stderr=True).print(Panel(
        f'Listening on {host}:{port}\n'
        f'RSS:  http://localhost:{port}/rss\n'
        f'Atom: http://localhost:{port}/atom',
        title='Atom Feed Filter',
    ))
    log.info('monitoring', url=config.url, filter_word=config.filter_word, cache_seconds=cache_seconds)
    uvicorn.run(app, host=host, port=port)


if __name__ == '__main__':
    main()
