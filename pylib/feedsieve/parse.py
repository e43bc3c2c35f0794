'''Atom parsing with feedparser, and the keyword filter.'''

import calendar
import io
import xml.sax
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

import feedparser
import structlog

from feedsieve.errors import MalformedFeedError
from feedsieve.models import Entry, Link, Person, UpstreamFeed


logger = structlog.get_logger()

# feedparser reports MIME types; Atom text constructs use the short form.
# xhtml arrives already serialized to a markup string, so it is re-emitted as html.
_TEXT_TYPES = {
    'text/plain': 'text',
    'text/html': 'html',
    'application/xhtml+xml': 'html',
}

# feedparser fills in these types on <link> elements that carried none
_IMPLIED_SELF_TYPE = 'application/atom+xml'
_IMPLIED_LINK_TYPE = 'text/html'


def parse_feed(raw: bytes) -> UpstreamFeed:
    '''
    Parse upstream bytes as an Atom document.

    Raises MalformedFeedError if the bytes are not well-formed XML or the
    document is not Atom.
    '''
    # Wrap in a stream so feedparser never treats the bytes as a path or URL
    parsed = feedparser.parse(io.BytesIO(raw))
    if parsed.bozo and isinstance(parsed.get('bozo_exception'), xml.sax.SAXException):
        raise MalformedFeedError(f'feed is not well-formed: {parsed.bozo_exception}') from parsed.bozo_exception
    version = parsed.get('version') or ''
    if not version:
        raise MalformedFeedError('unrecognized feed document')
    if not version.startswith('atom'):
        raise MalformedFeedError(f'expected an Atom feed, got {version}')

    meta = parsed.feed
    return UpstreamFeed(
        id=_as_str(meta.get('id')),
        title=meta.get('title', ''),
        links=_links(meta.get('links')),
        authors=_people(meta.get('authors')),
        entries=tuple(_entry(e) for e in parsed.entries),
    )


def filter_entries(entries: Iterable[Entry], keyword: str) -> list[Entry]:
    '''
    Keep entries whose title or summary contains keyword, case-insensitively.

    Substring match, not word boundary. Source order is preserved. A missing
    summary matches as the empty string.
    '''
    needle = keyword.lower()
    return [
        e for e in entries
        if needle in e.title.lower() or needle in (e.summary or '').lower()
    ]


def parse_and_filter(raw: bytes, keyword: str) -> tuple[UpstreamFeed, list[Entry]]:
    '''Parse raw bytes and filter its entries. Returns (feed, matching entries).'''
    feed = parse_feed(raw)
    matched = filter_entries(feed.entries, keyword)
    logger.info('feed filtered', keyword=keyword, total=len(feed.entries), matched=len(matched))
    return feed, matched


def _entry(item: Any) -> Entry:
    # feedparser copies <content> into 'summary' when there is no <summary>;
    # only a real summary element carries summary_detail.
    summary = None
    summary_type = 'text'
    if item.get('summary_detail') is not None:
        summary = item.get('summary', '')
        summary_type = _text_type(item.summary_detail.get('type'))

    content = None
    content_type = 'text'
    if item.get('content'):
        first = item.content[0]
        content = first.get('value', '')
        content_type = _text_type(first.get('type'))

    return Entry(
        id=_as_str(item.get('id')),
        title=item.get('title', ''),
        title_type=_text_type((item.get('title_detail') or {}).get('type')),
        links=_links(item.get('links')),
        summary=summary,
        summary_type=summary_type,
        content=content,
        content_type=content_type,
        authors=_people(item.get('authors')),
        updated=_as_datetime(item.get('updated_parsed')),
        published=_as_datetime(item.get('published_parsed')),
    )


def _links(raw: Any) -> tuple[Link, ...]:
    links = []
    for link in raw or ():
        href = _as_str(link.get('href'))
        if not href:
            continue
        rel = link.get('rel') or 'alternate'
        link_type = _as_str(link.get('type'))
        if link_type == (_IMPLIED_SELF_TYPE if rel == 'self' else _IMPLIED_LINK_TYPE):
            link_type = None
        links.append(Link(
            href=href,
            rel=rel,
            type=link_type,
            title=_as_str(link.get('title')),
        ))
    return tuple(links)


def _people(raw: Any) -> tuple[Person, ...]:
    people = []
    for person in raw or ():
        name = _as_str(person.get('name'))
        if not name:
            continue
        people.append(Person(name=name, email=_as_str(person.get('email')), uri=_as_str(person.get('href'))))
    return tuple(people)


def _text_type(mime: str | None) -> str:
    return _TEXT_TYPES.get(mime or '', 'text')


def _as_datetime(parsed: Any) -> datetime | None:
    '''feedparser normalizes dates to UTC struct_time.'''
    if not parsed:
        return None
    return datetime.fromtimestamp(calendar.timegm(parsed), tz=UTC)


def _as_str(value: Any) -> str | None:
    return value.strip() if isinstance(value, str) and value.strip() else None
