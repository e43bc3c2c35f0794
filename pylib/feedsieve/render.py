'''
Render filtered entries as Atom 1.0 or RSS 2.0.

Each renderer validates the fields its format requires before building any
XML, then serializes with ElementTree. Passing the same `now` yields
byte-identical output for the same input.
'''

import xml.etree.ElementTree as ET
from collections.abc import Sequence
from datetime import UTC, datetime
from email.utils import format_datetime

import structlog

from feedsieve.config import FeedConfig
from feedsieve.errors import RenderError
from feedsieve.models import Entry, OutputKind, Person, RenderedDocument, UpstreamFeed


logger = structlog.get_logger()

ATOM_NS = 'http://www.w3.org/2005/Atom'
GENERATOR = 'Atom Feed Filter'
RSS_LANGUAGE = 'en-us'


def _atom(tag: str) -> str:
    return f'{{{ATOM_NS}}}{tag}'


def _sub(parent: ET.Element, tag: str, text: str | None = None, **attrs: str) -> ET.Element:
    el = ET.SubElement(parent, tag, {k: v for k, v in attrs.items() if v is not None})
    if text is not None:
        el.text = text
    return el


def _serialize(root: ET.Element, default_namespace: str | None = None) -> str:
    return ET.tostring(
        root, encoding='utf-8', xml_declaration=True, default_namespace=default_namespace,
    ).decode('utf-8')


def _rfc3339(dt: datetime) -> str:
    return dt.astimezone(UTC).strftime('%Y-%m-%dT%H:%M:%SZ')


def _rfc2822(dt: datetime) -> str:
    return format_datetime(dt.astimezone(UTC))


def _atom_person(parent: ET.Element, tag: str, person: Person) -> None:
    el = _sub(parent, _atom(tag))
    _sub(el, _atom('name'), person.name)
    if person.email:
        _sub(el, _atom('email'), person.email)
    if person.uri:
        _sub(el, _atom('uri'), person.uri)


def _check_atom(feed: UpstreamFeed, entries: Sequence[Entry]) -> None:
    if not feed.id:
        raise RenderError('upstream feed has no id; Atom output requires one')
    for entry in entries:
        if not entry.id:
            raise RenderError(f'entry {entry.title!r} has no id; Atom output requires one')
        if entry.updated is None and entry.published is None:
            raise RenderError(f'entry {entry.id} has no updated timestamp; Atom output requires one')


def render_atom(
    feed: UpstreamFeed,
    entries: Sequence[Entry],
    config: FeedConfig,
    now: datetime | None = None,
) -> str:
    '''
    Atom feed whose id, authors and links come from the upstream feed, whose
    title/subtitle come from config, and whose entries are copied verbatim.
    '''
    _check_atom(feed, entries)
    now = now or datetime.now(UTC)

    root = ET.Element(_atom('feed'))
    _sub(root, _atom('id'), feed.id)
    _sub(root, _atom('title'), config.title)
    if config.description:
        _sub(root, _atom('subtitle'), config.description)
    _sub(root, _atom('updated'), _rfc3339(now))
    for author in feed.authors:
        _atom_person(root, 'author', author)
    for link in feed.links:
        _sub(root, _atom('link'), href=link.href, rel=link.rel, type=link.type, title=link.title)
    _sub(root, _atom('generator'), GENERATOR)

    for entry in entries:
        el = _sub(root, _atom('entry'))
        _sub(el, _atom('id'), entry.id)
        _sub(el, _atom('title'), entry.title, type=entry.title_type)
        _sub(el, _atom('updated'), _rfc3339(entry.updated or entry.published))
        if entry.published is not None:
            _sub(el, _atom('published'), _rfc3339(entry.published))
        for author in entry.authors:
            _atom_person(el, 'author', author)
        for link in entry.links:
            _sub(el, _atom('link'), href=link.href, rel=link.rel, type=link.type, title=link.title)
        if entry.summary is not None:
            _sub(el, _atom('summary'), entry.summary, type=entry.summary_type)
        if entry.content is not None:
            _sub(el, _atom('content'), entry.content, type=entry.content_type)

    return _serialize(root, default_namespace=ATOM_NS)


def _rss_description(entry: Entry) -> str:
    if entry.summary is not None:
        return entry.summary
    if entry.content is not None:
        return entry.content
    return ''


def render_rss(
    feed: UpstreamFeed,
    entries: Sequence[Entry],
    config: FeedConfig,
    now: datetime | None = None,
) -> str:
    '''
    RSS 2.0 channel built from config plus the upstream feed's primary link,
    with one item per filtered entry.
    '''
    channel_link = feed.link or feed.id
    if not channel_link:
        raise RenderError('upstream feed has neither a link nor an id; RSS channel requires a link')
    now = now or datetime.now(UTC)

    root = ET.Element('rss', {'version': '2.0'})
    channel = _sub(root, 'channel')
    _sub(channel, 'title', config.title)
    _sub(channel, 'link', channel_link)
    _sub(channel, 'description', config.description)
    _sub(channel, 'language', RSS_LANGUAGE)
    _sub(channel, 'generator', GENERATOR)
    _sub(channel, 'lastBuildDate', _rfc2822(now))

    for entry in entries:
        item = _sub(channel, 'item')
        _sub(item, 'title', entry.title)
        if entry.link:
            _sub(item, 'link', entry.link)
        _sub(item, 'description', _rss_description(entry))
        stamp = entry.updated or entry.published
        if stamp is not None:
            _sub(item, 'pubDate', _rfc2822(stamp))
        if entry.id:
            _sub(item, 'guid', entry.id, isPermaLink='false')
        if entry.author:
            _sub(item, 'author', entry.author)

    return _serialize(root)


_RENDERERS = {
    OutputKind.ATOM: render_atom,
    OutputKind.RSS: render_rss,
}


def render(
    kind: OutputKind,
    feed: UpstreamFeed,
    entries: Sequence[Entry],
    config: FeedConfig,
    now: datetime | None = None,
) -> RenderedDocument:
    '''Render entries in the requested syntax and stamp the result.'''
    now = now or datetime.now(UTC)
    body = _RENDERERS[kind](feed, entries, config, now=now)
    logger.debug('feed rendered', kind=kind.value, entries=len(entries), size=len(body))
    return RenderedDocument(kind=kind, body=body, rendered_at=now, entry_count=len(entries))
