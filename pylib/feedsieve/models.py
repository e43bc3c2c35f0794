'''Typed records shared by the parser, the renderers and the cache.'''

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class OutputKind(Enum):
    '''Output syntax a client can request.'''

    ATOM = 'atom'
    RSS = 'rss'

    @property
    def media_type(self) -> str:
        if self is OutputKind.ATOM:
            return 'application/atom+xml; charset=utf-8'
        return 'application/rss+xml; charset=utf-8'


@dataclass(frozen=True)
class Link:
    href: str
    rel: str = 'alternate'
    type: str | None = None
    title: str | None = None


@dataclass(frozen=True)
class Person:
    name: str
    email: str | None = None
    uri: str | None = None


@dataclass(frozen=True)
class Entry:
    '''One normalized upstream feed item.'''

    id: str | None
    title: str
    title_type: str = 'text'  # Atom text construct type: text | html
    links: tuple[Link, ...] = ()
    summary: str | None = None
    summary_type: str = 'text'
    content: str | None = None
    content_type: str = 'text'
    authors: tuple[Person, ...] = ()
    updated: datetime | None = None
    published: datetime | None = None

    @property
    def link(self) -> str | None:
        return self.links[0].href if self.links else None

    @property
    def author(self) -> str | None:
        return self.authors[0].name if self.authors else None


@dataclass(frozen=True)
class UpstreamFeed:
    '''Feed-level metadata plus its entries, in document order.'''

    id: str | None
    title: str
    links: tuple[Link, ...] = ()
    authors: tuple[Person, ...] = ()
    entries: tuple[Entry, ...] = ()

    @property
    def link(self) -> str | None:
        '''Primary link: first rel="alternate", else the first link of any rel.'''
        for link in self.links:
            if link.rel == 'alternate':
                return link.href
        return self.links[0].href if self.links else None


@dataclass(frozen=True)
class RenderedDocument:
    '''A fully serialized output feed. Replaced wholesale, never edited.'''

    kind: OutputKind
    body: str
    rendered_at: datetime
    entry_count: int = 0
