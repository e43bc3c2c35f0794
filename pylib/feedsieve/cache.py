'''
Short-lived cache of rendered documents, one slot per output kind.

A slot holds an immutable (document, stamp) pair. Recomputation happens
outside any lock; only the swap of a finished pair is serialized, so readers
never wait on an in-flight fetch and never see a half-written slot.
'''

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

from feedsieve.models import OutputKind, RenderedDocument


logger = structlog.get_logger()


@dataclass(frozen=True)
class CacheSlot:
    document: RenderedDocument
    stamp: float  # clock() reading when published


class CacheGate:
    '''Decides per request whether to serve the cached document or recompute.'''

    def __init__(self, validity_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        '''
        validity_seconds: how long a published document is served without refetching.
        clock: monotonic seconds source; injectable for tests.
        '''
        if validity_seconds < 0:
            raise ValueError(f'validity_seconds must be >= 0, got {validity_seconds}')
        self.validity = validity_seconds
        self._clock = clock
        self._slots: dict[OutputKind, CacheSlot] = {}
        self._write_lock = asyncio.Lock()

    def slot(self, kind: OutputKind) -> CacheSlot | None:
        '''Current slot for kind regardless of age.'''
        return self._slots.get(kind)

    def peek(self, kind: OutputKind) -> RenderedDocument | None:
        '''Return the cached document for kind if it is still fresh.'''
        current = self._slots.get(kind)
        if current is None:
            return None
        if self._clock() - current.stamp < self.validity:
            return current.document
        return None

    async def publish(self, kind: OutputKind, document: RenderedDocument) -> None:
        '''Replace the slot for kind with a freshly computed document.'''
        async with self._write_lock:
            self._slots[kind] = CacheSlot(document=document, stamp=self._clock())

    async def get(
        self,
        kind: OutputKind,
        compute: Callable[[], Awaitable[RenderedDocument]],
        *,
        refresh: bool = False,
    ) -> tuple[RenderedDocument, bool]:
        '''
        Serve a fresh cached document, or run compute and publish its result.

        refresh forces recomputation regardless of age. If compute raises, the
        slot is left untouched and the error propagates to this caller only.

        Returns (document, served_from_cache).
        '''
        if not refresh:
            cached = self.peek(kind)
            if cached is not None:
                logger.info('serving cached feed', kind=kind.value)
                return cached, True

        logger.info('computing fresh feed', kind=kind.value, forced=refresh)
        document = await compute()
        await self.publish(kind, document)
        return document, False

    def clear(self) -> None:
        self._slots = {}
