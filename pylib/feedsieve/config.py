'''Runtime configuration for the filter pipeline.'''

import os
from dataclasses import dataclass

from feedsieve.errors import ConfigError

DEFAULT_FILTER_WORD = 'article'
DEFAULT_TITLE = 'Filtered Feed'
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class FeedConfig:
    '''Immutable settings shared read-only by every pipeline run.'''

    url: str
    filter_word: str = DEFAULT_FILTER_WORD
    title: str = DEFAULT_TITLE
    description: str = ''
    timeout: float = DEFAULT_TIMEOUT  # upstream HTTP timeout, seconds

    @classmethod
    def from_env(
        cls,
        url: str | None = None,
        filter_word: str | None = None,
        timeout: float | None = None,
    ) -> 'FeedConfig':
        '''
        Build config from env vars, with explicit arguments taking precedence.

        ATOM_FEED_URL: upstream feed (required unless url is passed)
        FEED_TITLE, FEED_DESCRIPTION: output channel metadata
        FEED_TIMEOUT: upstream HTTP timeout in seconds
        '''
        resolved_url = (url or os.environ.get('ATOM_FEED_URL') or '').strip()
        if not resolved_url:
            raise ConfigError(
                'No Atom feed URL provided. '
                'Set the ATOM_FEED_URL environment variable or use the --url option.'
            )
        word = DEFAULT_FILTER_WORD if filter_word is None else str(filter_word)
        title = os.environ.get('FEED_TITLE') or DEFAULT_TITLE
        description = os.environ.get('FEED_DESCRIPTION') or f"Feed entries containing '{word}'"
        if timeout is None:
            try:
                timeout = float(os.environ.get('FEED_TIMEOUT', DEFAULT_TIMEOUT))
            except ValueError:
                timeout = DEFAULT_TIMEOUT
        if timeout <= 0:
            raise ConfigError(f'timeout must be positive, got {timeout}')
        return cls(url=resolved_url, filter_word=word, title=title, description=description, timeout=float(timeout))
