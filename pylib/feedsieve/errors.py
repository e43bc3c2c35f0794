'''Error taxonomy for the fetch → filter → render pipeline.'''


class FeedError(Exception):
    '''Base for every failure a pipeline run can surface to a requester.'''


class TransportError(FeedError):
    '''DNS, connect, timeout or reset failure while talking to upstream.'''

    def __init__(self, detail: str):
        super().__init__(f'transport error: {detail}')
        self.detail = detail


class UpstreamStatusError(FeedError):
    '''Upstream answered with a non-success HTTP status.'''

    def __init__(self, status_code: int):
        super().__init__(f'HTTP error: {status_code}')
        self.status_code = status_code


class MalformedFeedError(FeedError):
    '''Upstream bytes are not a well-formed Atom document.'''


class RenderError(FeedError):
    '''A field the output format requires is missing.'''


class ConfigError(ValueError):
    '''Configuration cannot be resolved (e.g. no upstream URL).'''
