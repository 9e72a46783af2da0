"""Error taxonomy for the feed pipeline."""


class FeedError(Exception):
    """Base class for errors that terminate a run."""


class ConfigError(FeedError):
    """Raised when configuration or command line values are invalid."""


class TransportError(FeedError):
    """Raised when a page cannot be fetched or the response is not JSON-shaped."""


class EnvelopeError(FeedError):
    """Raised when a page payload is malformed, unsuccessful or empty."""


class OutputError(FeedError):
    """Raised when the XML document cannot be written to the sink."""


class ShutdownError(FeedError):
    """Raised when a run is stopped by the shutdown signal."""


class RecordError(ValueError):
    """Raised when a single record cannot be transformed; the record is dropped."""


class LinkError(RecordError):
    """Raised when a relative path cannot be turned into a valid absolute URL."""


class TimestampError(RecordError):
    """Raised when a date/time pair cannot be parsed."""
