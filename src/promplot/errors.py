"""Error types raised by the promplot pipeline stages."""


class PromplotError(Exception):
    """Base class for all errors surfaced to the command line."""


class ConfigurationError(PromplotError):
    """Missing or conflicting command line options."""


class FetchError(PromplotError):
    """Metrics could not be fetched from the server."""


class RenderError(PromplotError):
    """The chart could not be rendered."""


class SinkError(PromplotError):
    """The rendered chart could not be written or uploaded."""
