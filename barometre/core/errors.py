class BarometreError(Exception):
    """Base class for every error raised by the dashboard."""


class InvalidParameter(BarometreError, ValueError):
    """A request names a filter value the API does not support."""


class InvalidPeriod(InvalidParameter):
    """Unsupported timespan tag, or an explicit range whose start is after its end."""


class UnknownLookupKey(BarometreError, LookupError):
    """A well-formed lookup matched no row in the warehouse."""


class UpstreamStoreFailure(BarometreError):
    """The warehouse rejected or failed a query."""

    def __init__(self, query: str, cause: Exception):
        super().__init__(f"query {query} failed: {cause}")
        self.query = query
        self.cause = cause


class UnknownTransform(BarometreError, KeyError):
    """A widget was configured with a transform name missing from the registry."""
