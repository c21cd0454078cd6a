"""Exception types raised by the exporter."""


class ReleaseExporterError(Exception):
    """Base class for all exporter errors."""


class ConfigError(ReleaseExporterError):
    """Invalid or unreadable configuration. Fatal at startup."""


class IndexFetchError(ReleaseExporterError):
    """A repository index could not be retrieved or decoded."""


class TransportError(IndexFetchError):
    """Network-level failure while requesting an index."""


class HTTPStatusError(IndexFetchError):
    """The repository answered with a non-200 status code."""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"error accessing Helm repository {url}: status code {status_code}")
        self.url = url
        self.status_code = status_code


class DecodeError(IndexFetchError):
    """The index document does not have the expected shape."""


class ChartNotFound(ReleaseExporterError):
    """The chart is missing from the index or has no entries."""

    def __init__(self, chart: str, repo_url: str = ""):
        where = f" in repository {repo_url}" if repo_url else ""
        super().__init__(f"chart {chart} not found{where}")
        self.chart = chart
        self.repo_url = repo_url


class DateParseError(ReleaseExporterError):
    """A release timestamp is not an RFC 3339 date-time."""
