"""Data models for the release exporter."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RepositoryTarget:
    """A Helm repository and the charts tracked in it."""

    url: str
    charts: tuple[str, ...] = ()

    @property
    def index_url(self) -> str:
        """Location of the repository index document."""
        return self.url + "/index.yaml"


WatchList = tuple[RepositoryTarget, ...]


@dataclass(frozen=True)
class ReleaseEntry:
    """One published version of a chart, as listed in a repository index."""

    version: str = ""
    created: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> "ReleaseEntry":
        return cls(
            version=d.get("version", ""),
            created=d.get("created", ""),
        )


@dataclass
class ChartIndex:
    """Parsed `index.yaml` of a single repository."""

    entries: dict[str, list[ReleaseEntry]] = field(default_factory=dict)
    url: str = ""

    def __contains__(self, chart: str) -> bool:
        return chart in self.entries

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class MetricSample:
    """Label tuple published on the release version gauge."""

    repo: str
    chart: str
    version: str
    release_date: str

    @property
    def labels(self) -> dict[str, str]:
        return {
            "repo": self.repo,
            "chart": self.chart,
            "version": self.version,
            "release_date": self.release_date,
        }


@dataclass(frozen=True)
class ChartFailure:
    """A chart that could not be resolved during a cycle."""

    repo: str
    chart: str
    error: Exception


@dataclass
class CycleReport:
    """Outcome of one sweep over the watch-list."""

    resolved: list[MetricSample] = field(default_factory=list)
    failures: list[ChartFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures
