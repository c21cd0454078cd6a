"""HTTP client for Helm repository index documents."""

import logging

import requests
import yaml

from .errors import DecodeError, HTTPStatusError, TransportError
from .models import ChartIndex, ReleaseEntry

logger = logging.getLogger(__name__)

# No implicit typing: `created` must stay the literal timestamp text and
# versions like 1.10 must not turn into floats.
_YamlLoader = getattr(yaml, "CBaseLoader", yaml.BaseLoader)


def parse_index(content: str | bytes, url: str = "") -> ChartIndex:
    """
    Decode an `index.yaml` document into a ChartIndex.

    Raises:
        DecodeError: If the document is not valid YAML or not shaped like a
            Helm repository index.
    """
    try:
        data = yaml.load(content, Loader=_YamlLoader)
    except (yaml.YAMLError, RecursionError, UnicodeDecodeError) as e:
        raise DecodeError(f"error processing index.yaml from {url}: {e}") from e

    if data is None or data == "":
        return ChartIndex(url=url)
    if not isinstance(data, dict):
        raise DecodeError(f"index.yaml from {url} is not a mapping")

    raw_entries = data.get("entries") or {}
    if not isinstance(raw_entries, dict):
        raise DecodeError(f"'entries' in index.yaml from {url} is not a mapping")

    entries: dict[str, list[ReleaseEntry]] = {}
    for chart_name, chart_entries in raw_entries.items():
        if chart_entries == "":
            chart_entries = []
        if not isinstance(chart_entries, list):
            raise DecodeError(f"entries for chart {chart_name} in {url} are not a list")
        releases = []
        for entry in chart_entries:
            if not isinstance(entry, dict):
                raise DecodeError(f"entry for chart {chart_name} in {url} is not a mapping")
            release = ReleaseEntry.from_dict(entry)
            if not isinstance(release.version, str) or not isinstance(release.created, str):
                raise DecodeError(f"entry for chart {chart_name} in {url} has a non-scalar version or created field")
            releases.append(release)
        entries[chart_name] = releases

    return ChartIndex(entries=entries, url=url)


class IndexClient:
    """Fetches repository indexes with a single GET and no retry."""

    def __init__(self, session: requests.Session | None = None):
        self.session = session or requests.Session()

    def fetch(self, repo_url: str) -> ChartIndex:
        """
        Retrieve and decode `<repo_url>/index.yaml`.

        Raises:
            TransportError: On any network-level failure.
            HTTPStatusError: If the response status is not 200.
            DecodeError: If the body is not a valid index.
        """
        url = repo_url + "/index.yaml"
        try:
            response = self.session.get(url)
        except requests.RequestException as e:
            raise TransportError(f"error accessing Helm repository {repo_url}: {e}") from e

        if response.status_code != 200:
            raise HTTPStatusError(repo_url, response.status_code)

        index = parse_index(response.content, url=repo_url)
        logger.debug(f"Fetched index for {repo_url} with {len(index)} charts")
        return index
