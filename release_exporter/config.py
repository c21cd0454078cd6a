"""Configuration loaded from YAML files with environment overrides."""

import os
import re
from dataclasses import dataclass
from pathlib import Path

import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .models import RepositoryTarget, WatchList

CONFIG_FILE = "config.yaml"
REPOS_FILE = "repos_and_charts.yaml"
DEFAULT_CONFIG_DIR = "config"

DEFAULT_PORT = 8080
DEFAULT_METRICS_PATH = "/metrics"
DEFAULT_CHECK_INTERVAL = "5m"

# Go-style duration units, in seconds.
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"([0-9]+(?:\.[0-9]*)?|\.[0-9]+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: str) -> float:
    """
    Parse a duration string such as "5m", "1h30m" or "1.5s" into seconds.

    Follows the Go `time.ParseDuration` grammar: an optional sign, then one or
    more decimal numbers each followed by a unit. A bare "0" is accepted.

    Raises:
        ConfigError: If the string is not a valid duration.
    """
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ConfigError(f"invalid duration {value!r}")

    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]

    if text == "0":
        return 0.0

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ConfigError(f"invalid duration {value!r}")
        number, unit = match.groups()
        total += float(number) * _DURATION_UNITS[unit]
        pos = match.end()

    if pos == 0:
        raise ConfigError(f"invalid duration {value!r}")
    return sign * total


def resolve_config_dir(cli_dir: str | None = None) -> Path:
    """Pick the configuration directory: CONFIG_PATH, then the CLI argument, then ./config."""
    load_dotenv()
    env_dir = os.getenv("CONFIG_PATH")
    if env_dir:
        return Path(env_dir)
    if cli_dir:
        return Path(cli_dir)
    return Path(DEFAULT_CONFIG_DIR)


def _read_yaml(path: Path) -> object:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"error reading {path}: {e}") from e
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"error processing {path}: {e}") from e


@dataclass
class Config:
    """Server settings for the exporter."""

    port: int = DEFAULT_PORT
    metrics_path: str = DEFAULT_METRICS_PATH
    check_interval: str = DEFAULT_CHECK_INTERVAL
    config_dir: Path = Path(DEFAULT_CONFIG_DIR)

    @property
    def check_interval_seconds(self) -> float:
        return parse_duration(self.check_interval)

    @property
    def repos_file(self) -> Path:
        return self.config_dir / REPOS_FILE

    def validate(self) -> None:
        """Check that every setting is usable."""
        if not 0 < self.port < 65536:
            raise ConfigError(f"invalid port {self.port}")
        if not self.metrics_path.startswith("/"):
            raise ConfigError(f"metrics path must start with '/': {self.metrics_path!r}")
        if self.check_interval_seconds <= 0:
            raise ConfigError(f"check interval must be positive: {self.check_interval!r}")

    @classmethod
    def from_dir(cls, config_dir: str | Path) -> "Config":
        """
        Load `config.yaml` from a directory and apply environment overrides.

        METRICS_PORT, METRICS_PATH and CHECK_INTERVAL take precedence over the
        values found under the `server` key of the file.

        Raises:
            ConfigError: If the file is unreadable or a setting is invalid.
        """
        load_dotenv()
        config_dir = Path(config_dir)
        data = _read_yaml(config_dir / CONFIG_FILE) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{config_dir / CONFIG_FILE} must contain a mapping")

        server = data.get("server") or {}
        if not isinstance(server, dict):
            raise ConfigError("'server' must be a mapping")

        port = os.getenv("METRICS_PORT") or server.get("port", DEFAULT_PORT)
        metrics_path = os.getenv("METRICS_PATH") or server.get("metrics_path", DEFAULT_METRICS_PATH)
        check_interval = os.getenv("CHECK_INTERVAL") or server.get("check_interval", DEFAULT_CHECK_INTERVAL)

        try:
            port = int(port)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid port {port!r}") from e

        config = cls(
            port=port,
            metrics_path=str(metrics_path),
            check_interval=str(check_interval),
            config_dir=config_dir,
        )
        config.validate()
        return config


def load_watchlist(path: str | Path) -> WatchList:
    """
    Load the repositories and charts to track.

    The file holds a `repositories` list whose items carry a `url` and a list
    of `charts`. Duplicate chart names within a repository are dropped,
    keeping the first occurrence.

    Raises:
        ConfigError: If the file is missing or malformed.
    """
    path = Path(path)
    data = _read_yaml(path)
    if not isinstance(data, dict) or not isinstance(data.get("repositories"), list):
        raise ConfigError(f"{path} must define a 'repositories' list")

    targets = []
    for i, item in enumerate(data["repositories"]):
        if not isinstance(item, dict):
            raise ConfigError(f"repositories[{i}] must be a mapping")
        url = item.get("url")
        if not isinstance(url, str) or not url.strip():
            raise ConfigError(f"repositories[{i}] needs a non-empty 'url'")

        charts = item.get("charts") or []
        if not isinstance(charts, list) or not all(isinstance(c, str) and c for c in charts):
            raise ConfigError(f"repositories[{i}].charts must be a list of chart names")

        targets.append(RepositoryTarget(url=url.strip(), charts=tuple(dict.fromkeys(charts))))

    return tuple(targets)
