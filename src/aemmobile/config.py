"""Configuration management for aemmobile."""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "aemmobile"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
LOCAL_CONFIG_FILE = Path(".aemmobile") / "config.yaml"

# Per operation kind: how many status polls to make and how long to wait
# between them (seconds).
DEFAULT_WATCH_OPTIONS: dict[str, dict[str, Any]] = {
    "publish": {"max_retries": 15, "time_between_requests": 5.0},
    "upload_article": {"max_retries": 20, "time_between_requests": 5.0},
}

DEFAULT_NETWORK_TIMEOUT = 30
DEFAULT_NETWORK_RETRY_COUNT = 3
DEFAULT_NETWORK_RETRY_BACKOFF = 1.0


@dataclass
class Credentials:
    """Credentials for one publication."""

    client_id: str
    client_secret: str | None = None
    device_id: str | None = None
    device_secret: str | None = None
    publication_id: str | None = None
    access_token: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Credentials":
        """Create from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if not values.get("client_id"):
            raise ConfigError("Credentials require a client_id")
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class WatchOptions:
    """Polling budget for one kind of asynchronous operation."""

    max_retries: int
    time_between_requests: float


def get_config_path() -> Path:
    """Get the global configuration file path."""
    return Path(os.environ.get("AEMMOBILE_CONFIG", DEFAULT_CONFIG_FILE))


def get_local_config_path() -> Path:
    """Get the local (project) configuration file path."""
    return LOCAL_CONFIG_FILE


def load_global_config() -> dict[str, Any]:
    """Load only the global configuration file."""
    global_path = get_config_path()
    if not global_path.exists():
        return {}
    with open(global_path) as f:
        return yaml.safe_load(f) or {}


def load_config() -> dict[str, Any]:
    """Load configuration, merging local and global configs.

    Global config (~/.config/aemmobile/config.yaml) holds credentials.
    Local config (.aemmobile/config.yaml) may override watch options and
    network settings for a project.
    """
    config = load_global_config()

    local_path = get_local_config_path()
    if local_path.exists():
        with open(local_path) as f:
            local_config = yaml.safe_load(f) or {}
            for section in ("options", "network"):
                if section in local_config:
                    config.setdefault(section, {})
                    for key, value in local_config[section].items():
                        if isinstance(value, dict):
                            config[section].setdefault(key, {})
                            config[section][key].update(value)
                        else:
                            config[section][key] = value

    return config


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to the global file."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config, f, default_flow_style=False)


def get_credentials() -> Credentials:
    """Get credentials from config, with environment overrides.

    Each field can be overridden with AEMMOBILE_{FIELD}, e.g.
    AEMMOBILE_CLIENT_ID or AEMMOBILE_ACCESS_TOKEN.
    """
    config = load_global_config()
    data = dict(config.get("credentials") or {})

    for f in fields(Credentials):
        if env_val := os.environ.get(f"AEMMOBILE_{f.name.upper()}"):
            data[f.name] = env_val

    return Credentials.from_dict(data)


def set_credential(name: str, value: str) -> None:
    """Set a single credential field in the global config file."""
    known = {f.name for f in fields(Credentials)}
    if name not in known:
        raise ConfigError(
            f"Unknown credential: {name}. Available: {', '.join(sorted(known))}"
        )

    config = load_global_config()
    config.setdefault("credentials", {})
    config["credentials"][name] = value
    save_config(config)


def get_watch_options(kind: str) -> WatchOptions:
    """Get polling options for an operation kind ('publish' or 'upload_article')."""
    if kind not in DEFAULT_WATCH_OPTIONS:
        available = ", ".join(DEFAULT_WATCH_OPTIONS)
        raise ConfigError(f"Unknown operation kind: {kind}. Available: {available}")

    merged = dict(DEFAULT_WATCH_OPTIONS[kind])
    config = load_config()
    merged.update(config.get("options", {}).get(kind) or {})

    try:
        return WatchOptions(
            max_retries=int(merged["max_retries"]),
            time_between_requests=float(merged["time_between_requests"]),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid {kind} options: {e}") from e


def set_watch_options(
    kind: str,
    max_retries: int | None = None,
    time_between_requests: float | None = None,
) -> None:
    """Set polling options for an operation kind. Only given values change."""
    if kind not in DEFAULT_WATCH_OPTIONS:
        available = ", ".join(DEFAULT_WATCH_OPTIONS)
        raise ConfigError(f"Unknown operation kind: {kind}. Available: {available}")

    config = load_global_config()
    options = config.setdefault("options", {}).setdefault(kind, {})
    if max_retries is not None:
        options["max_retries"] = max_retries
    if time_between_requests is not None:
        options["time_between_requests"] = time_between_requests
    save_config(config)


def get_network_config() -> dict[str, Any]:
    """Get the raw network section of the config."""
    config = load_config()
    return config.get("network", {})


def get_network_timeout() -> float:
    """Per-request timeout in seconds."""
    return get_network_config().get("timeout", DEFAULT_NETWORK_TIMEOUT)


def get_network_retry_count() -> int:
    """How many times an idempotent request is retried."""
    return get_network_config().get("retry_count", DEFAULT_NETWORK_RETRY_COUNT)


def get_network_retry_backoff() -> float:
    """Base backoff in seconds between request retries."""
    return get_network_config().get("retry_backoff", DEFAULT_NETWORK_RETRY_BACKOFF)


def set_network_config(
    retry_count: int | None = None,
    retry_backoff: float | None = None,
    timeout: float | None = None,
) -> None:
    """Set network settings. Only given values change."""
    config = load_global_config()
    network = config.setdefault("network", {})
    if retry_count is not None:
        network["retry_count"] = retry_count
    if retry_backoff is not None:
        network["retry_backoff"] = retry_backoff
    if timeout is not None:
        network["timeout"] = timeout
    save_config(config)
