"""Shared test fixtures for aemmobile tests."""

import json
from unittest.mock import Mock

import pytest
import yaml

from aemmobile.config import Credentials
from aemmobile.transport import Session


def make_response(status_code=200, json_data=None, content=None):
    """Build a mock requests.Response."""
    resp = Mock()
    resp.status_code = status_code
    resp.reason = "OK" if status_code < 400 else "Error"
    if json_data is not None:
        resp.content = json.dumps(json_data).encode()
        resp.json.return_value = json_data
    else:
        resp.content = content or b""
        resp.json.side_effect = ValueError("No JSON object could be decoded")
    return resp


def event(date, aspect, event_type):
    """Build a raw status feed entry."""
    return {"eventDate": date, "aspect": aspect, "eventType": event_type}


@pytest.fixture
def credentials():
    return Credentials(
        client_id="cid",
        client_secret="csecret",
        device_id="did",
        device_secret="dsecret",
        publication_id="pubid",
        access_token="token123",
    )


@pytest.fixture
def http():
    """Mock requests.Session."""
    return Mock()


@pytest.fixture
def session(credentials, http):
    """Session over a mock HTTP layer."""
    return Session(credentials, http=http, retry_count=2, retry_backoff=0.5)


@pytest.fixture
def tmp_config(tmp_path, monkeypatch):
    """Create a temporary config file and patch the config path."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    config_file = config_dir / "config.yaml"

    monkeypatch.setattr("aemmobile.config.DEFAULT_CONFIG_FILE", config_file)
    monkeypatch.setattr("aemmobile.config.DEFAULT_CONFIG_DIR", config_dir)
    monkeypatch.delenv("AEMMOBILE_CONFIG", raising=False)
    for name in (
        "CLIENT_ID",
        "CLIENT_SECRET",
        "DEVICE_ID",
        "DEVICE_SECRET",
        "PUBLICATION_ID",
        "ACCESS_TOKEN",
    ):
        monkeypatch.delenv(f"AEMMOBILE_{name}", raising=False)

    # Change to tmp_path so local config is found there
    monkeypatch.chdir(tmp_path)

    return config_file


@pytest.fixture
def configured(tmp_config):
    """Create a config with credentials and custom options."""
    config = {
        "credentials": {
            "client_id": "cfg_client",
            "client_secret": "cfg_secret",
            "device_id": "cfg_device",
            "device_secret": "cfg_device_secret",
            "publication_id": "cfg_pub",
        },
        "options": {
            "publish": {"max_retries": 3, "time_between_requests": 1.5},
        },
        "network": {"timeout": 10},
    }
    tmp_config.write_text(yaml.dump(config))
    return tmp_config
