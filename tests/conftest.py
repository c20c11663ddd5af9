"""Shared fixtures for the bridge setup tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from app.services.config import BridgeSetupConfig

__all__ = ["SAMPLE_HOMESERVER_YAML"]


SAMPLE_HOMESERVER_YAML = """server_name: "example.org"
pid_file: /data/homeserver.pid
listeners:
  - port: 8008
    type: http
app_service_config_files:
  - /data/whatsapp-registration.yaml
  - /data/signal-registration.yaml
report_stats: false
"""


@pytest.fixture
def setup_config(tmp_path: Path) -> BridgeSetupConfig:
    """Config rooted in tmp_path; the Synapse data dir is *not* created."""
    return BridgeSetupConfig(
        bridge_data_path=tmp_path / "bridge",
        synapse_data_path=tmp_path / "synapse-data",
        synapse_url="http://synapse.test:8008",
        synapse_domain="example.org",
    )


@pytest.fixture
def synapse_dir(setup_config: BridgeSetupConfig) -> Path:
    """Make the Synapse data dir reachable."""
    setup_config.synapse_data_path.mkdir(parents=True)
    return setup_config.synapse_data_path


@pytest.fixture
def client(setup_config: BridgeSetupConfig) -> Generator[TestClient, None, None]:
    with TestClient(create_app(setup_config)) as test_client:
        yield test_client
