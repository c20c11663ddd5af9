"""HTTP contract tests for the setup wizard API."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from fastapi.testclient import TestClient

from app.services.config import BridgeSetupConfig
from tests.conftest import SAMPLE_HOMESERVER_YAML


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_startup_creates_bridge_data_dir(client: TestClient, setup_config: BridgeSetupConfig) -> None:
    assert setup_config.bridge_data_path.is_dir()


def test_step1_writes_matching_documents(client: TestClient, setup_config: BridgeSetupConfig) -> None:
    response = client.post("/api/setup/step1", json={"matrixUser": "alice"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Configuration files created",
        "botUsername": "@telegrambot:example.org",
    }

    config = yaml.safe_load(setup_config.config_path.read_text(encoding="utf-8"))
    registration = yaml.safe_load(setup_config.registration_path.read_text(encoding="utf-8"))
    assert config["appservice"]["as_token"] == registration["as_token"]
    assert config["appservice"]["hs_token"] == registration["hs_token"]
    assert registration["as_token"] != registration["hs_token"]
    assert config["bridge"]["permissions"]["@alice:example.org"] == "admin"


@pytest.mark.parametrize("body", [{}, {"matrixUser": ""}, {"matrixUser": "   "}, None])
def test_step1_missing_user_is_client_error(
    client: TestClient, setup_config: BridgeSetupConfig, body: dict[str, str] | None
) -> None:
    response = client.post("/api/setup/step1", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Matrix user ID required"}
    assert not setup_config.config_path.exists()
    assert not setup_config.registration_path.exists()


def test_step1_malformed_body_is_client_error(client: TestClient, setup_config: BridgeSetupConfig) -> None:
    response = client.post("/api/setup/step1", json={"matrixUser": ["alice"]})

    assert response.status_code == 400
    assert "error" in response.json()
    assert not setup_config.config_path.exists()


def test_step1_io_failure_is_server_error(client: TestClient, setup_config: BridgeSetupConfig) -> None:
    # A directory squatting on config.yaml makes the write fail.
    setup_config.config_path.mkdir(parents=True)

    response = client.post("/api/setup/step1", json={"matrixUser": "alice"})

    assert response.status_code == 500
    assert response.json()["error"]
    assert not setup_config.registration_path.exists()


def test_step2_without_synapse_dir_reports_manual_path(client: TestClient, setup_config: BridgeSetupConfig) -> None:
    client.post("/api/setup/step1", json={"matrixUser": "alice"})

    response = client.post("/api/setup/step2")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["registrationPath"] == str(setup_config.registration_path)


def test_step2_copies_registration(client: TestClient, setup_config: BridgeSetupConfig, synapse_dir: Path) -> None:
    client.post("/api/setup/step1", json={"matrixUser": "alice"})

    response = client.post("/api/setup/step2")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Registration file copied to Synapse data directory",
    }
    assert setup_config.synapse_registration_path.exists()


def test_step2_before_step1_is_server_error(client: TestClient, synapse_dir: Path) -> None:
    response = client.post("/api/setup/step2")
    assert response.status_code == 500
    assert "error" in response.json()


def test_step3_without_homeserver_config(client: TestClient, synapse_dir: Path) -> None:
    response = client.post("/api/setup/step3")
    assert response.status_code == 200
    assert response.json()["success"] is False


def test_step3_patches_once(client: TestClient, setup_config: BridgeSetupConfig, synapse_dir: Path) -> None:
    setup_config.synapse_config_path.write_text(SAMPLE_HOMESERVER_YAML, encoding="utf-8")

    first = client.post("/api/setup/step3")
    second = client.post("/api/setup/step3")

    assert first.json() == {"success": True, "message": "Synapse config updated. Restart Synapse to apply changes."}
    assert second.json() == {"success": True, "message": "Bridge already registered in Synapse config"}
    assert setup_config.synapse_config_path.read_text(encoding="utf-8").count("telegram-registration.yaml") == 1


def test_status_after_step1_only(client: TestClient) -> None:
    assert client.get("/api/status").json() == {
        "configExists": False,
        "registrationExists": False,
        "synapseAccessible": False,
        "registrationInSynapse": False,
    }

    client.post("/api/setup/step1", json={"matrixUser": "alice"})

    assert client.get("/api/status").json() == {
        "configExists": True,
        "registrationExists": True,
        "synapseAccessible": False,
        "registrationInSynapse": False,
    }


def test_full_workflow(client: TestClient, setup_config: BridgeSetupConfig, synapse_dir: Path) -> None:
    setup_config.synapse_config_path.write_text(SAMPLE_HOMESERVER_YAML, encoding="utf-8")

    assert client.post("/api/setup/step1", json={"matrixUser": "@alice:example.org"}).status_code == 200
    assert client.get("/api/status").json()["registrationInSynapse"] is False

    assert client.post("/api/setup/step2").json()["success"] is True
    assert client.post("/api/setup/step3").json()["success"] is True

    assert client.get("/api/status").json() == {
        "configExists": True,
        "registrationExists": True,
        "synapseAccessible": True,
        "registrationInSynapse": True,
    }


def test_status_read_failure_is_server_error(
    client: TestClient, setup_config: BridgeSetupConfig, synapse_dir: Path
) -> None:
    # homeserver.yaml exists but is a directory, so reading it fails.
    setup_config.synapse_config_path.mkdir()

    response = client.get("/api/status")

    assert response.status_code == 500
    assert "error" in response.json()



def test_status_with_non_utf8_homeserver_config(
    client: TestClient, setup_config: BridgeSetupConfig, synapse_dir: Path
) -> None:
    setup_config.synapse_config_path.write_bytes(b"# caf\xe9\nserver_name: x\n")

    response = client.get("/api/status")

    assert response.status_code == 200
    assert response.json()["synapseAccessible"] is True
    assert response.json()["registrationInSynapse"] is False


def test_step3_with_non_utf8_homeserver_config(
    client: TestClient, setup_config: BridgeSetupConfig, synapse_dir: Path
) -> None:
    setup_config.synapse_config_path.write_bytes(b"# caf\xe9\nserver_name: x\n")

    response = client.post("/api/setup/step3")

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert setup_config.synapse_config_path.read_bytes().startswith(b"# caf\xe9\nserver_name: x\n")
    assert client.get("/api/status").json()["registrationInSynapse"] is True


def test_step3_unreadable_homeserver_config_is_server_error(
    client: TestClient, setup_config: BridgeSetupConfig, synapse_dir: Path
) -> None:
    # homeserver.yaml exists but is a directory, so reading it fails.
    setup_config.synapse_config_path.mkdir()

    response = client.post("/api/setup/step3")

    assert response.status_code == 500
    assert response.json()["error"]
