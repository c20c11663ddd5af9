from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar


@dataclass(frozen=True)
class BridgeSetupConfig:
    """Runtime configuration for the bridge setup service.

    Built once at startup (see `app.main.create_app`) and handed to every service
    through the dependency providers. Request handlers never read the environment.

    `synapse_data_path` is where the Synapse data volume is mounted *in this
    container*; `synapse_container_data_path` is the same volume as seen from
    inside the Synapse container, used for the reference written into
    `homeserver.yaml`.
    """

    CONFIG_FILENAME: ClassVar[str] = "config.yaml"
    REGISTRATION_FILENAME: ClassVar[str] = "registration.yaml"
    SYNAPSE_CONFIG_FILENAME: ClassVar[str] = "homeserver.yaml"
    SYNAPSE_REGISTRATION_FILENAME: ClassVar[str] = "telegram-registration.yaml"

    _DEFAULT_PORT: ClassVar[int] = 3000
    LOG_LEVELS: ClassVar[tuple[str, ...]] = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

    bridge_data_path: Path = Path("/data/bridge")
    synapse_data_path: Path = Path("/synapse-data")
    synapse_container_data_path: str = "/data"
    synapse_url: str = "http://synapse_server_1:8008"
    synapse_domain: str = "umbrel.local"
    host: str = "0.0.0.0"
    port: int = _DEFAULT_PORT
    log_level: str = "INFO"

    @property
    def config_path(self) -> Path:
        return self.bridge_data_path / self.CONFIG_FILENAME

    @property
    def registration_path(self) -> Path:
        return self.bridge_data_path / self.REGISTRATION_FILENAME

    @property
    def synapse_config_path(self) -> Path:
        return self.synapse_data_path / self.SYNAPSE_CONFIG_FILENAME

    @property
    def synapse_registration_path(self) -> Path:
        return self.synapse_data_path / self.SYNAPSE_REGISTRATION_FILENAME

    @property
    def synapse_registration_reference(self) -> str:
        """Registration path as Synapse itself will resolve it."""

        return f"{self.synapse_container_data_path.rstrip('/')}/{self.SYNAPSE_REGISTRATION_FILENAME}"

    @staticmethod
    def from_env() -> "BridgeSetupConfig":
        port_raw = os.getenv("PORT")
        port = BridgeSetupConfig._DEFAULT_PORT
        if port_raw:
            try:
                port = int(port_raw)
            except ValueError as exc:
                raise ValueError("Invalid PORT; must be an integer") from exc

        log_level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
        if log_level not in BridgeSetupConfig.LOG_LEVELS:
            raise ValueError(f"Invalid LOG_LEVEL; must be one of {', '.join(BridgeSetupConfig.LOG_LEVELS)}")

        synapse_url = (os.getenv("SYNAPSE_URL") or "http://synapse_server_1:8008").rstrip("/")

        return BridgeSetupConfig(
            bridge_data_path=Path(os.getenv("BRIDGE_DATA_PATH") or "/data/bridge"),
            synapse_data_path=Path(os.getenv("SYNAPSE_DATA_PATH") or "/synapse-data"),
            synapse_container_data_path=os.getenv("SYNAPSE_CONTAINER_DATA_PATH") or "/data",
            synapse_url=synapse_url,
            synapse_domain=os.getenv("SYNAPSE_DOMAIN") or "umbrel.local",
            host=os.getenv("HOST") or "0.0.0.0",
            port=port,
            log_level=log_level,
        )
