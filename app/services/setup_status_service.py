from __future__ import annotations

import logging
from dataclasses import dataclass

from app.services.config import BridgeSetupConfig
from app.services.setup_errors import BridgeSetupError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetupStatus:
    config_exists: bool
    registration_exists: bool
    synapse_accessible: bool
    registration_in_synapse: bool


class SetupStatusService:
    """Read-only, point-in-time snapshot of the provisioning state on disk."""

    def __init__(self, config: BridgeSetupConfig) -> None:
        self._config = config

    def status(self) -> SetupStatus:
        try:
            config_exists = self._config.config_path.exists()
            registration_exists = self._config.registration_path.exists()

            synapse_accessible = False
            registration_in_synapse = False

            synapse_config = self._config.synapse_config_path
            if synapse_config.exists():
                synapse_accessible = True
                text = synapse_config.read_text(encoding="utf-8", errors="surrogateescape")
                registration_in_synapse = self._config.SYNAPSE_REGISTRATION_FILENAME in text
        except OSError as exc:
            logger.exception("Failed to inspect setup status")
            raise BridgeSetupError(str(exc)) from exc

        return SetupStatus(
            config_exists=config_exists,
            registration_exists=registration_exists,
            synapse_accessible=synapse_accessible,
            registration_in_synapse=registration_in_synapse,
        )
