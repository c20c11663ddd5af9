from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from app.services.config import BridgeSetupConfig
from app.services.setup_errors import BridgeSetupError


logger = logging.getLogger(__name__)


APP_SERVICE_CONFIG_FILES_HEADER = "app_service_config_files:"


@dataclass(frozen=True)
class LinkResult:
    success: bool
    message: str
    registration_path: Optional[Path] = None


def patch_homeserver_text(text: str, *, reference: str, marker: str) -> tuple[str, bool]:
    """Add `reference` to the `app_service_config_files:` list of a homeserver.yaml text.

    The document is treated as an opaque blob; only the minimal splice is done:
    - `marker` already present anywhere: returned unchanged.
    - header present: entry inserted as the first line after the first header line.
    - header absent: a new section is appended, original text kept as a prefix.

    Added lines use the line ending already in use (CRLF or LF).
    """

    if marker in text:
        return text, False

    entry = f"  - {reference}"

    if APP_SERVICE_CONFIG_FILES_HEADER in text:
        lines = text.split("\n")
        index = next(i for i, line in enumerate(lines) if APP_SERVICE_CONFIG_FILES_HEADER in line)
        terminator = "\r" if lines[index].endswith("\r") else ""
        lines.insert(index + 1, entry + terminator)
        return "\n".join(lines), True

    newline = "\r\n" if "\r\n" in text else "\n"
    return f"{text}{newline}{newline}{APP_SERVICE_CONFIG_FILES_HEADER}{newline}{entry}{newline}", True


class SynapseRegistrationService:
    """Links the bridge registration manifest into a Synapse homeserver.

    Synapse's data directory is mounted into this container only in some
    deployments, so "not reachable" is a normal, reported outcome
    (`LinkResult(success=False, ...)`), not an error.
    """

    def __init__(self, config: BridgeSetupConfig) -> None:
        self._config = config

    @property
    def marker(self) -> str:
        return self._config.SYNAPSE_REGISTRATION_FILENAME

    def copy_registration(self) -> LinkResult:
        synapse_dir = self._config.synapse_data_path
        source = self._config.registration_path

        if not synapse_dir.exists():
            logger.warning("Synapse data dir not reachable: %s", synapse_dir)
            return LinkResult(
                success=False,
                message="Cannot access Synapse data directory. You need to manually copy the registration file.",
                registration_path=source,
            )

        target = self._config.synapse_registration_path
        try:
            shutil.copyfile(source, target)
        except OSError as exc:
            logger.exception("Failed to copy %s to %s", source, target)
            raise BridgeSetupError(str(exc)) from exc

        logger.info("Copied registration to %s", target)
        return LinkResult(success=True, message="Registration file copied to Synapse data directory")

    def patch_homeserver_config(self) -> LinkResult:
        config_path = self._config.synapse_config_path

        if not config_path.exists():
            logger.warning("Synapse config not reachable: %s", config_path)
            return LinkResult(
                success=False,
                message="Cannot access Synapse config. You need to manually add the registration to homeserver.yaml",
            )

        try:
            with open(config_path, encoding="utf-8", errors="surrogateescape", newline="") as f:
                text = f.read()
            patched, changed = patch_homeserver_text(
                text,
                reference=self._config.synapse_registration_reference,
                marker=self.marker,
            )
            if not changed:
                logger.info("Bridge already registered in %s", config_path)
                return LinkResult(success=True, message="Bridge already registered in Synapse config")

            with open(config_path, "w", encoding="utf-8", errors="surrogateescape", newline="") as f:
                f.write(patched)
        except OSError as exc:
            logger.exception("Failed to patch %s", config_path)
            raise BridgeSetupError(str(exc)) from exc

        logger.info("Registered %s in %s", self._config.synapse_registration_reference, config_path)
        return LinkResult(success=True, message="Synapse config updated. Restart Synapse to apply changes.")
