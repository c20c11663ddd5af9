from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import yaml

from app.services.bridge_documents_service import BridgeDocuments
from app.services.config import BridgeSetupConfig
from app.services.setup_errors import BridgeSetupError


logger = logging.getLogger(__name__)


DATA_DIR_MODE = 0o777
FILE_MODE = 0o666


def dump_yaml(document: dict[str, Any]) -> str:
    return yaml.safe_dump(document, default_flow_style=False, sort_keys=False, allow_unicode=True)


class _WriteTransaction:
    """Tracks files opened for writing so they can be removed on failure."""

    def __init__(self) -> None:
        self.written: list[Path] = []

    def write_text(self, path: Path, text: str) -> None:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
        self.written.append(path)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)

    def rollback(self) -> None:
        for path in reversed(self.written):
            try:
                path.unlink(missing_ok=True)
            except OSError:
                logger.exception("Failed to remove partially written file: %s", path)


@contextmanager
def write_transaction() -> Iterator[_WriteTransaction]:
    """Scope a group of file writes; on any error, remove what was written and re-raise."""

    tx = _WriteTransaction()
    try:
        yield tx
    except BaseException:
        if tx.written:
            logger.warning("Rolling back %d written file(s)", len(tx.written))
        tx.rollback()
        raise


class BridgeFilesService:
    """Persists the bridge config + registration manifest to the bridge data dir."""

    def __init__(self, config: BridgeSetupConfig) -> None:
        self._config = config

    @property
    def config_path(self) -> Path:
        return self._config.config_path

    @property
    def registration_path(self) -> Path:
        return self._config.registration_path

    def ensure_data_dir(self) -> Path:
        data_dir = self._config.bridge_data_path
        try:
            data_dir.mkdir(mode=DATA_DIR_MODE, parents=True, exist_ok=True)
        except OSError as exc:
            logger.exception("Failed to create bridge data dir: %s", data_dir)
            raise BridgeSetupError(str(exc)) from exc
        return data_dir

    def write(self, documents: BridgeDocuments) -> tuple[Path, Path]:
        """Serialize and write both documents, fully overwriting prior content.

        The pair is written inside a `write_transaction`: if the registration
        write fails after the config was written, the config file is removed too,
        so a mismatched token pair is never left on disk.
        """

        self.ensure_data_dir()

        try:
            config_text = dump_yaml(documents.config)
            registration_text = dump_yaml(documents.registration)

            with write_transaction() as tx:
                tx.write_text(self.config_path, config_text)
                tx.write_text(self.registration_path, registration_text)
        except (OSError, yaml.YAMLError) as exc:
            logger.exception("Failed to write bridge documents to %s", self._config.bridge_data_path)
            raise BridgeSetupError(str(exc)) from exc

        logger.info("Wrote %s and %s", self.config_path, self.registration_path)
        return self.config_path, self.registration_path

