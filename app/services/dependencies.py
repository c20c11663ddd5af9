from __future__ import annotations

from fastapi import FastAPI, Request

from app.services.bridge_documents_service import BridgeDocumentsService
from app.services.bridge_files_service import BridgeFilesService
from app.services.config import BridgeSetupConfig
from app.services.setup.synapse_registration_service import SynapseRegistrationService
from app.services.setup_status_service import SetupStatusService


def get_bridge_setup_config_from_app(app: FastAPI) -> BridgeSetupConfig:
    config = getattr(app.state, "bridge_setup_config", None)
    if config is None:
        raise RuntimeError("Bridge setup config not initialized (app.state.bridge_setup_config)")
    if not isinstance(config, BridgeSetupConfig):
        raise RuntimeError("Unexpected bridge_setup_config type")
    return config


def get_bridge_setup_config(request: Request) -> BridgeSetupConfig:
    """FastAPI dependency provider for the startup-built configuration."""

    return get_bridge_setup_config_from_app(request.app)


def get_bridge_documents_service(request: Request) -> BridgeDocumentsService:
    return BridgeDocumentsService(get_bridge_setup_config(request))


def get_bridge_files_service(request: Request) -> BridgeFilesService:
    return BridgeFilesService(get_bridge_setup_config(request))


def get_bridge_files_service_from_app(app: FastAPI) -> BridgeFilesService:
    """Provider for non-request contexts (e.g. app lifespan startup)."""

    return BridgeFilesService(get_bridge_setup_config_from_app(app))


def get_synapse_registration_service(request: Request) -> SynapseRegistrationService:
    return SynapseRegistrationService(get_bridge_setup_config(request))


def get_setup_status_service(request: Request) -> SetupStatusService:
    return SetupStatusService(get_bridge_setup_config(request))
